"""Todo service - business logic layer."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Union

from ..identifiers import parse_object_id
from ..models.todo import Todo, TodoUpdate, clean_text
from ..repositories.todo_repository import TodoRepository

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class TodoService:
    """Service for todo business logic.

    Lookups by id return None both for ids that are not well-formed and for
    ids that are not stored; the HTTP layer answers 404 in both cases.
    """

    def __init__(self, repository: TodoRepository) -> None:
        self.repository = repository

    async def get_todos(self) -> List[Todo]:
        return await self.repository.get_all()

    async def get_todo_by_id(self, todo_id: str) -> Optional[Todo]:
        object_id = parse_object_id(todo_id)
        if object_id is None:
            return None
        return await self.repository.get_by_id(object_id)

    async def create_todo(self, text: Any) -> Todo:
        """Create a todo from raw text. Raises ValueError for missing, non-string or blank text."""
        todo = await self.repository.create(clean_text(text))
        logger.info("Todo created id=%s", todo.id)
        return todo

    async def update_todo(
        self,
        todo_id: str,
        todo_data: Union[TodoUpdate, Mapping[str, Any]],
    ) -> Optional[Todo]:
        """Apply a patch of ``text`` and/or ``completed``.

        Setting ``completed`` to true stamps ``completedAt`` with the current
        time in epoch milliseconds; setting it to false removes
        ``completedAt``. Fields absent from the patch are left as they are.
        Raises ValueError when the patch is invalid.
        """
        object_id = parse_object_id(todo_id)
        if object_id is None:
            return None
        if not isinstance(todo_data, TodoUpdate):
            todo_data = TodoUpdate.model_validate(todo_data)

        changes = todo_data.model_dump(exclude_unset=True, exclude_none=True)
        set_fields: Dict[str, Any] = {}
        unset_fields: List[str] = []
        if "text" in changes:
            set_fields["text"] = clean_text(changes["text"])
        if "completed" in changes:
            if changes["completed"]:
                set_fields["completed"] = True
                set_fields["completedAt"] = now_ms()
            else:
                set_fields["completed"] = False
                unset_fields.append("completedAt")

        if not set_fields and not unset_fields:
            return await self.repository.get_by_id(object_id)
        return await self.repository.update(
            object_id,
            set_fields=set_fields,
            unset_fields=unset_fields,
        )

    async def delete_todo(self, todo_id: str) -> Optional[Todo]:
        """Delete a todo and return the removed document."""
        object_id = parse_object_id(todo_id)
        if object_id is None:
            return None
        todo = await self.repository.delete(object_id)
        if todo is not None:
            logger.info("Todo deleted id=%s", todo.id)
        return todo
