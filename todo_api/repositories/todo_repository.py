"""Todo repository - data access layer."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from ..db import TODOS, DocumentStore
from ..models.todo import Todo


def _to_todo(document: Optional[Mapping[str, Any]]) -> Optional[Todo]:
    if document is None:
        return None
    return Todo.model_validate(document)


class TodoRepository:
    """Repository for todo documents kept in the document store."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def get_all(self) -> List[Todo]:
        """Get all todos in insertion order."""
        documents = await self.store.find(TODOS)
        return [Todo.model_validate(document) for document in documents]

    async def get_by_id(self, todo_id: str) -> Optional[Todo]:
        return _to_todo(await self.store.find_by_id(TODOS, todo_id))

    async def create(self, text: str) -> Todo:
        document = await self.store.insert(TODOS, {"text": text, "completed": False})
        return Todo.model_validate(document)

    async def update(
        self,
        todo_id: str,
        *,
        set_fields: Optional[Mapping[str, Any]] = None,
        unset_fields: Iterable[str] = (),
    ) -> Optional[Todo]:
        """Apply a field-level change in one store call; None if the todo is gone."""
        document = await self.store.update_by_id(
            TODOS,
            todo_id,
            set_fields=set_fields,
            unset_fields=unset_fields,
        )
        return _to_todo(document)

    async def delete(self, todo_id: str) -> Optional[Todo]:
        """Delete a todo and return it as it was just before removal."""
        return _to_todo(await self.store.remove_by_id(TODOS, todo_id))

    async def count(self) -> int:
        return await self.store.count(TODOS)
