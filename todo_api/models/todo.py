"""Todo data models using Pydantic."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator


def clean_text(value: object) -> str:
    """Return ``value`` trimmed, or raise ValueError if it is not usable todo text."""
    if not isinstance(value, str):
        raise ValueError("Todo text must be a string")
    text = value.strip()
    if not text:
        raise ValueError("Todo text cannot be empty")
    return text


class TodoCreate(BaseModel):
    """Body of POST /todos."""

    model_config = ConfigDict(extra="ignore")

    text: StrictStr

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        return clean_text(value)


class TodoUpdate(BaseModel):
    """Body of PATCH /todos/{id}. Only ``text`` and ``completed`` are read; other keys are dropped."""

    model_config = ConfigDict(extra="ignore")

    text: Optional[StrictStr] = None
    completed: Optional[StrictBool] = None

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return clean_text(value)


class Todo(BaseModel):
    """Stored todo. ``completedAt`` is epoch milliseconds and only set while completed."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    text: str
    completed: bool = False
    completed_at: Optional[int] = Field(None, alias="completedAt")


class TodoEnvelope(BaseModel):
    todo: Todo


class TodoList(BaseModel):
    todos: List[Todo]
