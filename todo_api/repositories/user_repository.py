"""User repository: user documents and their token ledger."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..db import USERS, DocumentStore
from ..models.user import AUTH_ACCESS, User


def _to_user(document: Optional[Mapping[str, Any]]) -> Optional[User]:
    if document is None:
        return None
    return User.model_validate(document)


def _ledger_entry(token: str) -> dict:
    return {"access": AUTH_ACCESS, "token": token}


class UserRepository:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def create(self, *, email: str, password_hash: str) -> User:
        """Insert a user with an empty ledger. Raises DuplicateKeyError for a taken email."""
        document = await self.store.insert(
            USERS,
            {"email": email, "passwordHash": password_hash, "tokens": []},
        )
        return User.model_validate(document)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return _to_user(await self.store.find_by_id(USERS, user_id))

    async def get_by_email(self, email: str) -> Optional[User]:
        return _to_user(await self.store.find_one(USERS, {"email": email}))

    async def get_by_token(self, token: str) -> Optional[User]:
        """Find the user whose ledger holds ``token``."""
        return _to_user(await self.store.find_one(USERS, {"tokens": [_ledger_entry(token)]}))

    async def add_token(self, user_id: str, token: str) -> Optional[User]:
        document = await self.store.update_by_id(USERS, user_id, push={"tokens": _ledger_entry(token)})
        return _to_user(document)

    async def remove_token(self, user_id: str, token: str) -> Optional[User]:
        document = await self.store.update_by_id(USERS, user_id, pull={"tokens": {"token": token}})
        return _to_user(document)
