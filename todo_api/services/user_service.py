"""User service: signup, login and logout over the token ledger."""

from __future__ import annotations

import logging
from typing import Tuple

from ..auth.security import create_auth_token, hash_password, verify_password
from ..db import DuplicateKeyError
from ..models.user import User
from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    def __init__(self, repository: UserRepository) -> None:
        self.repository = repository

    async def signup(self, *, email: str, password: str) -> Tuple[User, str]:
        """Create a user and open a first session. Raises ValueError for a taken email."""
        email = normalize_email(email)
        if await self.repository.get_by_email(email):
            raise ValueError("Email already registered")
        try:
            user = await self.repository.create(email=email, password_hash=hash_password(password))
        except DuplicateKeyError as exc:
            raise ValueError("Email already registered") from exc
        logger.info("User signed up id=%s", user.id)
        return await self._issue_token(user)

    async def login(self, *, email: str, password: str) -> Tuple[User, str]:
        user = await self.repository.get_by_email(normalize_email(email))
        if not user or not verify_password(password, user.password_hash):
            raise ValueError("Invalid credentials")
        return await self._issue_token(user)

    async def logout(self, user: User, token: str) -> None:
        await self.repository.remove_token(user.id, token)
        logger.info("Token revoked for user id=%s", user.id)

    async def _issue_token(self, user: User) -> Tuple[User, str]:
        token = create_auth_token(user_id=user.id)
        updated = await self.repository.add_token(user.id, token)
        if updated is None:
            raise ValueError("User no longer exists")
        return updated, token
