"""Request-time authentication: resolve a presented token to a user or reject it."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional, Union

from fastapi import status

from ..models.user import User
from ..repositories.user_repository import UserRepository
from .security import decode_auth_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Authenticated:
    user: User
    token: str


@dataclass(frozen=True)
class Rejected:
    status_code: int
    reason: str


AuthOutcome = Union[Authenticated, Rejected]


class AuthGate:
    """Checks every request against the token ledger; nothing is cached between requests."""

    def __init__(self, users: UserRepository) -> None:
        self.users = users

    async def authenticate(self, token: Optional[str]) -> AuthOutcome:
        if token is None or not token.strip():
            return Rejected(status.HTTP_401_UNAUTHORIZED, "Missing access token")
        token = token.strip()

        claims = decode_auth_token(token)
        if claims is None:
            logger.warning("Rejected request with an unverifiable token")
            return Rejected(status.HTTP_401_UNAUTHORIZED, "Invalid access token")

        user = await self.users.get_by_token(token)
        if user is None or user.id != claims["sub"]:
            logger.warning("Rejected request with a token missing from the ledger")
            return Rejected(status.HTTP_401_UNAUTHORIZED, "Invalid access token")
        return Authenticated(user=user, token=token)
