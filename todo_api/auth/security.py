from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache
import logging
import secrets
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from ..models.user import AUTH_ACCESS
from ..settings import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def _pwd_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str) -> str:
    return _pwd_context(get_settings().bcrypt_rounds).hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return _pwd_context(get_settings().bcrypt_rounds).verify(password, password_hash)


def _jwt_secret() -> str:
    secret = get_settings().jwt_secret
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="AUTH_JWT_SECRET is not configured",
        )
    return secret


def create_auth_token(*, user_id: str) -> str:
    """Sign a session token for ``user_id``. Tokens carry no expiry; logout revokes them."""
    payload: Dict[str, Any] = {
        "sub": user_id,
        "access": AUTH_ACCESS,
        "iat": int(datetime.now(timezone.utc).timestamp()),
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=get_settings().jwt_algorithm)


def decode_auth_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the verified claims, or None when the signature or claims are invalid.

    Without a configured secret no token can verify, so every token is refused.
    """
    secret = get_settings().jwt_secret
    if not secret:
        logger.warning("AUTH_JWT_SECRET is not configured; rejecting token")
        return None
    try:
        claims = jwt.decode(token, secret, algorithms=[get_settings().jwt_algorithm])
    except JWTError:
        return None
    if claims.get("access") != AUTH_ACCESS or not claims.get("sub"):
        return None
    return claims
