from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional
import os


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str]
    jwt_secret: str
    jwt_algorithm: str
    token_header: str
    bcrypt_rounds: int
    environment: str
    port: int
    log_level: str


@lru_cache
def get_settings() -> Settings:
    database_url = os.getenv("DATABASE_URL") or None
    jwt_secret = os.getenv("AUTH_JWT_SECRET", "")
    jwt_algorithm = os.getenv("AUTH_JWT_ALGORITHM", "HS256")
    token_header = os.getenv("AUTH_TOKEN_HEADER", "x-auth").lower()
    bcrypt_rounds = int(os.getenv("AUTH_BCRYPT_ROUNDS", "12"))
    environment = os.getenv("ENVIRONMENT", "").lower()
    port = int(os.getenv("PORT", "8080"))
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    return Settings(
        database_url=database_url,
        jwt_secret=jwt_secret,
        jwt_algorithm=jwt_algorithm,
        token_header=token_header,
        bcrypt_rounds=bcrypt_rounds,
        environment=environment,
        port=port,
        log_level=log_level,
    )
