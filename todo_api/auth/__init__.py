"""Authentication helpers for the API."""

from .gate import AuthGate, AuthOutcome, Authenticated, Rejected
from .security import create_auth_token, decode_auth_token, hash_password, verify_password

__all__ = [
    "AuthGate",
    "AuthOutcome",
    "Authenticated",
    "Rejected",
    "create_auth_token",
    "decode_auth_token",
    "hash_password",
    "verify_password",
]
