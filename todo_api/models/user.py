"""User data models using Pydantic."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

AUTH_ACCESS = "auth"


class SignupRequest(BaseModel):
    """Body of POST /users."""

    model_config = ConfigDict(extra="ignore")

    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    """Body of POST /users/login."""

    model_config = ConfigDict(extra="ignore")

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenEntry(BaseModel):
    access: Literal["auth"] = AUTH_ACCESS
    token: str


class User(BaseModel):
    """Stored user, including the password hash and token ledger."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str
    password_hash: str = Field(..., alias="passwordHash")
    tokens: List[TokenEntry] = Field(default_factory=list)


class UserPublic(BaseModel):
    """What the API shows of a user."""

    id: str
    email: str
