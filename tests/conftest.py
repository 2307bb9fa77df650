"""Shared fixtures: an in-memory store seeded like a fresh database before each test."""

import asyncio
import os
import sys
from pathlib import Path

os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("AUTH_BCRYPT_ROUNDS", "4")
os.environ.pop("DATABASE_URL", None)

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from todo_api.auth.security import create_auth_token, hash_password  # noqa: E402
from todo_api.db import TODOS, InMemoryDocumentStore  # noqa: E402
from todo_api.main import create_app  # noqa: E402
from todo_api.repositories.user_repository import UserRepository  # noqa: E402
from todo_api.settings import get_settings  # noqa: E402

get_settings.cache_clear()

SEED_TODOS = [
    {"text": "First test todo", "completed": False},
    {"text": "Second test todo", "completed": True, "completedAt": 333},
]

SEED_USERS = [
    {"email": "andrew@example.com", "password": "userOnePass"},
    {"email": "jen@example.com", "password": "userTwoPass"},
]


async def _seed(store: InMemoryDocumentStore) -> dict:
    todos = [await store.insert(TODOS, todo) for todo in SEED_TODOS]

    users = []
    repository = UserRepository(store)
    for index, seed in enumerate(SEED_USERS):
        user = await repository.create(email=seed["email"], password_hash=hash_password(seed["password"]))
        if index == 0:
            user = await repository.add_token(user.id, create_auth_token(user_id=user.id))
        users.append({"user": user, "password": seed["password"]})
    return {"todos": todos, "users": users}


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def seeded(store: InMemoryDocumentStore) -> dict:
    """Two todos (the second completed) and two users (only the first holds a token)."""
    return asyncio.run(_seed(store))


@pytest.fixture
def client(store: InMemoryDocumentStore, seeded: dict) -> TestClient:
    return TestClient(create_app(store=store))


@pytest.fixture
def unset_jwt_secret(seeded: dict, monkeypatch: pytest.MonkeyPatch):
    """Drop the signing secret after seeding; settings are re-read on both sides."""
    monkeypatch.setenv("AUTH_JWT_SECRET", "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
