"""API dependencies: services built per request from the app's store handle."""

from fastapi import Depends, HTTPException, Request, status

from ..auth.gate import AuthGate, Authenticated, Rejected
from ..db import DocumentStore
from ..models.user import User
from ..repositories.todo_repository import TodoRepository
from ..repositories.user_repository import UserRepository
from ..services.todo_service import TodoService
from ..services.user_service import UserService
from ..settings import get_settings


def get_store(request: Request) -> DocumentStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Document store is not initialized",
        )
    return store


def get_todo_repository(store: DocumentStore = Depends(get_store)) -> TodoRepository:
    return TodoRepository(store)


def get_todo_service(
    repository: TodoRepository = Depends(get_todo_repository),
) -> TodoService:
    return TodoService(repository)


def get_user_repository(store: DocumentStore = Depends(get_store)) -> UserRepository:
    return UserRepository(store)


def get_user_service(
    repository: UserRepository = Depends(get_user_repository),
) -> UserService:
    return UserService(repository)


def get_auth_gate(users: UserRepository = Depends(get_user_repository)) -> AuthGate:
    return AuthGate(users)


async def get_current_session(
    request: Request,
    gate: AuthGate = Depends(get_auth_gate),
) -> Authenticated:
    """Run the auth gate; a rejection ends the request before the handler runs."""
    token = request.headers.get(get_settings().token_header)
    outcome = await gate.authenticate(token)
    if isinstance(outcome, Rejected):
        raise HTTPException(status_code=outcome.status_code, detail=outcome.reason)
    return outcome


async def get_current_user(session: Authenticated = Depends(get_current_session)) -> User:
    return session.user
