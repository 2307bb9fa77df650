"""API routes for user signup, login and sessions."""

from fastapi import APIRouter, Depends, HTTPException, Response, status

from .dependencies import get_current_session, get_current_user, get_user_service
from ..auth.gate import Authenticated
from ..models.user import LoginRequest, SignupRequest, User, UserPublic
from ..services.user_service import UserService
from ..settings import get_settings

router = APIRouter(prefix="/users", tags=["users"])


def _public(user: User) -> UserPublic:
    return UserPublic(id=user.id, email=user.email)


@router.post("", response_model=UserPublic)
async def signup(
    payload: SignupRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
) -> UserPublic:
    """Create an account; the session token is returned in the auth header."""
    try:
        user, token = await service.signup(email=payload.email, password=payload.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    response.headers[get_settings().token_header] = token
    return _public(user)


@router.post("/login", response_model=UserPublic)
async def login(
    payload: LoginRequest,
    response: Response,
    service: UserService = Depends(get_user_service),
) -> UserPublic:
    try:
        user, token = await service.login(email=payload.email, password=payload.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    response.headers[get_settings().token_header] = token
    return _public(user)


@router.get("/me", response_model=UserPublic)
async def me(user: User = Depends(get_current_user)) -> UserPublic:
    return _public(user)


@router.delete("/me/token")
async def logout(
    session: Authenticated = Depends(get_current_session),
    service: UserService = Depends(get_user_service),
) -> Response:
    """Revoke the token used for this request."""
    await service.logout(session.user, session.token)
    return Response(status_code=status.HTTP_200_OK)
