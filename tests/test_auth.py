"""Auth gate, token ledger and user service tests."""

from fastapi import HTTPException
import pytest
from jose import jwt

from todo_api.auth.gate import AuthGate, Authenticated, Rejected
from todo_api.auth.security import create_auth_token, decode_auth_token, hash_password, verify_password
from todo_api.db import InMemoryDocumentStore
from todo_api.repositories.user_repository import UserRepository
from todo_api.services.user_service import UserService
from todo_api.settings import get_settings


@pytest.fixture
def users(store: InMemoryDocumentStore) -> UserRepository:
    return UserRepository(store)


@pytest.fixture
def user_service(users: UserRepository) -> UserService:
    return UserService(users)


@pytest.fixture
def gate(users: UserRepository) -> AuthGate:
    return AuthGate(users)


class TestSecurity:
    def test_password_hash_is_salted(self) -> None:
        first = hash_password("abc123!")
        second = hash_password("abc123!")
        assert first != second
        assert verify_password("abc123!", first)
        assert not verify_password("abc123?", first)

    def test_token_round_trip(self) -> None:
        token = create_auth_token(user_id="a" * 24)
        claims = decode_auth_token(token)
        assert claims["sub"] == "a" * 24
        assert claims["access"] == "auth"

    def test_decode_rejects_foreign_signature(self) -> None:
        forged = jwt.encode({"sub": "a" * 24, "access": "auth"}, "other-secret", algorithm="HS256")
        assert decode_auth_token(forged) is None

    def test_decode_rejects_wrong_access(self) -> None:
        token = jwt.encode({"sub": "a" * 24, "access": "reset"}, get_settings().jwt_secret, algorithm="HS256")
        assert decode_auth_token(token) is None

    @pytest.mark.usefixtures("unset_jwt_secret")
    def test_decode_rejects_everything_without_secret(self, seeded: dict) -> None:
        token = seeded["users"][0]["user"].tokens[0].token
        assert decode_auth_token(token) is None
        assert decode_auth_token("garbage") is None

    @pytest.mark.usefixtures("unset_jwt_secret")
    def test_create_fails_without_secret(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            create_auth_token(user_id="a" * 24)
        assert exc_info.value.status_code == 500


class TestAuthGate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, "", "   "])
    async def test_missing_token_is_rejected(self, gate: AuthGate, token) -> None:
        outcome = await gate.authenticate(token)
        assert outcome == Rejected(401, "Missing access token")

    @pytest.mark.asyncio
    async def test_ledger_token_is_authenticated(self, gate: AuthGate, user_service: UserService) -> None:
        user, token = await user_service.signup(email="gate@example.com", password="secret1")

        outcome = await gate.authenticate(token)
        assert isinstance(outcome, Authenticated)
        assert outcome.user.id == user.id
        assert outcome.token == token

    @pytest.mark.asyncio
    async def test_token_of_another_user_is_rejected(self, gate: AuthGate, users: UserRepository) -> None:
        owner = await users.create(email="owner@example.com", password_hash="x")
        other = await users.create(email="other@example.com", password_hash="x")
        token = create_auth_token(user_id=other.id)
        await users.add_token(owner.id, token)

        outcome = await gate.authenticate(token)
        assert isinstance(outcome, Rejected)
        assert outcome.status_code == 401

    @pytest.mark.asyncio
    async def test_revocation_applies_to_next_request(self, gate: AuthGate, user_service: UserService) -> None:
        user, token = await user_service.signup(email="revoke@example.com", password="secret1")
        assert isinstance(await gate.authenticate(token), Authenticated)

        await user_service.logout(user, token)
        assert isinstance(await gate.authenticate(token), Rejected)


class TestUserService:
    @pytest.mark.asyncio
    async def test_signup_records_first_token(self, user_service: UserService) -> None:
        user, token = await user_service.signup(email=" New@Example.com ", password="secret1")
        assert user.email == "new@example.com"
        assert [entry.token for entry in user.tokens] == [token]
        assert verify_password("secret1", user.password_hash)

    @pytest.mark.asyncio
    async def test_signup_rejects_duplicate_email(self, user_service: UserService) -> None:
        await user_service.signup(email="dup@example.com", password="secret1")
        with pytest.raises(ValueError, match="already registered"):
            await user_service.signup(email="DUP@example.com", password="secret2")

    @pytest.mark.asyncio
    async def test_login_appends_and_logout_removes_only_that_token(self, user_service: UserService) -> None:
        _, first = await user_service.signup(email="multi@example.com", password="secret1")
        user, second = await user_service.login(email="multi@example.com", password="secret1")
        assert [entry.token for entry in user.tokens] == [first, second]

        await user_service.logout(user, first)
        remaining = await user_service.repository.get_by_id(user.id)
        assert [entry.token for entry in remaining.tokens] == [second]

    @pytest.mark.asyncio
    async def test_login_failures_share_one_message(self, user_service: UserService) -> None:
        await user_service.signup(email="login@example.com", password="secret1")
        with pytest.raises(ValueError, match="Invalid credentials"):
            await user_service.login(email="login@example.com", password="wrong")
        with pytest.raises(ValueError, match="Invalid credentials"):
            await user_service.login(email="missing@example.com", password="secret1")
