"""
Tests for the registration / login flows and the command dispatch table.
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError
from unittest.mock import AsyncMock, patch

from auth.errors import AuthenticationError, OperationFailedError, ValidationError
from auth.models import LoginRequest, RegistrationRequest, UserView
from auth.service import current_user, dispatch, login, register
from auth.store import CredentialStore


def _registration(**overrides) -> RegistrationRequest:
    defaults = dict(
        username="alice",
        email="a@x.com",
        display_name="Alice",
        password="Secr3t!",
    )
    defaults.update(overrides)
    return RegistrationRequest(**defaults)


class TestRegister:
    @pytest.mark.asyncio
    async def test_success(self, store, issuer):
        view = await register(_registration(), store, issuer)

        assert view.username == "alice"
        assert view.display_name == "Alice"
        assert view.image_url is None
        claims = issuer.verify(view.token)
        assert claims.username == "alice"

    @pytest.mark.asyncio
    async def test_duplicate_email_fails_every_time(self, store, session, issuer):
        await register(_registration(), store, issuer)
        await session.commit()

        for attempt in range(3):
            with pytest.raises(ValidationError) as info:
                await register(_registration(username=f"other{attempt}"), store, issuer)
            assert info.value.errors == {"email": "Email already exist"}

        assert await store.count() == 1
        assert await store.find_by_username("other0") is None

    @pytest.mark.asyncio
    async def test_duplicate_username(self, store, session, issuer):
        await register(_registration(), store, issuer)
        await session.commit()

        with pytest.raises(ValidationError) as info:
            await register(_registration(email="b@x.com"), store, issuer)

        assert info.value.errors == {"username": "UserName already exist"}

    @pytest.mark.asyncio
    async def test_conflict_after_checks_becomes_validation_error(self, store, session, issuer):
        await register(_registration(), store, issuer)
        await session.commit()

        # Pretend the pre-checks ran before the other registration landed.
        with patch.object(store, "find_by_email", new_callable=AsyncMock) as find:
            find.return_value = None
            with pytest.raises(ValidationError) as info:
                await register(_registration(username="alice2"), store, issuer)

        assert info.value.errors == {"email": "Email already exist"}
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_rejected_password_is_operation_failure(self, store, issuer):
        with pytest.raises(OperationFailedError) as info:
            await register(_registration(password="password"), store, issuer)

        assert info.value.errors == "Client creation failed"
        assert "uppercase" in info.value.detail
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_database_failure_is_operation_failure(self, store, issuer):
        failure = OperationalError("INSERT INTO users ...", {}, Exception("disk I/O error"))
        with patch.object(store, "create", new_callable=AsyncMock) as create:
            create.side_effect = failure
            with pytest.raises(OperationFailedError) as info:
                await register(_registration(), store, issuer)

        assert info.value.errors == "Client creation failed"
        assert "disk I/O error" in info.value.detail


class TestConcurrentRegistration:
    @pytest.mark.asyncio
    async def test_same_email_exactly_one_wins(self, session_factory, issuer):
        async def attempt(username: str):
            async with session_factory() as session:
                try:
                    view = await register(
                        _registration(username=username), CredentialStore(session), issuer
                    )
                    await session.commit()
                    return view
                except ValidationError as exc:
                    await session.rollback()
                    return exc

        results = await asyncio.gather(attempt("alice"), attempt("alicia"))

        wins = [r for r in results if isinstance(r, UserView)]
        losses = [r for r in results if isinstance(r, ValidationError)]
        assert len(wins) == 1
        assert len(losses) == 1
        assert losses[0].errors == {"email": "Email already exist"}

        async with session_factory() as session:
            assert await CredentialStore(session).count() == 1


class TestLogin:
    @pytest.mark.asyncio
    async def test_success(self, store, session, issuer):
        await register(_registration(), store, issuer)
        await session.commit()

        view = await login(LoginRequest(email="a@x.com", password="Secr3t!"), store, issuer)

        assert view.username == "alice"
        assert view.display_name == "Alice"
        assert issuer.verify(view.token).username == "alice"

    @pytest.mark.asyncio
    async def test_unknown_and_wrong_password_look_the_same(self, store, session, issuer):
        await register(_registration(), store, issuer)
        await session.commit()

        with pytest.raises(AuthenticationError) as wrong_password:
            await login(LoginRequest(email="a@x.com", password="wrong"), store, issuer)
        with pytest.raises(AuthenticationError) as unknown:
            await login(LoginRequest(email="b@x.com", password="Secr3t!"), store, issuer)

        assert wrong_password.value.errors == unknown.value.errors
        assert wrong_password.value.status_code == unknown.value.status_code == 401

    @pytest.mark.asyncio
    async def test_login_is_by_email_not_username(self, store, session, issuer):
        await register(_registration(), store, issuer)
        await session.commit()

        with pytest.raises(AuthenticationError):
            await login(LoginRequest(email="alice", password="Secr3t!"), store, issuer)


class TestCurrentUserAndDispatch:
    @pytest.mark.asyncio
    async def test_current_user(self, store, session, issuer):
        view = await register(_registration(), store, issuer)
        await session.commit()

        me = await current_user(issuer.verify(view.token), store, issuer)
        assert me.username == "alice"

    @pytest.mark.asyncio
    async def test_current_user_gone(self, store, issuer):
        from database.models import User

        token = issuer.issue(User(id="missing", username="ghost", email="g@x.com"))
        with pytest.raises(AuthenticationError):
            await current_user(issuer.verify(token), store, issuer)

    @pytest.mark.asyncio
    async def test_dispatch_routes_by_request_type(self, store, session, issuer):
        registered = await dispatch(_registration(), store, issuer)
        await session.commit()
        logged_in = await dispatch(
            LoginRequest(email="a@x.com", password="Secr3t!"), store, issuer
        )

        assert registered.username == logged_in.username == "alice"

    @pytest.mark.asyncio
    async def test_dispatch_unknown_request(self, store, issuer):
        with pytest.raises(TypeError):
            await dispatch(object(), store, issuer)
