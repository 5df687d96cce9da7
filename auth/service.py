"""
Registration and login flows.

Login looks users up by **email**, ignoring case; registration guarantees
both email and username are unique, also ignoring case.  Flows raise the
typed errors from ``auth.errors`` and leave the HTTP mapping to the API
layer.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Type

from sqlalchemy.exc import SQLAlchemyError

from auth.errors import (
    AuthenticationError,
    ConflictError,
    OperationFailedError,
    PasswordPolicyError,
    ValidationError,
)
from auth.jwt import TokenClaims, TokenIssuer
from auth.models import LoginRequest, RegistrationRequest, User, UserView
from auth.store import CredentialStore

logger = logging.getLogger(__name__)

CREATION_FAILED = "Client creation failed"


def _view(user: User, issuer: TokenIssuer) -> UserView:
    return UserView(
        display_name=user.display_name,
        username=user.username,
        image_url=user.image_url,
        token=issuer.issue(user),
    )


async def register(
    req: RegistrationRequest,
    store: CredentialStore,
    issuer: TokenIssuer,
) -> UserView:
    """Create a new user and return it with a fresh token."""
    if await store.find_by_email(req.email) is not None:
        raise ValidationError.duplicate("email")

    if await store.find_by_username(req.username) is not None:
        raise ValidationError.duplicate("username")

    try:
        user = await store.create(
            username=req.username,
            email=req.email,
            display_name=req.display_name,
            password=req.password,
        )
    except ConflictError as exc:
        # Lost a race with a concurrent registration after the checks above.
        raise ValidationError.duplicate(exc.field) from exc
    except (PasswordPolicyError, SQLAlchemyError) as exc:
        raise OperationFailedError(CREATION_FAILED, detail=str(exc)) from exc

    logger.info("Registered user %s (%s)", user.username, user.id)
    return _view(user, issuer)


async def login(
    req: LoginRequest,
    store: CredentialStore,
    issuer: TokenIssuer,
) -> UserView:
    """Login with email + password."""
    user = await store.find_by_email(req.email)

    if not await store.verify_password(user, req.password):
        logger.info("Rejected login attempt")
        raise AuthenticationError()

    logger.info("Login: %s (%s)", user.username, user.id)
    return _view(user, issuer)


async def current_user(
    claims: TokenClaims,
    store: CredentialStore,
    issuer: TokenIssuer,
) -> UserView:
    """Resolve the user behind a verified token and hand back a fresh one."""
    user = await store.find_by_id(claims.sub)
    if user is None:
        raise AuthenticationError()
    return _view(user, issuer)


Handler = Callable[[Any, CredentialStore, TokenIssuer], Awaitable[UserView]]

HANDLERS: Dict[Type[Any], Handler] = {
    LoginRequest: login,
    RegistrationRequest: register,
}


async def dispatch(req: Any, store: CredentialStore, issuer: TokenIssuer) -> UserView:
    """Route a request object to the flow registered for its type."""
    handler = HANDLERS.get(type(req))
    if handler is None:
        raise TypeError(f"No handler registered for {type(req).__name__}")
    return await handler(req, store, issuer)
