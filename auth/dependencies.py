"""
FastAPI dependencies for authentication.

Provides ``db_session``, ``get_credential_store``, ``token_issuer`` and
``get_current_claims`` dependencies used by the auth routes.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import AuthenticationError, InvalidTokenError
from auth.jwt import TokenClaims, TokenIssuer, get_token_issuer
from auth.store import CredentialStore
from database.session import get_db_session

_bearer_scheme = HTTPBearer(auto_error=False)


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


async def get_credential_store(
    session: AsyncSession = Depends(db_session),
) -> CredentialStore:
    return CredentialStore(session)


def token_issuer() -> TokenIssuer:
    return get_token_issuer()


async def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    issuer: TokenIssuer = Depends(token_issuer),
) -> TokenClaims:
    """
    Extract and verify the Bearer token, returning its claims.

    A missing or invalid token is reported as the generic
    ``AuthenticationError``.
    """
    if credentials is None:
        raise AuthenticationError()
    try:
        return issuer.verify(credentials.credentials)
    except InvalidTokenError as exc:
        raise AuthenticationError() from exc
