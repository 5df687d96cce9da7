"""
Auth API routes — login, registration, current user.

Route prefix: /api/user
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from auth.dependencies import get_credential_store, get_current_claims, token_issuer
from auth.jwt import TokenClaims, TokenIssuer
from auth.models import LoginRequest, RegistrationRequest, UserView
from auth.service import current_user, dispatch
from auth.store import CredentialStore

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=UserView)
async def login(
    req: LoginRequest,
    store: CredentialStore = Depends(get_credential_store),
    issuer: TokenIssuer = Depends(token_issuer),
) -> UserView:
    """Login with email + password."""
    return await dispatch(req, store, issuer)


@router.post("/registration", response_model=UserView)
async def registration(
    req: RegistrationRequest,
    store: CredentialStore = Depends(get_credential_store),
    issuer: TokenIssuer = Depends(token_issuer),
) -> UserView:
    """Register a new user."""
    return await dispatch(req, store, issuer)


@router.get("", response_model=UserView)
async def me(
    claims: TokenClaims = Depends(get_current_claims),
    store: CredentialStore = Depends(get_credential_store),
    issuer: TokenIssuer = Depends(token_issuer),
) -> UserView:
    """Return the user the bearer token belongs to."""
    return await current_user(claims, store, issuer)
