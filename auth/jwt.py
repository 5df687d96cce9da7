"""
JWT-style token creation and verification.

Tokens are url-safe base64-encoded JSON payloads signed with HMAC-SHA256.
Secret key is loaded from ``config.jwt_secret`` (env var: ``JWT_SECRET``)
once per process.

Payload claims:
  • ``sub``      — user id
  • ``username`` — user name at issue time
  • ``iat``      — issued-at, unix seconds
  • ``exp``      — expiry, unix seconds
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import logging
import time
from base64 import urlsafe_b64decode, urlsafe_b64encode
from typing import Callable, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from auth.errors import InvalidTokenError
from config.settings import DEFAULT_JWT_SECRET, config
from database.models import User

logger = logging.getLogger(__name__)


class TokenClaims(BaseModel):
    sub: str
    username: str
    iat: int
    exp: int


class TokenIssuer:
    def __init__(
        self,
        secret: str,
        expiry_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("token signing secret must not be empty")
        self._secret = secret.encode()
        self._expiry_seconds = expiry_seconds
        self._clock = clock

    def _sign(self, raw: bytes) -> str:
        return hmac.new(self._secret, raw, hashlib.sha256).hexdigest()

    def issue(self, user: User) -> str:
        """Create a signed token for ``user``."""
        now = int(self._clock())
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "iat": now,
            "exp": now + self._expiry_seconds,
        }
        raw = json.dumps(payload, separators=(",", ":")).encode()
        return urlsafe_b64encode(raw).decode() + "." + self._sign(raw)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify ``token`` and return its claims.

        Raises ``InvalidTokenError`` on malformed, tampered or expired tokens.
        """
        parts = token.split(".")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise InvalidTokenError("bad format")
        try:
            raw = urlsafe_b64decode(parts[0].encode())
        except (binascii.Error, ValueError) as exc:
            raise InvalidTokenError("bad encoding") from exc

        if not hmac.compare_digest(parts[1].encode(), self._sign(raw).encode()):
            raise InvalidTokenError("bad signature")

        try:
            claims = TokenClaims.model_validate_json(raw)
        except PydanticValidationError as exc:
            raise InvalidTokenError("bad payload") from exc

        if claims.exp <= self._clock():
            raise InvalidTokenError("token expired")
        return claims


_issuer: Optional[TokenIssuer] = None


def get_token_issuer() -> TokenIssuer:
    """Return the process-wide issuer, built from config on first call."""
    global _issuer
    if _issuer is None:
        if config.jwt_secret == DEFAULT_JWT_SECRET:
            logger.warning(
                "JWT_SECRET is the built-in default — set a real secret before deploying."
            )
        _issuer = TokenIssuer(config.jwt_secret, config.jwt_expiry_seconds)
    return _issuer
