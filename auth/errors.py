"""
Typed errors raised by the authentication flows.

Flows never build HTTP responses themselves.  Every ``AuthError`` carries
the status code and the public ``errors`` payload; the boundary handler in
``api.middleware`` is the only place that turns them into responses.
"""

from __future__ import annotations

from typing import Any, Dict, List


class AuthError(Exception):
    """Base class for errors that have a public HTTP representation."""

    status_code: int = 500

    def __init__(self, errors: Any) -> None:
        super().__init__(errors)
        self.errors = errors


class ValidationError(AuthError):
    """User input conflicts with existing state (field-scoped)."""

    status_code = 400

    def __init__(self, errors: Dict[str, str]) -> None:
        super().__init__(errors)

    @classmethod
    def duplicate(cls, field: str) -> "ValidationError":
        if field == "username":
            return cls({"username": "UserName already exist"})
        return cls({"email": "Email already exist"})


class AuthenticationError(AuthError):
    """Bad credentials.  The message never says which part was wrong."""

    status_code = 401
    message = "Invalid email or password"

    def __init__(self) -> None:
        super().__init__(self.message)


class OperationFailedError(AuthError):
    """Unexpected downstream failure; ``detail`` is logged, never returned."""

    status_code = 500

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.detail = detail


# ── Internal signals (not mapped to HTTP directly) ──────────────────────


class ConflictError(Exception):
    """The store's uniqueness constraint rejected an insert."""

    def __init__(self, field: str) -> None:
        super().__init__(f"{field} already exists")
        self.field = field


class PasswordPolicyError(Exception):
    """The password does not satisfy the configured policy."""

    def __init__(self, reasons: List[str]) -> None:
        super().__init__("; ".join(reasons))
        self.reasons = reasons


class InvalidTokenError(Exception):
    """A bearer token is malformed, tampered with or expired."""
