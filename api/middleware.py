"""
Global middleware and the error boundary.

Every error leaving a route is turned into ``{"errors": ...}`` here and
nowhere else:

  • ``AuthError``               → its own status code and public payload
  • ``RequestValidationError``  → 400 with per-field messages
  • anything else               → 500 with a generic message
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from auth.errors import AuthError, OperationFailedError

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal server error"


def _error_response(status_code: int, errors: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"errors": errors})


def _field_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        # loc looks like ("body", "email"); a missing body has no field part.
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        field = ".".join(loc) or "body"
        errors.setdefault(field, []).append(err.get("msg", "Invalid value"))
    return errors


async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    if isinstance(exc, OperationFailedError):
        logger.error(
            "Operation failed on %s %s: %s (%s)",
            request.method, request.url.path, exc.errors, exc.detail,
        )
    else:
        logger.warning(
            "Rest error on %s %s: %s", request.method, request.url.path, exc.errors
        )
    return _error_response(exc.status_code, exc.errors)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = _field_errors(exc)
    logger.info("Rejected request to %s: %s", request.url.path, errors)
    return _error_response(status.HTTP_400_BAD_REQUEST, errors)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Server error on %s %s", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_SERVER_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, handle_auth_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


def register_middleware(app: FastAPI) -> None:
    """Attach any app-level middleware."""

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug("%s %s — %.3fs", request.method, request.url.path, elapsed)
        return response
