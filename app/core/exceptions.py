"""
Domain error taxonomy and global exception handlers.

Every handler answers with the ``{"success": false, "message": ...}``
envelope; stack traces only ever reach the log.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 400
    message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    message = "Invalid input"


class ConflictError(AppError):
    status_code = 400
    message = "Resource already exists"


class NotFoundError(AppError):
    status_code = 404
    message = "Resource not found"


class InvalidCredentialsError(AppError):
    status_code = 401
    message = "Invalid email or password"


class InvalidOtpError(AppError):
    status_code = 400
    message = "Invalid or expired OTP"


class InvalidInvitationError(AppError):
    status_code = 400
    message = "Invalid or expired invitation"


class InvalidTokenError(AppError):
    status_code = 403
    message = "Invalid token"


class AccountInactiveError(AppError):
    status_code = 401
    message = "Invalid or inactive user"


class AuthenticationRequiredError(AppError):
    status_code = 401
    message = "Access token required"


class InsufficientPermissionsError(AppError):
    status_code = 403
    message = "Insufficient permissions"


class ForbiddenSelfActionError(AppError):
    status_code = 403
    message = "Cannot delete your own account"


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected while the process starts."""


# ── Handlers ────────────────────────────────────────────────────────
def _envelope(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


async def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return _envelope(exc.status_code, exc.message, headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = ValidationError.message
    if errors:
        first = errors[0]
        message = str(first.get("msg", message))
        # pydantic prefixes messages raised from validators
        message = message.removeprefix("Value error, ")
        if first.get("type") == "missing":
            field = first.get("loc", ["", "field"])[-1]
            message = f"{field} is required"
    return await _app_error_handler(request, ValidationError(message))


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return _envelope(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded: %s", exc.detail)
    return _envelope(429, "Too many requests, please try again later")


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return _envelope(409, "Database constraint violation")


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return _envelope(500, "Internal database error")


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _envelope(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
