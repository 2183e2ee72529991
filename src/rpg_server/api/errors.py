"""
Typed application errors and their HTTP mapping.

Every failure the service layer reports is an ``AppError`` carrying a stable
machine-readable ``code`` and an HTTP status looked up from
``DEFAULT_STATUS``. The exception handlers registered by
``register_error_handlers`` turn them into one response shape:

    {
        "error": {"code", "message", "status", "method", "path", "details"?},
        "request_id": "...",
        "timestamp": "...",
    }

Two "missing thing" cases map differently on purpose:
    - A referenced item that does not exist inside an equipment payload is a
      bad request body: ``VALIDATION_ERROR`` (400).
    - The addressed character that does not exist, or that the caller may not
      see, is ``RESOURCE_NOT_FOUND`` (404). Unviewable and missing resources
      share the 404 so existence is not leaked.
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rpg_server.db.errors import DatabaseError, DatabaseOperationError

logger = logging.getLogger(__name__)

# ============================================================================
# ERROR CODES
# ============================================================================

DEFAULT_STATUS: dict[str, int] = {
    "VALIDATION_ERROR": 400,
    "INVALID_CREDENTIALS": 401,
    "UNAUTHORIZED": 401,
    "TOKEN_INVALID": 401,
    "FORBIDDEN": 403,
    "RESOURCE_NOT_FOUND": 404,
    "RESOURCE_CONFLICT": 409,
    "DATABASE_ERROR": 500,
    "INTERNAL_SERVER_ERROR": 500,
}

_STATUS_CODES: dict[int, str] = {
    400: "VALIDATION_ERROR",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "RESOURCE_NOT_FOUND",
    405: "VALIDATION_ERROR",
    409: "RESOURCE_CONFLICT",
}


class AppError(Exception):
    """
    Application error with a stable code and HTTP status.

    Args:
        code: Key of ``DEFAULT_STATUS`` (for example ``"VALIDATION_ERROR"``).
        message: Human-readable message; defaults to the code.
        status: Explicit HTTP status overriding the default for ``code``.
        details: Optional per-field details for validation failures.
    """

    def __init__(
        self,
        code: str,
        message: str | None = None,
        *,
        status: int | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message or code
        self.status = status if status is not None else DEFAULT_STATUS.get(code, 500)
        self.details = details

    def __repr__(self) -> str:
        return f"AppError(code={self.code!r}, status={self.status}, message={self.message!r})"


def err(
    code: str,
    message: str | None = None,
    details: list[dict[str, Any]] | None = None,
) -> AppError:
    """Build an ``AppError`` with the default status for ``code``."""
    return AppError(code, message, details=details)


# ============================================================================
# RESPONSE ENVELOPES
# ============================================================================


def request_id_for(request: Request) -> str:
    """Return the request id, honouring an inbound ``X-Request-ID`` header."""
    existing = getattr(request.state, "request_id", None)
    if existing:
        return existing
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    return request_id


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp used in every response envelope."""
    return datetime.now(UTC).isoformat()


def _error_response(
    request: Request,
    *,
    code: str,
    message: str,
    status: int,
    details: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    error: dict[str, Any] = {
        "code": code,
        "message": message,
        "status": status,
        "method": request.method,
        "path": request.url.path,
    }
    if details:
        error["details"] = details
    return JSONResponse(
        status_code=status,
        content={
            "error": error,
            "request_id": request_id_for(request),
            "timestamp": utc_timestamp(),
        },
    )


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an ``AppError`` raised anywhere below the route layer."""
    if exc.status >= 500:
        logger.error("%s %s failed: %r", request.method, request.url.path, exc)
    else:
        logger.info(
            "%s %s rejected: %s %s", request.method, request.url.path, exc.code, exc.message
        )
    return _error_response(
        request,
        code=exc.code,
        message=exc.message,
        status=exc.status,
        details=exc.details,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request schema failures as ``VALIDATION_ERROR`` with field details."""
    details = []
    for issue in exc.errors():
        location = [str(part) for part in issue.get("loc", ())]
        detail: dict[str, Any] = {"path": "/".join(location), "message": issue.get("msg", "")}
        if location:
            detail["field"] = location[-1]
        details.append(detail)
    logger.info("%s %s failed validation: %s", request.method, request.url.path, details)
    return _error_response(
        request,
        code="VALIDATION_ERROR",
        message="Validation failed",
        status=400,
        details=details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unknown route, bad method) in the same shape."""
    code = _STATUS_CODES.get(exc.status_code, "INTERNAL_SERVER_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else code
    if exc.status_code == 404 and message == "Not Found":
        message = f"Route {request.method}:{request.url.path} not found"
    return _error_response(request, code=code, message=message, status=exc.status_code)


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Render typed DB-layer failures as ``DATABASE_ERROR`` and log the operation."""
    operation = exc.context.operation if isinstance(exc, DatabaseOperationError) else "unknown"
    logger.error(
        "Database failure during %s on %s %s",
        operation,
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return _error_response(
        request,
        code="DATABASE_ERROR",
        message="A database error occurred",
        status=500,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render anything unexpected as ``INTERNAL_SERVER_ERROR`` without leaking its text."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(
        request,
        code="INTERNAL_SERVER_ERROR",
        message="An unexpected error occurred",
        status=500,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to ``app``."""
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DatabaseError, database_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
