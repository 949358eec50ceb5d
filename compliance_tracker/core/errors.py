"""Domain errors and the standardized error envelope shared by every endpoint."""
from typing import Any

import sentry_sdk
import structlog
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope returned by all API error handlers."""
    error: str
    message: str
    detail: Any = None
    request_id: str = "unknown"

logger = structlog.get_logger()


# ── Domain errors ─────────────────────────────────────────────────────────


class TrackerError(Exception):
    """Base class for errors the core raises deliberately.

    Raised before any write is attempted, so a caller seeing one can assume
    the store is unchanged.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST
    error: str = "tracker_error"

    def __init__(self, message: str, detail: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(TrackerError):
    """Missing or invalid field, unknown status value."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "validation_error"


class AuthorizationError(TrackerError):
    """Role, client assignment or period lock forbids the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    error = "forbidden"


class NotFoundError(TrackerError):
    """A directly referenced id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "not_found"


# ── Handlers ──────────────────────────────────────────────────────────────


async def tracker_error_handler(request: Request, exc: TrackerError) -> JSONResponse:
    """Render domain errors in the standard envelope."""
    request_id = request.headers.get("x-request-id", "unknown")

    logger.info(
        "request_rejected",
        error=exc.error,
        message=exc.message,
        path=request.url.path,
        method=request.method,
        request_id=request_id,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.error,
            message=exc.message,
            detail=exc.detail,
            request_id=request_id,
        ).model_dump(),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch unhandled exceptions and return a consistent JSON envelope."""
    request_id = request.headers.get("x-request-id", "unknown")

    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        request_id=request_id,
    )

    sentry_sdk.capture_exception(exc)

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Our team has been notified.",
            "request_id": request_id,
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Standardize HTTPException responses into the same JSON envelope."""
    request_id = request.headers.get("x-request-id", "unknown")

    if isinstance(exc.detail, dict):
        error = exc.detail.get("error", f"http_{exc.status_code}")
        message = exc.detail.get("message", str(exc.detail))
        detail: Any = exc.detail.get("detail")
    else:
        error = f"http_{exc.status_code}"
        message = str(exc.detail)
        detail = exc.detail

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": error,
            "message": message,
            "detail": detail,
            "request_id": request_id,
        },
        headers=dict(exc.headers or {}),
    )
