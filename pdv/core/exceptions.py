"""
Global exception handling for the application.
Every domain failure is one of four kinds: validation, not found, conflict
or internal. Responses follow a single JSON envelope.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or inconsistent input (price mismatch, bad totals, ...)."""
    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_422_UNPROCESSABLE_ENTITY, details)


class NotFoundError(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class ConflictError(AppError):
    """Uniqueness violation."""
    def __init__(self, message: str = "Conflict", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class InternalError(AppError):
    """Any store or workflow failure the caller cannot correct."""
    def __init__(self, message: str = "Internal error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class SilentRejectionError(InternalError):
    """The store accepted a write on an existing row but changed nothing.

    Usually an access policy (row level security, trigger) blocking the write.
    """
    def __init__(self, message: str = "Write silently rejected by the store", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class CompensationError(InternalError):
    """A workflow step failed and undoing the completed steps failed too."""
    def __init__(self, original: Exception, compensation_errors: list[Exception], step: str):
        self.original = original
        self.compensation_errors = compensation_errors
        message = (
            f"Step '{step}' failed ({original}) and rollback did not complete: "
            + "; ".join(str(e) for e in compensation_errors)
        )
        super().__init__(
            message,
            {
                "step": step,
                "original_error": str(original),
                "compensation_errors": [str(e) for e in compensation_errors],
            },
        )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""

    if isinstance(exc, AppError):
        if exc.status_code >= 500:
            logger.error("Request failed", error=exc.__class__.__name__, message=exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": exc.__class__.__name__,
                    "message": exc.message,
                    "details": exc.details,
                    "path": request.url.path,
                }
            },
        )

    logger.exception("Unexpected error occurred", path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "InternalServerError",
                "message": "An unexpected error occurred. Please try again later.",
                "path": request.url.path,
            }
        },
    )
