"""Translate backing-store failures into the domain error taxonomy."""

from typing import Any

from pdv.core.exceptions import AppError, ConflictError, InternalError, NotFoundError
from pdv.domain.repositories.store import StoreError, StoreResult

NO_ROWS_CODE = "PGRST116"
UNIQUE_VIOLATION_CODE = "23505"


def map_store_error(error: StoreError) -> AppError:
    """Map a store failure to NotFound, Conflict or Internal."""
    message = error.message or "Store error"
    lowered = message.lower()
    details = {"code": error.code} if error.code else None
    if error.code == NO_ROWS_CODE or "not found" in lowered:
        return NotFoundError(message, details)
    if error.code == UNIQUE_VIOLATION_CODE or "duplicate" in lowered:
        return ConflictError(message, details)
    return InternalError(message, details)


def unwrap(result: StoreResult) -> Any:
    """Return the result data or raise the mapped error. Empty data becomes []."""
    if result.error is not None:
        raise map_store_error(result.error)
    return result.data if result.data is not None else []


def unwrap_single(result: StoreResult, not_found_message: str = "Not found") -> Any:
    """Like unwrap, for single-row reads: zero rows or null data is NotFound."""
    if result.error is not None:
        if result.error.code == NO_ROWS_CODE:
            raise NotFoundError(not_found_message, {"code": NO_ROWS_CODE})
        raise map_store_error(result.error)
    if not result.data:
        raise NotFoundError(not_found_message)
    return result.data
