# backend/climate_api/core/errors.py

from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Optional

from climate_api.core.request_context import get_request_id

logger = logging.getLogger("climate")


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMITED = "RATE_LIMITED"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppError(Exception):
    """
    Base for every error the API raises on purpose.

    The exception handler in main.py turns these into the standard error
    envelope, so route handlers just raise and never build error JSON.
    """

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, *, details: Any = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = ErrorCode.VALIDATION_ERROR
    default_message = "Validation failed"


class AuthenticationError(AppError):
    status_code = 401
    code = ErrorCode.UNAUTHORIZED
    default_message = "Authentication required"


class AuthorizationError(AppError):
    status_code = 403
    code = ErrorCode.FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    code = ErrorCode.NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    code = ErrorCode.CONFLICT
    default_message = "Conflict"


class RateLimitError(AppError):
    status_code = 429
    code = ErrorCode.RATE_LIMITED
    default_message = "Too many requests, please slow down."


class DatabaseError(AppError):
    status_code = 500
    code = ErrorCode.DATABASE_ERROR
    default_message = "Database operation failed"


class RequestIdFilter(logging.Filter):
    """
    Injects request_id into every LogRecord as `record.request_id`.
    Safe in non-request contexts (falls back to "-").
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        return True


def install_request_id_logging(
    logger_name: str = "climate",
    *,
    include_root: bool = True,
) -> None:
    """
    Attach RequestIdFilter so logs can include %(request_id)s in the formatter.
    Call once during startup, right after logging.basicConfig().
    """
    filt = RequestIdFilter()

    if include_root:
        logging.getLogger().addFilter(filt)

    logging.getLogger(logger_name).addFilter(filt)


def log_exception_with_context(
    message: str,
    *,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """
    Log the currently-handled exception with its stack trace and request context.

    Use inside exception handlers:

        except Exception:
            log_exception_with_context("Unhandled error", extra={"path": path})
            raise
    """
    payload: dict[str, Any] = {"request_id": get_request_id()}
    if extra:
        payload.update(extra)

    logger.exception("%s context=%s", message, payload)
