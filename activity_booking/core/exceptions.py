# activity_booking/core/exceptions.py
"""
Structured error types for the booking engine and their HTTP rendering.

Every business-rule rejection is an ``AppError`` subclass carrying a stable
``code`` so the presentation layer can render a specific message. Handlers
registered in ``main.py`` turn them into JSON responses of the form::

    {"error": {"code": "SESSION_FULL", "message": "...", "details": {...}}}

``InvariantViolation`` is deliberately *not* an ``AppError``: business code
catches ``AppError`` and must never swallow a bookkeeping bug.
"""

import logging
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base application error with structured information."""

    code = "APP_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        retry_after: Optional[int] = None,
    ):
        self.message = message
        self.details = details or {}
        self.retry_after = retry_after
        super().__init__(self.message)


# --- Caller input ---------------------------------------------------------


class ValidationError(AppError):
    """Malformed or incomplete input. Never retried automatically."""
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class RoleNotOffered(ValidationError):
    code = "ROLE_NOT_OFFERED"


class InvalidExpiry(ValidationError):
    code = "INVALID_EXPIRY"


class NotFound(AppError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


# --- Business-rule rejections -------------------------------------------


class AlreadyBooked(AppError):
    code = "ALREADY_BOOKED"
    status_code = status.HTTP_409_CONFLICT


class NotBooked(AppError):
    code = "NOT_BOOKED"
    status_code = status.HTTP_404_NOT_FOUND


class SessionFull(AppError):
    code = "SESSION_FULL"
    status_code = status.HTTP_409_CONFLICT


class TimingClash(AppError):
    code = "TIMING_CLASH"
    status_code = status.HTTP_409_CONFLICT


class AccessibilityMismatch(AppError):
    code = "ACCESSIBILITY_MISMATCH"
    status_code = status.HTTP_409_CONFLICT


class CapacityExhausted(AppError):
    """Raised by the capacity ledger; the booking resolver reports it as SessionFull."""
    code = "CAPACITY_EXHAUSTED"
    status_code = status.HTTP_409_CONFLICT


# --- Staff edit guards ----------------------------------------------------


class CapacityBelowDemand(AppError):
    code = "CAPACITY_BELOW_DEMAND"
    status_code = status.HTTP_409_CONFLICT


class HasBookings(AppError):
    code = "HAS_BOOKINGS"
    status_code = status.HTTP_409_CONFLICT


# --- Transient ------------------------------------------------------------


class Busy(AppError):
    """Contention did not resolve within the bounded retries. Safe to retry."""
    code = "BUSY"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str, details: Optional[dict] = None, retry_after: int = 1):
        super().__init__(message, details=details, retry_after=retry_after)


# --- Defects --------------------------------------------------------------


class InvariantViolation(RuntimeError):
    """A bookkeeping invariant was broken. Indicates a bug; fails closed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)
        logger.critical(f"Invariant violation: {message}", extra=self.details)


# --- FastAPI handlers -----------------------------------------------------


def app_error_handler(request: Request, error: AppError) -> JSONResponse:
    """Render a structured application error."""
    logger.info(
        f"Request rejected with {error.code}: {error.message}",
        extra={"path": request.url.path, "method": request.method, **error.details},
    )

    headers = {}
    if error.retry_after:
        headers["Retry-After"] = str(error.retry_after)

    return JSONResponse(
        status_code=error.status_code,
        content={
            "error": {
                "code": error.code,
                "message": error.message,
                "details": error.details,
            }
        },
        headers=headers,
    )


def invariant_violation_handler(request: Request, error: InvariantViolation) -> JSONResponse:
    """Fail closed without leaking internals; the violation was logged at CRITICAL."""
    logger.error(
        f"Invariant violation surfaced on {request.method} {request.url.path}",
        extra=error.details,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INVARIANT_VIOLATION",
                "message": "An internal consistency check failed. The operation was not applied.",
                "details": {},
            }
        },
    )
