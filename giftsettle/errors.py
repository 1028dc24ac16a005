"""Settlement exceptions shared by the client, controller and sandbox API."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, Optional

DONATION_FAILED_MESSAGE = "Donation failed. Please try again."
GIFT_CARD_FAILED_MESSAGE = "Gift card failed. Please try again."
HISTORY_FAILED_MESSAGE = "Failed to load settlement history"


def service_message(payload: Any, fallback: str) -> str:
    """Pick the user-facing message out of a service error body.

    Precedence is ``error``, then ``message``, then ``suggestion``. Anything
    that is not a non-empty string is skipped.
    """
    if isinstance(payload, dict):
        for key in ("error", "message", "suggestion"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return fallback


@dataclass(eq=False)
class SettlementError(Exception):
    """Base exception for predictable settlement failures."""

    code: str
    message: str
    status_code: int
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class NotFoundError(SettlementError):
    """Raised when a gift id does not resolve."""

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            code="GIFT_NOT_FOUND",
            message=message or "Gift not found",
            status_code=HTTPStatus.NOT_FOUND,
            details=details or {},
        )


class LoadError(SettlementError):
    """Raised when the gift snapshot could not be fetched; retryable."""

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            code="GIFT_LOAD_FAILED",
            message=message or "Failed to load gift",
            status_code=HTTPStatus.BAD_GATEWAY,
            details=details or {},
        )


class ValidationError(SettlementError):
    """Raised for missing or inconsistent input, before any network call."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=HTTPStatus.BAD_REQUEST,
            details=details or {},
        )


class ServiceError(SettlementError):
    """Raised when an external service answered with a non-success status.

    Timeouts and connection failures are reported as a ServiceError with
    status_code 504 / 503 so callers handle every transport failure the same
    way.
    """

    def __init__(
        self,
        message: str,
        status_code: int = HTTPStatus.BAD_GATEWAY,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            code="SERVICE_ERROR",
            message=message,
            status_code=status_code,
            details=details or {},
        )


class SessionStateError(SettlementError):
    """Raised when the settlement session cannot accept an operation.

    Codes:
        GIFT_NOT_LOADED: no successful load_gift yet
        SESSION_CLOSED: a disposition already completed for this balance
        OPERATION_IN_PROGRESS: another disposition is in flight
        VIEW_LOCKED: sub-view selection outside the disposition menu
    """

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            code=code,
            message=message,
            status_code=HTTPStatus.CONFLICT,
            details=details or {},
        )
