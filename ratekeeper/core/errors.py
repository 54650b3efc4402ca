"""Library-level exception types.

Errors carry a stable code plus optional structured details so callers can
log or map them without parsing messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers."""

    code: str
    message: str
    hint: str
    min_value: int
    max_value: int
    actual_value: Any
    operation: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for ratekeeper failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when an argument cannot be used by the core."""


class NotInitializedError(AppError):
    """Raised when a store operation runs before ``init`` (or after ``shutdown``)."""


class InvalidSubnetSizeError(ValidationAppError):
    """Raised when an IPv6 prefix length outside 1-128 is requested."""
