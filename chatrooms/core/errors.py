"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    room_id: str
    max_length: int
    actual_length: int
    retry_after: int
    limit: int
    remaining: int
    reset_seconds: int
    operation: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

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
    """Raised when a room id, username or message content is malformed."""


class AuthenticationAppError(AppError):
    """Raised when credentials are missing/invalid or the identity is profane."""


class AuthorizationAppError(AppError):
    """Raised when a valid identity lacks privilege for the target room."""


class NotFoundAppError(AppError):
    """Raised when a room or message does not exist."""


class RateLimitAppError(AppError):
    """Raised when a limiter denies the request.

    ``details["retry_after"]`` carries the seconds until the window resets.
    """

    @property
    def retry_after(self) -> int:
        return int((self.details or {}).get("retry_after", 0))


class StoreAppError(AppError):
    """Raised when the key-value store fails or returns malformed data."""
