"""Rate limiter interfaces.

Callers (chat burst guard, privileged quotas, route quotas for unrelated
endpoints) depend on this abstraction rather than on the storage details.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a limiter check.

    Attributes:
        allowed: Whether the request may proceed.
        count: Counter value after this call.
        limit: Max hits per window.
        remaining: Hits left in the current window (0 when blocked).
        window_seconds: Window length the counter was created with.
        reset_seconds: Seconds until the counter expires.
    """

    allowed: bool
    count: int
    limit: int
    remaining: int
    window_seconds: int
    reset_seconds: int

    @property
    def retry_after_seconds(self) -> int | None:
        """Suggested wait before retrying; None when the call was allowed."""
        if self.allowed:
            return None
        return max(1, self.reset_seconds)


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, key: str, *, window_seconds: int, limit: int) -> RateLimitResult:
        """Count one hit against ``key`` and decide whether it is allowed.

        Args:
            key: Namespaced counter key (scope + identifier).
            window_seconds: Lifetime of the counter, fixed when it is created.
            limit: Maximum hits allowed within the window.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError
