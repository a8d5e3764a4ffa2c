"""Fixed-window counter limiter on the shared store.

The check is increment-first: the counter is bumped with a single atomic
INCR and the decision is taken on the value INCR returned. Because the store
totally orders increments, two concurrent callers can never both see the
last free slot. A denied call leaves its increment in place.

The window starts with the hit that observes ``count == 1``; only that call
sets the expiry, so later hits never extend the window.
"""

from __future__ import annotations

import logging

from chatrooms.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from chatrooms.adapters.store.base import AbstractStore

logger = logging.getLogger(__name__)


class CounterRateLimiter(AbstractRateLimiter):
    """Increment-first limiter.

    Store failures propagate as ``StoreAppError``; whether that means
    "allow" or "deny" is decided by each caller.
    """

    def __init__(self, store: AbstractStore) -> None:
        self._store = store

    def check(self, key: str, *, window_seconds: int, limit: int) -> RateLimitResult:
        """Count one hit for ``key``.

        Raises:
            ValueError: If key is empty or window/limit are not positive.
            StoreAppError: If the store cannot be reached.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if limit < 1:
            raise ValueError("limit must be >= 1")

        count = self._store.incr(key)
        if count == 1:
            self._store.expire(key, window_seconds)

        ttl = self._store.ttl(key)
        reset_seconds = ttl if ttl > 0 else window_seconds

        if count > limit:
            logger.debug(
                "rate_limit.counter_exceeded",
                extra={"limit": limit, "count": count, "reset_s": reset_seconds},
            )
            return RateLimitResult(
                allowed=False,
                count=count,
                limit=limit,
                remaining=0,
                window_seconds=window_seconds,
                reset_seconds=reset_seconds,
            )

        return RateLimitResult(
            allowed=True,
            count=count,
            limit=limit,
            remaining=max(0, limit - count),
            window_seconds=window_seconds,
            reset_seconds=reset_seconds,
        )

    def peek(self, key: str, *, window_seconds: int, limit: int) -> RateLimitResult:
        """Report the counter without counting a hit."""
        raw = self._store.get(key)
        try:
            count = int(raw) if raw else 0
        except ValueError:
            count = 0
        ttl = self._store.ttl(key)
        return RateLimitResult(
            allowed=count <= limit,
            count=count,
            limit=limit,
            remaining=max(0, limit - count),
            window_seconds=window_seconds,
            reset_seconds=ttl if ttl > 0 else window_seconds,
        )
