"""Quotas for privileged features (AI usage) and generic API surfaces.

Identity classes for the privileged quota:
- anonymous: keyed by client IP, small daily budget;
- authenticated: keyed by username, larger budget over a shorter window;
- bypass (the configured admin identity): not counted at all, but only
  with a verified token. Claiming the bypass identity without one is a hard
  denial, never a downgrade to the anonymous budget.

Privileged quotas fail closed: if the store cannot be reached the request
is denied. Generic route quotas fail open.
"""

from __future__ import annotations

import logging

from chatrooms.adapters.rate_limit.base import RateLimitResult
from chatrooms.adapters.rate_limit.counter import CounterRateLimiter
from chatrooms.adapters.store.base import AbstractStore
from chatrooms.core.config import settings
from chatrooms.core.errors import StoreAppError
from chatrooms.core.logging import hash_identifier
from chatrooms.services.token_service import TokenVerifier
from chatrooms.utils import keys

logger = logging.getLogger(__name__)


def _denied(limit: int, window_seconds: int, count: int = 0) -> RateLimitResult:
    return RateLimitResult(
        allowed=False,
        count=count,
        limit=limit,
        remaining=0,
        window_seconds=window_seconds,
        reset_seconds=window_seconds,
    )


class QuotaService:
    def __init__(
        self,
        store: AbstractStore,
        *,
        limiter: CounterRateLimiter | None = None,
        tokens: TokenVerifier | None = None,
    ) -> None:
        self._limiter = limiter or CounterRateLimiter(store)
        self._tokens = tokens or TokenVerifier(store)

    def check_limit(self, key: str, window_seconds: int, limit: int) -> RateLimitResult:
        """Standalone limiter primitive for arbitrary callers."""
        return self._limiter.check(key, window_seconds=window_seconds, limit=limit)

    def check_privileged(
        self,
        *,
        username: str | None,
        token: str | None,
        client_ip: str,
    ) -> RateLimitResult:
        """Count one privileged-feature use for the caller's identity class."""
        q = settings.quota
        admin = settings.chat.admin_username.lower()
        name = (username or "").strip().lower() or None

        try:
            verified = False
            if name and token:
                verified = self._tokens.verify(name, token)
                if not verified:
                    logger.warning("quota.invalid_token", extra={"user_hash": hash_identifier(name)})
                    return _denied(q.ai_anonymous_limit, q.ai_anonymous_window_seconds)

            if name == admin:
                if not verified:
                    logger.warning("quota.bypass_spoof_denied")
                    return _denied(q.ai_anonymous_limit, q.ai_anonymous_window_seconds)
                current = self._limiter.peek(
                    f"{keys.AI_QUOTA_PREFIX}:{name}",
                    window_seconds=q.ai_authenticated_window_seconds,
                    limit=q.ai_authenticated_limit,
                )
                return RateLimitResult(
                    allowed=True,
                    count=current.count,
                    limit=q.ai_authenticated_limit,
                    remaining=q.ai_authenticated_limit,
                    window_seconds=q.ai_authenticated_window_seconds,
                    reset_seconds=q.ai_authenticated_window_seconds,
                )

            if verified:
                key = f"{keys.AI_QUOTA_PREFIX}:{name}"
                limit, window = q.ai_authenticated_limit, q.ai_authenticated_window_seconds
            else:
                key = f"{keys.AI_QUOTA_PREFIX}:anon:{client_ip}"
                limit, window = q.ai_anonymous_limit, q.ai_anonymous_window_seconds

            result = self._limiter.check(key, window_seconds=window, limit=limit)
        except StoreAppError as exc:
            logger.error("quota.store_failed_closed", extra={"error_code": exc.code})
            return _denied(q.ai_anonymous_limit, q.ai_anonymous_window_seconds)

        logger.info(
            "quota.privileged_checked",
            extra={
                "identity_class": "authenticated" if verified else "anonymous",
                "allowed": result.allowed,
                "count": result.count,
                "limit": result.limit,
            },
        )
        return result
