"""Per-room, per-user burst protection for public chat rooms.

Three checks must all pass before a message is accepted:
- a short window counter (a handful of messages within seconds),
- a long window counter (a larger budget per minute),
- a minimum interval since the previous message, kept as a separately
  stored epoch-second timestamp.

Burst control is a non-critical protection, so store failures fail open:
the message goes through and a warning is logged.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from chatrooms.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from chatrooms.adapters.rate_limit.counter import CounterRateLimiter
from chatrooms.adapters.store.base import AbstractStore
from chatrooms.core.config import ChatSettings, settings
from chatrooms.core.errors import RateLimitAppError, StoreAppError
from chatrooms.core.logging import hash_identifier
from chatrooms.utils import keys

logger = logging.getLogger(__name__)


class BurstGuard:
    def __init__(
        self,
        store: AbstractStore,
        *,
        limiter: AbstractRateLimiter | None = None,
        chat_settings: ChatSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._limiter = limiter or CounterRateLimiter(store)
        self._cfg = chat_settings or settings.chat
        self._clock = clock

    def _deny(self, code: str, message: str, result: RateLimitResult | None, retry_after: int) -> RateLimitAppError:
        details = {"retry_after": max(1, retry_after)}
        if result is not None:
            details.update(limit=result.limit, remaining=result.remaining, reset_seconds=result.reset_seconds)
        return RateLimitAppError(code=code, message=message, details=details)

    def check(self, room_id: str, username: str) -> None:
        """Count one message; raise ``RateLimitAppError`` when any check fails."""
        try:
            self._check(room_id, username)
        except StoreAppError as exc:
            logger.warning(
                "burst_guard.store_failed_open",
                extra={"room_id": room_id, "error_code": exc.code},
            )

    def _check(self, room_id: str, username: str) -> None:
        cfg = self._cfg
        fmt = {"room_id": room_id, "username": username}

        short = self._limiter.check(
            keys.BURST_SHORT_KEY.format(**fmt),
            window_seconds=cfg.burst_short_window_seconds,
            limit=cfg.burst_short_limit,
        )
        if not short.allowed:
            self._log_denied("short_window", room_id, username)
            raise self._deny(
                "burst_short_window",
                "You're sending messages too quickly.",
                short,
                short.reset_seconds,
            )

        long = self._limiter.check(
            keys.BURST_LONG_KEY.format(**fmt),
            window_seconds=cfg.burst_long_window_seconds,
            limit=cfg.burst_long_limit,
        )
        if not long.allowed:
            self._log_denied("long_window", room_id, username)
            raise self._deny(
                "burst_long_window",
                "Too many messages. Please wait.",
                long,
                long.reset_seconds,
            )

        last_key = keys.BURST_LAST_KEY.format(**fmt)
        now_seconds = int(self._clock())
        last_sent = self._store.get(last_key)
        if last_sent:
            try:
                delta = now_seconds - int(last_sent)
            except ValueError:
                delta = cfg.min_interval_seconds
            if delta < cfg.min_interval_seconds:
                self._log_denied("min_interval", room_id, username)
                raise self._deny(
                    "burst_min_interval",
                    "Please wait before sending another message.",
                    None,
                    cfg.min_interval_seconds - delta,
                )
        self._store.set(last_key, str(now_seconds), ex=cfg.burst_long_window_seconds)

    @staticmethod
    def _log_denied(check: str, room_id: str, username: str) -> None:
        logger.warning(
            "rate_limit.burst_exceeded",
            extra={"check": check, "room_id": room_id, "user_hash": hash_identifier(username)},
        )
