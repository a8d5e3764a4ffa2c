"""Route-level quotas and client IP resolution for the HTTP layer.

Route quotas protect generic surfaces (room creation and similar) with the
shared increment-first counter. They are non-critical: if the store is
unreachable the request goes through and a warning is logged.

Usage:
    @router.post(
        "/rooms",
        dependencies=[Depends(enforce_route_limit("create-room", window_seconds=3600, limit=10))],
    )
"""

from __future__ import annotations

import logging
from typing import Annotated, Callable

from fastapi import Depends, Request

from chatrooms.adapters.rate_limit import CounterRateLimiter, RateLimitResult
from chatrooms.core.auth import Identity, optional_identity
from chatrooms.core.config import settings
from chatrooms.core.dependencies import get_rate_limiter
from chatrooms.core.errors import RateLimitAppError, StoreAppError
from chatrooms.core.logging import hash_identifier
from chatrooms.utils.keys import make_key

logger = logging.getLogger(__name__)

_FORWARDED_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")
_LOOPBACK = {"127.0.0.1", "::1", "localhost"}


def _normalize_ip(value: str) -> str:
    ip = value.strip()
    if ip.startswith("::ffff:"):
        ip = ip[len("::ffff:"):]
    if ip in _LOOPBACK:
        return "localhost-dev"
    return ip


def get_client_ip(request: Request) -> str:
    """Best-effort client address: proxy headers first, then the socket peer."""
    for header in _FORWARDED_HEADERS:
        raw = request.headers.get(header)
        if raw:
            first = raw.split(",")[0].strip()
            if first:
                return _normalize_ip(first)
    if request.client and request.client.host:
        return _normalize_ip(request.client.host)
    return "unknown-ip"


def rate_limit_error(result: RateLimitResult, *, code: str, message: str) -> RateLimitAppError:
    """Build the 429 error carrying retry and limit details for the handler."""
    return RateLimitAppError(
        code=code,
        message=message,
        details={
            "retry_after": result.retry_after_seconds or result.reset_seconds,
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_seconds": result.reset_seconds,
        },
    )


def enforce_route_limit(
    scope: str,
    *,
    window_seconds: int,
    limit: int,
) -> Callable[..., None]:
    """Create a dependency that counts one request against ``scope``.

    The identifier is the verified username when present, otherwise the
    client IP.
    """

    def dependency(
        request: Request,
        limiter: Annotated[CounterRateLimiter, Depends(get_rate_limiter)],
        identity: Annotated[Identity | None, Depends(optional_identity)],
    ) -> None:
        if not settings.quota.enabled:
            return

        if identity is not None:
            key_type, identifier = "user", identity.username
        else:
            key_type, identifier = "ip", get_client_ip(request)
        key = make_key(["rl", scope, key_type, identifier])

        try:
            result = limiter.check(key, window_seconds=window_seconds, limit=limit)
        except StoreAppError as exc:
            logger.warning(
                "rate_limit.store_failed_open",
                extra={"scope": scope, "error_code": exc.code},
            )
            return

        log_extra = {
            "scope": scope,
            "key_type": key_type,
            "key_hash": hash_identifier(key),
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": window_seconds,
        }
        if result.allowed:
            logger.debug("rate_limit.allowed", extra=log_extra)
            return

        logger.warning("rate_limit.exceeded", extra={**log_extra, "retry_after_s": result.retry_after_seconds})
        raise rate_limit_error(
            result,
            code="rate_limit_exceeded",
            message="Rate limit exceeded. Try again later.",
        )

    return dependency
