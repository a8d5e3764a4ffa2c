from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from chatrooms.adapters.rate_limit import CounterRateLimiter
from chatrooms.core.auth import Identity, parse_bearer, require_identity
from chatrooms.core.dependencies import get_quota_service, get_rate_limiter
from chatrooms.core.rate_limit import get_client_ip, rate_limit_error
from chatrooms.schemas.rate_limit import LimiterResultResponse, RateLimitCheckCommand
from chatrooms.services.quota_service import QuotaService
from chatrooms.utils.keys import make_key

router = APIRouter(tags=["Quota"])


@router.post("/rate-limit/check", response_model=LimiterResultResponse)
def check_rate_limit(
    command: RateLimitCheckCommand,
    identity: Annotated[Identity, Depends(require_identity)],
    limiter: Annotated[CounterRateLimiter, Depends(get_rate_limiter)],
) -> LimiterResultResponse:
    """Count one hit against a caller-defined key.

    Keys live in their own ``rl:ext`` namespace so callers cannot touch the
    chat burst or quota counters. A denied check still answers 200 with
    ``allowed: false``; the caller decides what to do with it.
    """
    result = limiter.check(
        make_key(["rl", "ext", command.key]),
        window_seconds=command.window_seconds,
        limit=command.limit,
    )
    return LimiterResultResponse.from_result(result)


@router.post("/ai/quota", response_model=LimiterResultResponse)
def consume_ai_quota(
    request: Request,
    quotas: Annotated[QuotaService, Depends(get_quota_service)],
    authorization: Annotated[str | None, Header()] = None,
    x_username: Annotated[str | None, Header(alias="X-Username")] = None,
) -> LimiterResultResponse:
    """Consume one privileged-feature use for the caller.

    Anonymous callers are counted per client IP, authenticated callers per
    username. Exhausted quotas, invalid tokens and an unverified admin
    identity all answer 429.
    """
    result = quotas.check_privileged(
        username=x_username,
        token=parse_bearer(authorization),
        client_ip=get_client_ip(request),
    )
    if not result.allowed:
        raise rate_limit_error(
            result,
            code="quota_exceeded",
            message="Usage limit reached. Please try again later.",
        )
    return LimiterResultResponse.from_result(result)
