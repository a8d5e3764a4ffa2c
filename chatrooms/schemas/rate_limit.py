"""Payloads for the standalone limiter and quota endpoints."""

from __future__ import annotations

from pydantic import Field

from chatrooms.adapters.rate_limit.base import RateLimitResult
from chatrooms.schemas.rooms import CamelModel


class RateLimitCheckCommand(CamelModel):
    key: str = Field(min_length=1, max_length=256)
    window_seconds: int = Field(alias="windowSeconds", ge=1, le=7 * 24 * 60 * 60)
    limit: int = Field(ge=1)


class LimiterResultResponse(CamelModel):
    allowed: bool
    count: int
    limit: int
    remaining: int
    window_seconds: int = Field(alias="windowSeconds")
    reset_seconds: int = Field(alias="resetSeconds")

    @classmethod
    def from_result(cls, result: RateLimitResult) -> "LimiterResultResponse":
        return cls(
            allowed=result.allowed,
            count=result.count,
            limit=result.limit,
            remaining=result.remaining,
            window_seconds=result.window_seconds,
            reset_seconds=result.reset_seconds,
        )
