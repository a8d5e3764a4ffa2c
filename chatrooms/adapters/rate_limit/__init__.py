"""Rate limiting adapters.

A single increment-first counter limiter backs every quota in the service:
chat burst control, privileged feature quotas and per-route limits.
"""

from chatrooms.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from chatrooms.adapters.rate_limit.counter import CounterRateLimiter

__all__ = ["AbstractRateLimiter", "CounterRateLimiter", "RateLimitResult"]
