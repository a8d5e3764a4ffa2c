"""Redis store backend (redis-py, synchronous client).

Every method issues a single Redis command, so each call inherits Redis'
per-command atomicity. Connection and protocol failures surface as
``StoreAppError`` so callers can apply their own fail-open/fail-closed policy
without importing redis.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

import redis

from chatrooms.adapters.store.base import AbstractStore, StoreBatch
from chatrooms.core.errors import StoreAppError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _store_error(operation: str, exc: Exception) -> StoreAppError:
    return StoreAppError(
        code="store_unavailable",
        message=f"Store command failed: {operation}",
        details={"operation": operation, "hint": type(exc).__name__},
    )


class RedisBatch(StoreBatch):
    """Non-transactional pipeline: one round trip, no MULTI/EXEC."""

    def __init__(self, client: redis.Redis) -> None:
        self._pipeline = client.pipeline(transaction=False)

    def delete(self, *keys: str) -> "RedisBatch":
        for key in keys:
            self._pipeline.delete(key)
        return self

    def srem(self, key: str, member: str) -> "RedisBatch":
        self._pipeline.srem(key, member)
        return self

    def execute(self) -> list:
        try:
            # raise_on_error=False keeps the other commands' results when one fails
            return self._pipeline.execute(raise_on_error=False)
        except redis.RedisError as exc:
            logger.error("store.batch_failed", extra={"error_type": type(exc).__name__})
            raise _store_error("batch", exc) from exc


class RedisStore(AbstractStore):
    """Store backed by a Redis server."""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: float | None = None) -> "RedisStore":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        return cls(client)

    @property
    def client(self) -> redis.Redis:
        return self._client

    def _call(self, operation: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except redis.RedisError as exc:
            logger.error(
                "store.command_failed",
                extra={"operation": operation, "error_type": type(exc).__name__},
            )
            raise _store_error(operation, exc) from exc

    def get(self, key: str) -> str | None:
        return self._call("get", self._client.get, key)

    def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        self._call("set", self._client.set, key, value, ex=ex)

    def set_nx(self, key: str, value: str, *, ex: int | None = None) -> bool:
        return bool(self._call("set_nx", self._client.set, key, value, ex=ex, nx=True))

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(self._call("delete", self._client.delete, *keys))

    def exists(self, key: str) -> bool:
        return bool(self._call("exists", self._client.exists, key))

    def incr(self, key: str) -> int:
        return int(self._call("incr", self._client.incr, key))

    def expire(self, key: str, seconds: int) -> bool:
        return bool(self._call("expire", self._client.expire, key, seconds))

    def ttl(self, key: str) -> int:
        return int(self._call("ttl", self._client.ttl, key))

    def lpush(self, key: str, value: str) -> int:
        return int(self._call("lpush", self._client.lpush, key, value))

    def ltrim(self, key: str, start: int, stop: int) -> None:
        self._call("ltrim", self._client.ltrim, key, start, stop)

    def lrange(self, key: str, start: int, stop: int) -> list[str]:
        return list(self._call("lrange", self._client.lrange, key, start, stop))

    def lrem(self, key: str, count: int, value: str) -> int:
        return int(self._call("lrem", self._client.lrem, key, count, value))

    def zadd(self, key: str, member: str, score: float) -> None:
        self._call("zadd", self._client.zadd, key, {member: score})

    def zrem(self, key: str, member: str) -> int:
        return int(self._call("zrem", self._client.zrem, key, member))

    def zrange_with_scores(self, key: str) -> list[tuple[str, float]]:
        rows = self._call("zrange", self._client.zrange, key, 0, -1, withscores=True)
        return [(member, float(score)) for member, score in rows]

    def zrem_by_score(self, key: str, min_score: float, max_score: float) -> int:
        return int(self._call("zremrangebyscore", self._client.zremrangebyscore, key, min_score, max_score))

    def sadd(self, key: str, member: str) -> int:
        return int(self._call("sadd", self._client.sadd, key, member))

    def srem(self, key: str, member: str) -> int:
        return int(self._call("srem", self._client.srem, key, member))

    def smembers(self, key: str) -> set[str]:
        return set(self._call("smembers", self._client.smembers, key))

    def publish(self, channel: str, message: str) -> int:
        return int(self._call("publish", self._client.publish, channel, message))

    def batch(self) -> RedisBatch:
        return RedisBatch(self._client)

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            logger.warning("store.ping_failed")
            return False
