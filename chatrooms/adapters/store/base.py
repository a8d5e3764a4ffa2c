"""Key-value store interface.

Services depend on this abstraction (not on redis-py directly) so the same
code runs against Redis in production and against the in-memory backend in
development and tests. The surface is deliberately the small subset of Redis
commands the chat core needs; each method maps to one atomic store command.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class StoreBatch(ABC):
    """Commands queued and sent to the store together.

    Execution is best-effort: commands are attempted together but a failure
    of one does not roll back the others.
    """

    @abstractmethod
    def delete(self, *keys: str) -> "StoreBatch":
        raise NotImplementedError

    @abstractmethod
    def srem(self, key: str, member: str) -> "StoreBatch":
        raise NotImplementedError

    @abstractmethod
    def execute(self) -> list:
        """Send the queued commands and return their individual results."""
        raise NotImplementedError


class AbstractStore(ABC):
    """Interface for the shared key-value store."""

    # -- strings --------------------------------------------------------

    @abstractmethod
    def get(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_nx(self, key: str, value: str, *, ex: int | None = None) -> bool:
        """Set only if absent. Returns True when this call created the key."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, *keys: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def exists(self, key: str) -> bool:
        raise NotImplementedError

    # -- counters -------------------------------------------------------

    @abstractmethod
    def incr(self, key: str) -> int:
        """Atomically increment and return the new value (missing key = 0)."""
        raise NotImplementedError

    @abstractmethod
    def expire(self, key: str, seconds: int) -> bool:
        raise NotImplementedError

    @abstractmethod
    def ttl(self, key: str) -> int:
        """Remaining seconds; -1 when the key has no expiry, -2 when missing."""
        raise NotImplementedError

    # -- lists (head = newest) -----------------------------------------

    @abstractmethod
    def lpush(self, key: str, value: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def ltrim(self, key: str, start: int, stop: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def lrange(self, key: str, start: int, stop: int) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def lrem(self, key: str, count: int, value: str) -> int:
        raise NotImplementedError

    # -- sorted sets ----------------------------------------------------

    @abstractmethod
    def zadd(self, key: str, member: str, score: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def zrem(self, key: str, member: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def zrange_with_scores(self, key: str) -> list[tuple[str, float]]:
        """All members ordered by ascending score."""
        raise NotImplementedError

    @abstractmethod
    def zrem_by_score(self, key: str, min_score: float, max_score: float) -> int:
        raise NotImplementedError

    # -- sets -----------------------------------------------------------

    @abstractmethod
    def sadd(self, key: str, member: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def srem(self, key: str, member: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def smembers(self, key: str) -> set[str]:
        raise NotImplementedError

    # -- misc -----------------------------------------------------------

    @abstractmethod
    def publish(self, channel: str, message: str) -> int:
        """Fan a message out to subscribers; returns the receiver count."""
        raise NotImplementedError

    @abstractmethod
    def batch(self) -> StoreBatch:
        raise NotImplementedError

    def ping(self) -> bool:
        return True
