"""In-memory store backend.

Notes:
- Per-process only: every worker gets its own independent data.
- Thread-safe: each method holds one lock, mirroring the fact that every
  Redis command is atomic on its own. Multi-command sequences are *not*
  atomic here either.
- Expiry is evaluated lazily against an injectable clock so tests can move
  time forward deterministically.
- There are no subscribers. Published messages are kept in a bounded buffer
  (oldest dropped first) for inspection.
"""

from __future__ import annotations

import fnmatch
import math
import threading
import time
from collections import deque
from typing import Any, Callable

from chatrooms.adapters.store.base import AbstractStore, StoreBatch
from chatrooms.core.errors import StoreAppError

DEFAULT_PUBLISHED_LIMIT = 1000


class InMemoryBatch(StoreBatch):
    def __init__(self, store: "InMemoryStore") -> None:
        self._store = store
        self._commands: list[Callable[[], Any]] = []

    def delete(self, *keys: str) -> "InMemoryBatch":
        self._commands.append(lambda: self._store.delete(*keys))
        return self

    def srem(self, key: str, member: str) -> "InMemoryBatch":
        self._commands.append(lambda: self._store.srem(key, member))
        return self

    def execute(self) -> list:
        results: list = []
        for command in self._commands:
            try:
                results.append(command())
            except StoreAppError as exc:
                results.append(exc)
        self._commands.clear()
        return results


class InMemoryStore(AbstractStore):
    """Dictionary-backed store emulating the Redis commands the core uses."""

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        published_limit: int = DEFAULT_PUBLISHED_LIMIT,
    ) -> None:
        """Create an empty store.

        Args:
            clock: Returns the current time in epoch seconds.
            published_limit: Number of most recent published messages kept.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._data: dict[str, Any] = {}
        self._expires_at: dict[str, float] = {}
        self.published: deque[tuple[str, str]] = deque(maxlen=published_limit)

    # -- internals ------------------------------------------------------

    def _purge_if_expired(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and self._clock() >= deadline:
            self._data.pop(key, None)
            self._expires_at.pop(key, None)

    def _read(self, key: str, kind: type) -> Any:
        self._purge_if_expired(key)
        value = self._data.get(key)
        if value is not None and not isinstance(value, kind):
            raise StoreAppError(
                code="store_wrong_type",
                message=f"Operation against a key holding the wrong kind of value: {key}",
            )
        return value

    def _write(self, key: str, value: Any) -> None:
        self._data[key] = value

    def _drop_if_empty(self, key: str) -> None:
        if not self._data.get(key):
            self._data.pop(key, None)
            self._expires_at.pop(key, None)

    @staticmethod
    def _bounds(start: int, stop: int, length: int) -> tuple[int, int]:
        # Redis list ranges are inclusive and accept negative offsets
        if start < 0:
            start = max(0, length + start)
        if stop < 0:
            stop = length + stop
        return start, stop + 1

    # -- strings --------------------------------------------------------

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read(key, str)

    def set(self, key: str, value: str, *, ex: int | None = None) -> None:
        with self._lock:
            self._data[key] = str(value)
            if ex:
                self._expires_at[key] = self._clock() + ex
            else:
                self._expires_at.pop(key, None)

    def set_nx(self, key: str, value: str, *, ex: int | None = None) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            if key in self._data:
                return False
            self.set(key, value, ex=ex)
            return True

    def delete(self, *keys: str) -> int:
        with self._lock:
            removed = 0
            for key in keys:
                self._purge_if_expired(key)
                if key in self._data:
                    removed += 1
                self._data.pop(key, None)
                self._expires_at.pop(key, None)
            return removed

    def exists(self, key: str) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            return key in self._data

    # -- counters -------------------------------------------------------

    def incr(self, key: str) -> int:
        with self._lock:
            current = self._read(key, str)
            try:
                value = int(current or 0) + 1
            except ValueError as exc:
                raise StoreAppError(
                    code="store_not_integer",
                    message=f"Value at {key} is not an integer",
                ) from exc
            self._data[key] = str(value)
            return value

    def expire(self, key: str, seconds: int) -> bool:
        with self._lock:
            self._purge_if_expired(key)
            if key not in self._data:
                return False
            self._expires_at[key] = self._clock() + seconds
            return True

    def ttl(self, key: str) -> int:
        with self._lock:
            self._purge_if_expired(key)
            if key not in self._data:
                return -2
            deadline = self._expires_at.get(key)
            if deadline is None:
                return -1
            return max(0, int(math.ceil(deadline - self._clock())))

    # -- lists ----------------------------------------------------------

    def lpush(self, key: str, value: str) -> int:
        with self._lock:
            items = self._read(key, list)
            if items is None:
                items = []
                self._write(key, items)
            items.insert(0, value)
            return len(items)

    def ltrim(self, key: str, start: int, stop: int) -> None:
        with self._lock:
            items = self._read(key, list)
            if items is None:
                return
            begin, end = self._bounds(start, stop, len(items))
            items[:] = items[begin:end]
            self._drop_if_empty(key)

    def lrange(self, key: str, start: int, stop: int) -> list[str]:
        with self._lock:
            items = self._read(key, list) or []
            begin, end = self._bounds(start, stop, len(items))
            return list(items[begin:end])

    def lrem(self, key: str, count: int, value: str) -> int:
        with self._lock:
            items = self._read(key, list)
            if not items:
                return 0
            removed = 0
            kept: list[str] = []
            for item in items:
                if item == value and (count == 0 or removed < abs(count)):
                    removed += 1
                    continue
                kept.append(item)
            items[:] = kept
            self._drop_if_empty(key)
            return removed

    # -- sorted sets ----------------------------------------------------

    def zadd(self, key: str, member: str, score: float) -> None:
        with self._lock:
            members = self._read(key, dict)
            if members is None:
                members = {}
                self._write(key, members)
            members[member] = float(score)

    def zrem(self, key: str, member: str) -> int:
        with self._lock:
            members = self._read(key, dict)
            if not members or member not in members:
                return 0
            del members[member]
            self._drop_if_empty(key)
            return 1

    def zrange_with_scores(self, key: str) -> list[tuple[str, float]]:
        with self._lock:
            members = self._read(key, dict) or {}
            return sorted(members.items(), key=lambda item: (item[1], item[0]))

    def zrem_by_score(self, key: str, min_score: float, max_score: float) -> int:
        with self._lock:
            members = self._read(key, dict)
            if not members:
                return 0
            doomed = [m for m, s in members.items() if min_score <= s <= max_score]
            for member in doomed:
                del members[member]
            self._drop_if_empty(key)
            return len(doomed)

    # -- sets -----------------------------------------------------------

    def sadd(self, key: str, member: str) -> int:
        with self._lock:
            members = self._read(key, set)
            if members is None:
                members = set()
                self._write(key, members)
            if member in members:
                return 0
            members.add(member)
            return 1

    def srem(self, key: str, member: str) -> int:
        with self._lock:
            members = self._read(key, set)
            if not members or member not in members:
                return 0
            members.discard(member)
            self._drop_if_empty(key)
            return 1

    def smembers(self, key: str) -> set[str]:
        with self._lock:
            return set(self._read(key, set) or ())

    # -- misc -----------------------------------------------------------

    def publish(self, channel: str, message: str) -> int:
        with self._lock:
            self.published.append((channel, message))
            return 0

    def batch(self) -> InMemoryBatch:
        return InMemoryBatch(self)

    def keys(self, pattern: str = "*") -> list[str]:
        """Live keys matching a glob pattern (debug/test helper)."""

        with self._lock:
            for key in list(self._data):
                self._purge_if_expired(key)
            return sorted(k for k in self._data if fnmatch.fnmatchcase(k, pattern))
