"""Per-room presence tracking.

Presence lives in one sorted set per room (member = username, score = last
seen in epoch milliseconds). Staleness is resolved lazily: every read prunes
entries older than the threshold, so no background sweeper is needed. Each
user only ever writes their own entry, which keeps refreshes race-free.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from chatrooms.adapters.store.base import AbstractStore
from chatrooms.core.config import settings
from chatrooms.services.room_repository import RoomRepository
from chatrooms.utils import keys

logger = logging.getLogger(__name__)


class PresenceService:
    """Tracks who is active in which room.

    Attributes:
        stale_after_seconds: Entries not refreshed for this long are pruned.
    """

    def __init__(
        self,
        store: AbstractStore,
        *,
        stale_after_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock
        self.stale_after_seconds = stale_after_seconds or settings.chat.presence_ttl_seconds

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def refresh(self, room_id: str, username: str) -> None:
        """Upsert ``username``'s last-seen score to now."""
        self._store.zadd(keys.presence_key(room_id), username.lower(), self._now_ms())

    def remove(self, room_id: str, username: str) -> bool:
        """Drop one entry. Returns True only if the user was actually present."""
        removed = self._store.zrem(keys.presence_key(room_id), username.lower())
        return removed > 0

    def list_active(self, room_id: str) -> list[str]:
        """Fresh usernames, oldest activity first; stale entries are deleted.

        The prune removes by score range, so an entry refreshed between the
        read and the prune is never removed.
        """
        zkey = keys.presence_key(room_id)
        cutoff = self._now_ms() - self.stale_after_seconds * 1000

        entries = self._store.zrange_with_scores(zkey)
        fresh = [member for member, score in entries if score > cutoff]
        if len(fresh) != len(entries):
            pruned = self._store.zrem_by_score(zkey, 0, cutoff)
            logger.debug("presence.pruned", extra={"room_id": room_id, "pruned": pruned})
        return fresh

    def count_active(self, room_id: str) -> int:
        return len(self.list_active(room_id))

    def delete_all(self, room_id: str) -> None:
        self._store.delete(keys.presence_key(room_id))

    def refresh_user_count(self, room_id: str, rooms: RoomRepository) -> int:
        """Recount fresh entries and cache the count on the room record.

        Args:
            room_id: Room whose presence set is counted.
            rooms: Repository used to read and rewrite the room record.

        Returns:
            Number of active users. The count is returned even when the room
            record does not exist; nothing is written in that case.
        """
        count = self.count_active(room_id)
        room = rooms.get(room_id)
        if room is not None:
            rooms.save(room.model_copy(update={"user_count": count}))
        return count
