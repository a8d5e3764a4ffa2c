"""Persistence of room records and the room index."""

from __future__ import annotations

import logging
import secrets

from pydantic import ValidationError

from chatrooms.adapters.store.base import AbstractStore
from chatrooms.schemas.rooms import Room
from chatrooms.utils import keys

logger = logging.getLogger(__name__)


def generate_room_id() -> str:
    return secrets.token_hex(16)


class RoomRepository:
    """Reads and writes ``Room`` JSON records.

    Malformed records are treated as absent rather than raised, so a single
    corrupt key cannot break room listing or lookups.
    """

    def __init__(self, store: AbstractStore) -> None:
        self._store = store

    def _parse(self, room_id: str, raw: str | None) -> Room | None:
        if not raw:
            return None
        try:
            return Room.model_validate_json(raw)
        except ValidationError:
            logger.warning("room.malformed_record", extra={"room_id": room_id})
            return None

    def get(self, room_id: str) -> Room | None:
        """Load a room record.

        Args:
            room_id: Validated room id.

        Returns:
            The room, or None when the key is missing or holds malformed JSON.
        """
        return self._parse(room_id, self._store.get(keys.room_key(room_id)))

    def save(self, room: Room) -> None:
        """Overwrite the room record with camelCase JSON (last writer wins)."""
        self._store.set(keys.room_key(room.id), room.model_dump_json(by_alias=True))

    def register(self, room_id: str) -> None:
        self._store.sadd(keys.ROOMS_SET, room_id)

    def all_ids(self) -> list[str]:
        """Registered room ids, sorted for stable listings."""
        return sorted(self._store.smembers(keys.ROOMS_SET))

    def list_all(self) -> list[Room]:
        """Load every registered room.

        Returns:
            Rooms in id order. Ids whose record is missing or malformed are
            skipped, so the index may briefly name rooms that are gone.
        """
        rooms: list[Room] = []
        for room_id in self.all_ids():
            room = self.get(room_id)
            if room is not None:
                rooms.append(room)
        return rooms

    def delete_with_data(self, room_id: str) -> list:
        """Delete room record, message log, legacy users set, presence and index entry.

        Sent as one best-effort batch: every command is attempted, none is
        rolled back if another fails.

        Args:
            room_id: Room to remove.

        Returns:
            Per-command results; a failed command leaves its
            ``StoreAppError`` in place of a count.
        """
        return (
            self._store.batch()
            .delete(
                keys.room_key(room_id),
                keys.messages_key(room_id),
                keys.room_users_key(room_id),
                keys.presence_key(room_id),
            )
            .srem(keys.ROOMS_SET, room_id)
            .execute()
        )
