"""Per-room message log and the send/list/delete operations on it.

The log is a capped list, newest first. Messages are stored as JSON and are
never edited; deletion removes the exact stored payload.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Callable

from pydantic import ValidationError

from chatrooms.adapters.store.base import AbstractStore
from chatrooms.core.config import ChatSettings, settings
from chatrooms.core.errors import (
    AuthenticationAppError,
    NotFoundAppError,
    ValidationAppError,
)
from chatrooms.core.logging import hash_identifier
from chatrooms.schemas.messages import Message
from chatrooms.schemas.rooms import Room
from chatrooms.services.burst_guard import BurstGuard
from chatrooms.services.events import MessagePosted, RoomEvent
from chatrooms.services.presence_service import PresenceService
from chatrooms.services.room_repository import RoomRepository
from chatrooms.services.user_service import UserService
from chatrooms.utils import keys
from chatrooms.utils.validation import (
    assert_valid_room_id,
    is_profane_username,
    sanitize_message,
)

logger = logging.getLogger(__name__)


def _parse_message(raw: str) -> Message | None:
    try:
        return Message.model_validate_json(raw)
    except ValidationError:
        return None


class MessageStore:
    """Capped, newest-first message log per room."""

    def __init__(self, store: AbstractStore, *, chat_settings: ChatSettings | None = None) -> None:
        self._store = store
        self._cfg = chat_settings or settings.chat

    def clamp_limit(self, limit: int | None) -> int:
        """Default a missing limit and clamp the rest into the allowed range."""
        if limit is None:
            return self._cfg.default_list_limit
        return max(1, min(int(limit), self._cfg.max_list_limit))

    def list(self, room_id: str, limit: int | None = None) -> list[Message]:
        """Return the most recent messages of a room.

        Args:
            room_id: Room whose log is read.
            limit: Requested count, see ``clamp_limit``.

        Returns:
            Messages newest first. Malformed entries are skipped and logged.
        """
        count = self.clamp_limit(limit)
        raw_items = self._store.lrange(keys.messages_key(room_id), 0, count - 1)
        messages: list[Message] = []
        for raw in raw_items:
            message = _parse_message(raw)
            if message is None:
                logger.warning("message.malformed_entry", extra={"room_id": room_id})
                continue
            messages.append(message)
        return messages

    def append(self, room_id: str, message: Message) -> None:
        """Push ``message`` to the head of the log and trim it to the history size."""
        key = keys.messages_key(room_id)
        self._store.lpush(key, message.model_dump_json(by_alias=True))
        self._store.ltrim(key, 0, self._cfg.history_size - 1)

    def last_message(self, room_id: str) -> Message | None:
        """Newest message of the room, or None for an empty or malformed head."""
        head = self._store.lrange(keys.messages_key(room_id), 0, 0)
        if not head:
            return None
        return _parse_message(head[0])

    def delete(self, room_id: str, message_id: str) -> bool:
        """Remove one message by id.

        The exact stored payload is removed, so a concurrent append never
        shifts the target.

        Args:
            room_id: Room whose log is searched.
            message_id: Id of the message to drop.

        Returns:
            True if a message was removed, False if no message had that id.
        """
        key = keys.messages_key(room_id)
        for raw in self._store.lrange(key, 0, -1):
            message = _parse_message(raw)
            if message is not None and message.id == message_id:
                return self._store.lrem(key, 1, raw) > 0
        return False


@dataclass
class SendResult:
    message: Message
    events: list[RoomEvent] = field(default_factory=list)


class MessageService:
    def __init__(
        self,
        store: AbstractStore,
        *,
        messages: MessageStore | None = None,
        rooms: RoomRepository | None = None,
        users: UserService | None = None,
        presence: PresenceService | None = None,
        burst_guard: BurstGuard | None = None,
        chat_settings: ChatSettings | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cfg = chat_settings or settings.chat
        self._clock = clock
        self.messages = messages or MessageStore(store, chat_settings=self._cfg)
        self.rooms = rooms or RoomRepository(store)
        self.users = users or UserService(store, clock=clock)
        self.presence = presence or PresenceService(store, clock=clock)
        self.burst_guard = burst_guard or BurstGuard(store, chat_settings=self._cfg, clock=clock)

    def _require_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise NotFoundAppError(code="room_not_found", message="Room not found", details={"room_id": room_id})
        return room

    def send(self, room_id: str, username: str, raw_content: str | None) -> SendResult:
        """Post a message to a room.

        Raises:
            ValidationAppError: Bad room id, empty/oversized/duplicate content,
                or an invalid username.
            AuthenticationAppError: The identity is flagged as profane.
            NotFoundAppError: The room does not exist.
            RateLimitAppError: The burst guard rejected the message.
        """
        assert_valid_room_id(room_id)
        username = username.lower()
        if is_profane_username(username):
            raise AuthenticationAppError(code="unauthorized", message="Unauthorized")
        if not raw_content or not raw_content.strip():
            raise ValidationAppError(code="content_required", message="Content is required")

        content = sanitize_message(raw_content)
        room = self._require_room(room_id)

        if not room.is_private:
            self.burst_guard.check(room_id, username)

        user = self.users.ensure_exists(username)

        if len(content) > self._cfg.max_message_length:
            raise ValidationAppError(
                code="message_too_long",
                message=f"Message exceeds maximum length of {self._cfg.max_message_length}",
                details={"max_length": self._cfg.max_message_length, "actual_length": len(content)},
            )

        last = self.messages.last_message(room_id)
        if last is not None and last.username == username and last.content == content:
            raise ValidationAppError(code="duplicate_message", message="Duplicate message detected")

        message = Message(
            id=secrets.token_hex(16),
            room_id=room_id,
            username=username,
            content=content,
            timestamp=int(self._clock() * 1000),
        )
        self.messages.append(room_id, message)
        self.users.touch(user)
        self.presence.refresh(room_id, username)

        logger.info(
            "message.sent",
            extra={"room_id": room_id, "user_hash": hash_identifier(username), "length": len(content)},
        )
        return SendResult(message=message, events=[MessagePosted(room_id=room_id, message=message)])

    def list_messages(self, room_id: str, limit: int | None = None) -> list[Message]:
        """Newest-first messages of an existing room.

        Raises:
            ValidationAppError: Malformed room id.
            NotFoundAppError: The room does not exist.
        """
        assert_valid_room_id(room_id)
        self._require_room(room_id)
        return self.messages.list(room_id, limit)

    def delete_message(self, room_id: str, message_id: str) -> None:
        """Admin-only removal; the caller enforces the admin gate."""
        assert_valid_room_id(room_id)
        self._require_room(room_id)
        if not self.messages.delete(room_id, message_id):
            raise NotFoundAppError(
                code="message_not_found",
                message="Message not found",
                details={"room_id": room_id},
            )
        logger.info("message.deleted", extra={"room_id": room_id})
