"""Notifier that publishes JSON payloads on store pub/sub channels.

Channel layout:
- ``chat:channel:rooms``: room list changes (created, updated, deleted);
- ``chat:channel:room:{id}``: messages and updates for one room;
- ``chat:channel:user:{name}``: private-room events for one member.
"""

from __future__ import annotations

import json
import logging

from chatrooms.adapters.notify.base import AbstractNotifier
from chatrooms.adapters.store.base import AbstractStore
from chatrooms.services.events import (
    MemberRemoved,
    MessagePosted,
    RoomCreated,
    RoomDeleted,
    RoomEvent,
    RoomUpdated,
)
from chatrooms.utils import keys

logger = logging.getLogger(__name__)


class PubSubNotifier(AbstractNotifier):
    def __init__(self, store: AbstractStore) -> None:
        self._store = store

    def _publish(self, channel: str, payload: dict) -> None:
        subscribers = self._store.publish(channel, json.dumps(payload))
        logger.debug(
            "notify.published",
            extra={"channel": channel, "event": payload.get("event"), "subscribers": subscribers},
        )

    def _publish_to_users(self, usernames, payload: dict) -> None:
        for username in usernames:
            self._publish(keys.USER_CHANNEL.format(username=username), payload)

    def notify(self, event: RoomEvent) -> None:
        if isinstance(event, MessagePosted):
            self._publish(
                keys.ROOM_CHANNEL.format(room_id=event.room_id),
                {"event": "room-message", "roomId": event.room_id, "message": event.message.model_dump(by_alias=True)},
            )
        elif isinstance(event, RoomCreated):
            payload = {"event": "room-created", "room": event.room.model_dump(by_alias=True)}
            if event.room.is_private:
                self._publish_to_users(event.room.members or [], payload)
            else:
                self._publish(keys.ROOMS_CHANNEL, payload)
        elif isinstance(event, RoomUpdated):
            payload = {"event": "room-updated", "roomId": event.room_id}
            self._publish(keys.ROOMS_CHANNEL, payload)
            self._publish(keys.ROOM_CHANNEL.format(room_id=event.room_id), payload)
        elif isinstance(event, RoomDeleted):
            payload = {"event": "room-deleted", "roomId": event.room_id, "type": event.room_type}
            if event.room_type == "private":
                self._publish_to_users(event.members, payload)
            else:
                self._publish(keys.ROOMS_CHANNEL, payload)
        elif isinstance(event, MemberRemoved):
            # The leaver no longer sees the room; for them it is deleted
            self._publish(
                keys.USER_CHANNEL.format(username=event.username),
                {"event": "room-deleted", "roomId": event.room_id, "type": "private"},
            )
        else:
            logger.warning("notify.unknown_event", extra={"event_type": type(event).__name__})
