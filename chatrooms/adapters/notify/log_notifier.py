"""Notifier that only records events in the application log."""

from __future__ import annotations

import logging

from chatrooms.adapters.notify.base import AbstractNotifier
from chatrooms.services.events import RoomEvent

logger = logging.getLogger(__name__)


class LoggingNotifier(AbstractNotifier):
    def __init__(self) -> None:
        self.delivered: list[RoomEvent] = []

    def notify(self, event: RoomEvent) -> None:
        self.delivered.append(event)
        logger.info(
            "notify.event",
            extra={"event_type": type(event).__name__, "room_id": getattr(event, "room_id", None)},
        )
