"""Abstract notifier interface for delivering room events to clients."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable

from chatrooms.services.events import RoomEvent

logger = logging.getLogger(__name__)


class AbstractNotifier(ABC):
    """Fire-and-forget delivery of ``RoomEvent`` values.

    Delivery happens after the store mutation has completed. A failing
    notification is logged and never changes the outcome of the request.
    """

    @abstractmethod
    def notify(self, event: RoomEvent) -> None:
        """Deliver a single event."""

    def dispatch(self, events: Iterable[RoomEvent]) -> int:
        """Deliver every event, returning how many were delivered."""
        delivered = 0
        for event in events:
            try:
                self.notify(event)
            except Exception:
                logger.exception(
                    "notify.failed",
                    extra={"event_type": type(event).__name__},
                )
                continue
            delivered += 1
        return delivered
