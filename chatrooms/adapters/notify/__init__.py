"""Notification adapters - deliver room events to connected clients."""

from chatrooms.adapters.notify.base import AbstractNotifier
from chatrooms.adapters.notify.factory import create_notifier
from chatrooms.adapters.notify.log_notifier import LoggingNotifier
from chatrooms.adapters.notify.pubsub import PubSubNotifier

__all__ = [
    "AbstractNotifier",
    "LoggingNotifier",
    "PubSubNotifier",
    "create_notifier",
]
