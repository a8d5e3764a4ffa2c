"""Factory for the configured notifier."""

from chatrooms.adapters.notify.base import AbstractNotifier
from chatrooms.adapters.notify.log_notifier import LoggingNotifier
from chatrooms.adapters.notify.pubsub import PubSubNotifier
from chatrooms.adapters.store.base import AbstractStore
from chatrooms.core.config import settings
from chatrooms.core.errors import ValidationAppError


def create_notifier(store: AbstractStore) -> AbstractNotifier:
    """Build the notifier selected by ``APP_NOTIFIER``.

    Raises:
        ValidationAppError: If the notifier name is unknown.
    """
    kind = settings.app.notifier.lower()

    if kind == "redis":
        return PubSubNotifier(store)

    if kind == "log":
        return LoggingNotifier()

    raise ValidationAppError(
        code="notifier_unknown",
        message=f"Unknown notifier: '{kind}'. Supported notifiers: redis, log",
    )
