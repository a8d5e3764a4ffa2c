"""Factory pattern for creating store instances."""

from chatrooms.adapters.store.base import AbstractStore
from chatrooms.adapters.store.in_memory import InMemoryStore
from chatrooms.adapters.store.redis_store import RedisStore
from chatrooms.core.config import settings
from chatrooms.core.errors import ValidationAppError


def create_store() -> AbstractStore:
    """Instantiate the store backend selected by ``STORE_BACKEND``.

    Returns:
        AbstractStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    backend = settings.store.backend.lower()

    if backend == "redis":
        return RedisStore.from_url(
            settings.store.redis_url,
            socket_timeout=settings.store.socket_timeout_seconds,
        )

    if backend == "memory":
        return InMemoryStore()

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: redis, memory",
    )
