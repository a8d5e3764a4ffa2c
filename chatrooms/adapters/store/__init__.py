"""Key-value store adapters.

Redis in deployment, an in-process dictionary for development and tests,
both behind ``AbstractStore``.
"""

from chatrooms.adapters.store.base import AbstractStore, StoreBatch
from chatrooms.adapters.store.factory import create_store
from chatrooms.adapters.store.in_memory import InMemoryStore
from chatrooms.adapters.store.redis_store import RedisStore

__all__ = ["AbstractStore", "StoreBatch", "InMemoryStore", "RedisStore", "create_store"]
