"""FastAPI dependency providers for the store, services and notifier.

The store is created once per process and cached in-module so the in-memory
backend keeps its state across requests. Tests swap it through
``app.dependency_overrides[get_store]``.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends

from chatrooms.adapters.notify import AbstractNotifier, create_notifier
from chatrooms.adapters.rate_limit import CounterRateLimiter
from chatrooms.adapters.store import AbstractStore, create_store
from chatrooms.services.message_service import MessageService
from chatrooms.services.quota_service import QuotaService
from chatrooms.services.room_service import RoomService
from chatrooms.services.token_service import TokenVerifier

logger = logging.getLogger(__name__)

_store: AbstractStore | None = None


def get_store() -> AbstractStore:
    """Return the process-wide store instance."""
    global _store
    if _store is None:
        _store = create_store()
        logger.info("store.initialized", extra={"backend": type(_store).__name__})
    return _store


def reset_store() -> None:
    """Forget the cached store so the next call rebuilds it from settings."""
    global _store
    _store = None


StoreDep = Annotated[AbstractStore, Depends(get_store)]


def get_token_verifier(store: StoreDep) -> TokenVerifier:
    return TokenVerifier(store)


def get_rate_limiter(store: StoreDep) -> CounterRateLimiter:
    return CounterRateLimiter(store)


def get_room_service(store: StoreDep) -> RoomService:
    return RoomService(store)


def get_message_service(store: StoreDep) -> MessageService:
    return MessageService(store)


def get_quota_service(store: StoreDep) -> QuotaService:
    return QuotaService(store)


def get_notifier(store: StoreDep) -> AbstractNotifier:
    return create_notifier(store)
