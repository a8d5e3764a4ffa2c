"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before any application import so the settings
object is built for tests: in-memory store, log-only notifier.
"""

import os

# Set before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("APP_NOTIFIER", "log")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("CHAT_ADMIN_USERNAME", "ryo")

import pytest
from fastapi.testclient import TestClient

from chatrooms.adapters.notify import LoggingNotifier
from chatrooms.adapters.store import InMemoryStore
from chatrooms.core.app_factory import create_app
from chatrooms.core.dependencies import get_notifier, get_store
from chatrooms.schemas.rooms import Room
from chatrooms.services.room_repository import RoomRepository
from chatrooms.utils import keys


class FakeClock:
    """Manually advanced clock in epoch seconds."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryStore:
    return InMemoryStore(clock=clock)


@pytest.fixture
def make_room(store: InMemoryStore):
    """Persist and register a room directly in the store."""

    repository = RoomRepository(store)

    def _make(room_id: str, room_type: str = "public", members: list[str] | None = None, name: str = "") -> Room:
        room = Room(id=room_id, name=name or room_id, type=room_type, members=members)
        repository.save(room)
        repository.register(room_id)
        return room

    return _make


@pytest.fixture
def issue_token(store: InMemoryStore):
    """Register a valid token for ``username`` and return auth headers."""

    def _issue(username: str, token: str = "tok-123") -> dict[str, str]:
        store.set(keys.token_key(username, token), "1")
        return {"Authorization": f"Bearer {token}", "X-Username": username}

    return _issue


@pytest.fixture
def notifier() -> LoggingNotifier:
    return LoggingNotifier()


@pytest.fixture
def client(store: InMemoryStore, notifier: LoggingNotifier):
    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
