"""Unit tests for per-room burst protection."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from chatrooms.adapters.store import InMemoryStore
from chatrooms.core.config import ChatSettings
from chatrooms.core.errors import RateLimitAppError, StoreAppError
from chatrooms.services.burst_guard import BurstGuard


@pytest.fixture
def guard(store: InMemoryStore, clock) -> BurstGuard:
    return BurstGuard(store, clock=clock)


def test_first_message_passes_and_records_last_sent(guard: BurstGuard, store: InMemoryStore, clock) -> None:
    guard.check("r1", "alice")

    assert store.get("rl:chat:last:r1:alice") == str(int(clock()))
    assert store.ttl("rl:chat:last:r1:alice") == 60


def test_min_interval_rejects_fast_follow_up(guard: BurstGuard, clock) -> None:
    guard.check("r1", "alice")
    clock.advance(1)

    with pytest.raises(RateLimitAppError) as exc:
        guard.check("r1", "alice")

    assert exc.value.code == "burst_min_interval"
    assert exc.value.retry_after == 1


def test_short_window_limit(guard: BurstGuard, clock) -> None:
    for _ in range(3):
        guard.check("r1", "alice")
        clock.advance(2)

    with pytest.raises(RateLimitAppError) as exc:
        guard.check("r1", "alice")

    assert exc.value.code == "burst_short_window"
    assert exc.value.message == "You're sending messages too quickly."
    assert exc.value.details["limit"] == 3


def test_long_window_limit(store: InMemoryStore, clock) -> None:
    guard = BurstGuard(store, chat_settings=ChatSettings(burst_long_limit=4), clock=clock)
    for step in (2, 2, 6, 2):
        guard.check("r1", "alice")
        clock.advance(step)

    with pytest.raises(RateLimitAppError) as exc:
        guard.check("r1", "alice")

    assert exc.value.code == "burst_long_window"


def test_counters_are_per_room_and_user(guard: BurstGuard) -> None:
    guard.check("r1", "alice")
    guard.check("r1", "bob")
    guard.check("r2", "alice")


def test_store_failure_fails_open(clock) -> None:
    store = MagicMock()
    store.incr.side_effect = StoreAppError(code="store_unavailable", message="down")
    guard = BurstGuard(store, clock=clock)

    guard.check("r1", "alice")
