"""Unit tests for privileged-feature quotas."""

from __future__ import annotations

from unittest.mock import MagicMock

from chatrooms.adapters.store import InMemoryStore
from chatrooms.core.errors import StoreAppError
from chatrooms.services.quota_service import QuotaService
from chatrooms.utils import keys


def _issue(store: InMemoryStore, username: str, token: str = "tok") -> None:
    store.set(keys.token_key(username, token), "1")


def test_anonymous_is_counted_per_ip(store: InMemoryStore) -> None:
    quotas = QuotaService(store)

    results = [quotas.check_privileged(username=None, token=None, client_ip="1.2.3.4") for _ in range(4)]

    assert [r.allowed for r in results] == [True, True, True, False]
    assert store.get("rl:ai:anon:1.2.3.4") == "4"
    assert quotas.check_privileged(username=None, token=None, client_ip="5.6.7.8").allowed is True


def test_authenticated_is_counted_per_user(store: InMemoryStore) -> None:
    _issue(store, "alice")
    quotas = QuotaService(store)

    result = quotas.check_privileged(username="Alice", token="tok", client_ip="1.2.3.4")

    assert result.allowed is True
    assert result.limit == 15
    assert store.get("rl:ai:alice") == "1"
    assert store.get("rl:ai:anon:1.2.3.4") is None


def test_invalid_token_is_denied_outright(store: InMemoryStore) -> None:
    quotas = QuotaService(store)

    result = quotas.check_privileged(username="alice", token="forged", client_ip="1.2.3.4")

    assert result.allowed is False
    assert store.keys("rl:*") == []


def test_verified_admin_is_not_counted(store: InMemoryStore) -> None:
    _issue(store, "ryo")
    quotas = QuotaService(store)

    for _ in range(20):
        result = quotas.check_privileged(username="ryo", token="tok", client_ip="1.2.3.4")
        assert result.allowed is True

    assert store.get("rl:ai:ryo") is None


def test_admin_name_without_token_is_denied(store: InMemoryStore) -> None:
    quotas = QuotaService(store)

    result = quotas.check_privileged(username="ryo", token=None, client_ip="1.2.3.4")

    assert result.allowed is False
    assert store.get("rl:ai:anon:1.2.3.4") is None


def test_store_failure_fails_closed() -> None:
    store = MagicMock()
    store.incr.side_effect = StoreAppError(code="store_unavailable", message="down")
    quotas = QuotaService(store)

    result = quotas.check_privileged(username=None, token=None, client_ip="1.2.3.4")

    assert result.allowed is False


def test_check_limit_is_the_plain_primitive(store: InMemoryStore) -> None:
    quotas = QuotaService(store)

    first = quotas.check_limit("rl:export:1.2.3.4", 60, 1)
    second = quotas.check_limit("rl:export:1.2.3.4", 60, 1)

    assert first.allowed is True
    assert second.allowed is False
