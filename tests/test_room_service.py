"""Unit tests for room lifecycle operations."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from chatrooms.adapters.store import InMemoryStore
from chatrooms.core.errors import (
    AuthenticationAppError,
    AuthorizationAppError,
    NotFoundAppError,
    ValidationAppError,
)
from chatrooms.services.events import MemberRemoved, RoomCreated, RoomDeleted, RoomUpdated
from chatrooms.services.room_service import RoomService


@pytest.fixture
def rooms(store: InMemoryStore, clock) -> RoomService:
    return RoomService(store, clock=clock)


def _join(rooms: RoomService, room_id: str, *usernames: str) -> None:
    for username in usernames:
        rooms.presence.refresh(room_id, username)


class TestLeave:
    def test_private_room_with_two_members_is_deleted(self, rooms, store, make_room) -> None:
        make_room("r1", "private", ["alice", "bob"])
        _join(rooms, "r1", "alice", "bob")
        store.lpush("chat:messages:r1", "{}")

        result = rooms.leave("r1", "bob")

        assert result.scope == "private-last-member"
        assert result.events == [RoomDeleted(room_id="r1", room_type="private", members=("alice",))]
        assert store.exists("chat:room:r1") is False
        assert store.exists("chat:messages:r1") is False
        assert store.exists("chat:presence:z:r1") is False
        assert "r1" not in store.smembers("chat:rooms")

    def test_private_room_with_three_members_keeps_two(self, rooms, store, make_room) -> None:
        make_room("r1", "private", ["alice", "bob", "carol"])
        _join(rooms, "r1", "alice", "bob", "carol")

        result = rooms.leave("r1", "carol")

        assert result.scope == "private-member-left"
        assert result.remaining_members == 2
        assert result.events == [RoomUpdated(room_id="r1"), MemberRemoved(room_id="r1", username="carol")]
        room = rooms.rooms.get("r1")
        assert room.members == ["alice", "bob"]
        assert room.user_count == 2

    def test_leave_when_not_present_is_a_noop(self, rooms, make_room) -> None:
        make_room("r1", "private", ["alice", "bob"])

        result = rooms.leave("r1", "bob")

        assert result.success is True
        assert result.scope == "noop"
        assert result.events == []
        assert rooms.rooms.get("r1").members == ["alice", "bob"]

    def test_public_leave_updates_count(self, rooms, make_room) -> None:
        make_room("lobby")
        _join(rooms, "lobby", "alice", "bob")

        result = rooms.leave("lobby", "Alice")

        assert result.scope == "public"
        assert result.events == [RoomUpdated(room_id="lobby")]
        assert rooms.rooms.get("lobby").user_count == 1
        assert rooms.rooms.get("lobby").members is None

    def test_missing_room_is_404(self, rooms) -> None:
        with pytest.raises(NotFoundAppError):
            rooms.leave("nosuchroom", "alice")

    def test_profane_username_is_unauthorized(self, rooms, make_room) -> None:
        make_room("lobby")
        with pytest.raises(AuthenticationAppError):
            rooms.leave("lobby", "shithead")

    @pytest.mark.parametrize(
        ("room_id", "username"),
        [("bad id!", "alice"), ("lobby", ""), ("lobby", "no spaces")],
    )
    def test_validation_precedes_store_access(self, room_id, username) -> None:
        store = MagicMock()
        with pytest.raises(ValidationAppError):
            RoomService(store).leave(room_id, username)
        store.get.assert_not_called()


class TestDelete:
    def test_public_room_requires_admin(self, rooms, make_room) -> None:
        make_room("lobby")
        with pytest.raises(AuthorizationAppError):
            rooms.delete("lobby", "alice")

    def test_admin_deletes_public_room(self, rooms, store, make_room) -> None:
        make_room("lobby")
        _join(rooms, "lobby", "alice")

        result = rooms.delete("lobby", "ryo")

        assert result.scope == "public"
        assert result.events == [RoomDeleted(room_id="lobby", room_type="public", members=())]
        assert store.keys("chat:*") == []

    def test_private_room_requires_membership(self, rooms, make_room) -> None:
        make_room("r1", "private", ["alice", "bob"])
        with pytest.raises(AuthorizationAppError):
            rooms.delete("r1", "mallory")

    def test_private_delete_with_two_members_deletes(self, rooms, store, make_room) -> None:
        make_room("r1", "private", ["alice", "bob"])

        result = rooms.delete("r1", "alice")

        assert result.scope == "private-last-member"
        assert result.events == [RoomDeleted(room_id="r1", room_type="private", members=("alice", "bob"))]
        assert store.exists("chat:room:r1") is False

    def test_private_delete_with_three_members_only_removes_requester(self, rooms, make_room) -> None:
        make_room("r1", "private", ["alice", "bob", "carol"])

        result = rooms.delete("r1", "Alice")

        assert result.scope == "private-member-left"
        assert result.remaining_members == 2
        room = rooms.rooms.get("r1")
        assert room.members == ["bob", "carol"]
        assert room.user_count == 2

    def test_missing_room_is_404(self, rooms) -> None:
        with pytest.raises(NotFoundAppError):
            rooms.delete("nosuchroom", "ryo")


class TestSwitch:
    def test_same_room_is_noop_without_store_calls(self) -> None:
        store = MagicMock()

        result = RoomService(store).switch("r1", "r1", "alice")

        assert result.success is True
        assert result.noop is True
        assert store.method_calls == []

    def test_switch_between_public_rooms(self, rooms, make_room) -> None:
        make_room("lobby")
        make_room("music")
        _join(rooms, "lobby", "alice", "bob")

        result = rooms.switch("lobby", "music", "alice")

        assert result.noop is False
        assert result.events == [RoomUpdated(room_id="lobby"), RoomUpdated(room_id="music")]
        assert rooms.presence.list_active("lobby") == ["bob"]
        assert rooms.presence.list_active("music") == ["alice"]
        assert rooms.rooms.get("music").user_count == 1
        assert rooms.users.get("alice") is not None

    def test_leaving_private_room_via_switch_keeps_membership(self, rooms, make_room) -> None:
        make_room("r1", "private", ["alice", "bob"])
        make_room("lobby")
        _join(rooms, "r1", "alice", "bob")

        result = rooms.switch("r1", "lobby", "alice")

        assert result.events == [RoomUpdated(room_id="lobby")]
        assert rooms.rooms.get("r1").members == ["alice", "bob"]
        assert "alice" in rooms.presence.list_active("r1")

    def test_missing_next_room_is_404(self, rooms, make_room) -> None:
        make_room("lobby")
        with pytest.raises(NotFoundAppError) as exc:
            rooms.switch("lobby", "nosuchroom", "alice")
        assert exc.value.message == "Next room not found"

    def test_join_only(self, rooms, make_room) -> None:
        make_room("lobby")

        result = rooms.switch(None, "lobby", "alice")

        assert result.events == [RoomUpdated(room_id="lobby")]

    def test_invalid_room_id_is_rejected(self, rooms) -> None:
        with pytest.raises(ValidationAppError):
            rooms.switch("lobby", "bad id", "alice")

    def test_profane_username_is_unauthorized(self, rooms) -> None:
        with pytest.raises(AuthenticationAppError):
            rooms.switch("a1", "a2", "shithead")


class TestCreateAndRead:
    def test_private_room_includes_creator(self, rooms, store) -> None:
        result = rooms.create(creator="Alice", name=None, room_type="private", members=["Bob"])

        room = result.room
        assert room.members == ["bob", "alice"]
        assert room.name == "@alice, @bob"
        assert room.user_count == 2
        assert result.events == [RoomCreated(room=room)]
        assert room.id in store.smembers("chat:rooms")
        assert sorted(rooms.presence.list_active(room.id)) == ["alice", "bob"]

    def test_public_room_needs_admin(self, rooms) -> None:
        with pytest.raises(AuthorizationAppError):
            rooms.create(creator="alice", name="General", room_type="public")

    def test_public_room_name_is_slugged(self, rooms) -> None:
        room = rooms.create(creator="ryo", name="Music Lounge", room_type="public").room
        assert room.name == "music-lounge"
        assert room.members is None

    def test_private_room_needs_members(self, rooms) -> None:
        with pytest.raises(ValidationAppError):
            rooms.create(creator="alice", name=None, room_type="private", members=[])

    def test_private_room_with_only_the_creator_is_rejected(self, rooms, store) -> None:
        with pytest.raises(ValidationAppError) as exc:
            rooms.create(creator="alice", name=None, room_type="private", members=["alice", "ALICE"])

        assert exc.value.code == "members_required"
        assert store.smembers("chat:rooms") == set()

    @pytest.mark.parametrize(
        "member, code",
        [
            ("Bad Name!!", "invalid_username"),
            ("sh1t_lord", "inappropriate_username"),
        ],
    )
    def test_private_room_members_are_validated(self, rooms, store, member, code) -> None:
        with pytest.raises(ValidationAppError) as exc:
            rooms.create(creator="alice", name=None, room_type="private", members=["bob", member])

        assert exc.value.code == code
        assert store.smembers("chat:rooms") == set()

    def test_get_recounts_users(self, rooms, make_room) -> None:
        make_room("lobby")
        _join(rooms, "lobby", "alice", "bob")

        assert rooms.get("lobby").user_count == 2

    def test_list_visible_filters_private_rooms(self, rooms, make_room) -> None:
        make_room("lobby")
        make_room("r1", "private", ["alice", "bob"])

        assert [r.id for r in rooms.list_visible("ALICE")] == ["lobby", "r1"]
        assert [r.id for r in rooms.list_visible("carol")] == ["lobby"]
        assert [r.id for r in rooms.list_visible(None)] == ["lobby"]
