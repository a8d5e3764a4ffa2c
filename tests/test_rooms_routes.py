"""HTTP tests for room endpoints."""

from __future__ import annotations

from unittest.mock import patch

from fastapi.testclient import TestClient

from chatrooms.services.events import MemberRemoved, RoomDeleted, RoomUpdated


def _join(client: TestClient, room_id: str, username: str) -> None:
    resp = client.post("/v1/rooms/switch", json={"nextRoomId": room_id, "username": username})
    assert resp.status_code == 200


class TestCreateRoom:
    def test_private_room_created(self, client: TestClient, issue_token, notifier) -> None:
        resp = client.post(
            "/v1/rooms",
            json={"type": "private", "members": ["bob"]},
            headers=issue_token("alice"),
        )

        assert resp.status_code == 201
        room = resp.json()["room"]
        assert room["type"] == "private"
        assert sorted(room["members"]) == ["alice", "bob"]
        assert room["userCount"] == 2
        assert "createdAt" in room
        assert len(notifier.delivered) == 1

    def test_public_room_requires_admin(self, client: TestClient, issue_token) -> None:
        resp = client.post("/v1/rooms", json={"name": "General"}, headers=issue_token("alice"))

        assert resp.status_code == 403

    def test_missing_credentials(self, client: TestClient) -> None:
        resp = client.post("/v1/rooms", json={"name": "General"})

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "missing_credentials"

    def test_invalid_token(self, client: TestClient, issue_token) -> None:
        issue_token("ryo", "real")
        resp = client.post(
            "/v1/rooms",
            json={"name": "General"},
            headers={"Authorization": "Bearer forged", "X-Username": "ryo"},
        )

        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "invalid_token"

    def test_route_quota(self, client: TestClient, issue_token) -> None:
        headers = issue_token("alice")
        for _ in range(10):
            resp = client.post("/v1/rooms", json={"type": "private", "members": ["bob"]}, headers=headers)
            assert resp.status_code == 201

        resp = client.post("/v1/rooms", json={"type": "private", "members": ["bob"]}, headers=headers)

        assert resp.status_code == 429
        assert int(resp.headers["Retry-After"]) >= 1
        assert resp.headers["X-RateLimit-Limit"] == "10"

    def test_private_room_with_only_the_creator_is_400(self, client: TestClient, issue_token) -> None:
        resp = client.post("/v1/rooms", json={"type": "private", "members": ["alice"]}, headers=issue_token("alice"))

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "members_required"

    def test_invalid_type_is_400(self, client: TestClient, issue_token) -> None:
        resp = client.post("/v1/rooms", json={"type": "secret"}, headers=issue_token("alice"))

        assert resp.status_code == 400


class TestReadRooms:
    def test_get_room(self, client: TestClient, make_room) -> None:
        make_room("lobby")
        _join(client, "lobby", "alice")

        resp = client.get("/v1/rooms/lobby")

        assert resp.status_code == 200
        assert resp.json()["room"]["userCount"] == 1

    def test_get_missing_room(self, client: TestClient) -> None:
        resp = client.get("/v1/rooms/nosuchroom")

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "room_not_found"

    def test_invalid_room_id(self, client: TestClient) -> None:
        resp = client.get("/v1/rooms/bad-id")

        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Invalid room ID format"

    def test_list_rooms_hides_foreign_private_rooms(self, client: TestClient, make_room) -> None:
        make_room("lobby")
        make_room("r1", "private", ["alice", "bob"])

        mine = client.get("/v1/rooms", params={"username": "alice"}).json()["rooms"]
        theirs = client.get("/v1/rooms", params={"username": "carol"}).json()["rooms"]

        assert [r["id"] for r in mine] == ["lobby", "r1"]
        assert [r["id"] for r in theirs] == ["lobby"]

    def test_list_users(self, client: TestClient, make_room) -> None:
        make_room("lobby")
        _join(client, "lobby", "alice")
        _join(client, "lobby", "bob")

        resp = client.get("/v1/rooms/lobby/users")

        assert resp.status_code == 200
        assert resp.json() == {"users": ["alice", "bob"]}


class TestLeaveRoom:
    def test_leave_collapses_two_member_private_room(self, client: TestClient, store, make_room, notifier) -> None:
        make_room("r1", "private", ["alice", "bob"])
        _join(client, "r1", "alice")
        _join(client, "r1", "bob")
        notifier.delivered.clear()

        resp = client.post("/v1/rooms/r1/leave", json={"username": "bob"})

        assert resp.status_code == 200
        assert resp.json()["scope"] == "private-last-member"
        assert notifier.delivered == [RoomDeleted(room_id="r1", room_type="private", members=("alice",))]
        assert store.exists("chat:room:r1") is False

    def test_leave_three_member_room(self, client: TestClient, make_room, notifier) -> None:
        make_room("r1", "private", ["alice", "bob", "carol"])
        _join(client, "r1", "carol")
        notifier.delivered.clear()

        resp = client.post("/v1/rooms/r1/leave", json={"username": "carol"})

        assert resp.json() == {"success": True, "scope": "private-member-left", "remainingMembers": 2}
        assert notifier.delivered == [RoomUpdated(room_id="r1"), MemberRemoved(room_id="r1", username="carol")]

    def test_failing_notifier_does_not_change_response(self, client: TestClient, make_room, notifier) -> None:
        make_room("r1", "private", ["alice", "bob", "carol"])
        _join(client, "r1", "carol")

        with patch.object(notifier, "notify", side_effect=RuntimeError("channel down")):
            resp = client.post("/v1/rooms/r1/leave", json={"username": "carol"})

        assert resp.status_code == 200
        assert resp.json()["scope"] == "private-member-left"

    def test_leave_when_absent_is_noop(self, client: TestClient, make_room) -> None:
        make_room("lobby")

        resp = client.post("/v1/rooms/lobby/leave", json={"username": "alice"})

        assert resp.status_code == 200
        assert resp.json()["scope"] == "noop"

    def test_profane_username_is_401(self, client: TestClient, make_room) -> None:
        make_room("lobby")

        resp = client.post("/v1/rooms/lobby/leave", json={"username": "shithead"})

        assert resp.status_code == 401

    def test_missing_username_is_400(self, client: TestClient, make_room) -> None:
        make_room("lobby")

        resp = client.post("/v1/rooms/lobby/leave", json={})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "username_required"


class TestDeleteRoom:
    def test_admin_deletes_public_room(self, client: TestClient, make_room, issue_token) -> None:
        make_room("lobby")

        resp = client.delete("/v1/rooms/lobby", headers=issue_token("ryo"))

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "scope": "public"}
        assert client.get("/v1/rooms/lobby").status_code == 404

    def test_non_member_cannot_delete_private_room(self, client: TestClient, make_room, issue_token) -> None:
        make_room("r1", "private", ["alice", "bob"])

        resp = client.delete("/v1/rooms/r1", headers=issue_token("mallory"))

        assert resp.status_code == 403

    def test_requires_credentials(self, client: TestClient, make_room) -> None:
        make_room("lobby")

        assert client.delete("/v1/rooms/lobby").status_code == 401


class TestSwitchRoom:
    def test_same_room_is_noop(self, client: TestClient) -> None:
        resp = client.post(
            "/v1/rooms/switch",
            json={"previousRoomId": "lobby", "nextRoomId": "lobby", "username": "alice"},
        )

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "noop": True}

    def test_next_room_missing(self, client: TestClient, make_room) -> None:
        make_room("lobby")

        resp = client.post(
            "/v1/rooms/switch",
            json={"previousRoomId": "lobby", "nextRoomId": "nosuchroom", "username": "alice"},
        )

        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == "Next room not found"

    def test_switch_moves_presence(self, client: TestClient, make_room) -> None:
        make_room("lobby")
        make_room("music")
        _join(client, "lobby", "alice")

        resp = client.post(
            "/v1/rooms/switch",
            json={"previousRoomId": "lobby", "nextRoomId": "music", "username": "alice"},
        )

        assert resp.json() == {"success": True, "noop": False}
        assert client.get("/v1/rooms/lobby/users").json()["users"] == []
        assert client.get("/v1/rooms/music/users").json()["users"] == ["alice"]
