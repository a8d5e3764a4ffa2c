"""Room lifecycle: create, read, leave, delete and switch.

Every entry point validates first, then authorizes, then mutates. Mutations
return typed events instead of notifying anyone; the HTTP layer dispatches
them once the store writes are done.

Multi-step sequences here (read room, compute members, write room) are not
atomic. Concurrent Leave/Delete on the same private room is last-writer-wins.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from chatrooms.adapters.store.base import AbstractStore
from chatrooms.core.config import settings
from chatrooms.core.errors import (
    AuthenticationAppError,
    AuthorizationAppError,
    NotFoundAppError,
    ValidationAppError,
)
from chatrooms.core.logging import hash_identifier
from chatrooms.schemas.rooms import Room, RoomType, RoomWithUsers
from chatrooms.services.events import (
    MemberRemoved,
    RoomCreated,
    RoomDeleted,
    RoomEvent,
    RoomUpdated,
)
from chatrooms.services.presence_service import PresenceService
from chatrooms.services.room_repository import RoomRepository, generate_room_id
from chatrooms.services.user_service import UserService
from chatrooms.utils.validation import (
    assert_valid_room_id,
    assert_valid_username,
    is_profane_username,
)

logger = logging.getLogger(__name__)

SCOPE_NOOP = "noop"
SCOPE_PRIVATE_LAST_MEMBER = "private-last-member"
SCOPE_PRIVATE_MEMBER_LEFT = "private-member-left"
SCOPE_PUBLIC = "public"


@dataclass
class LeaveResult:
    scope: str
    success: bool = True
    remaining_members: int | None = None
    events: list[RoomEvent] = field(default_factory=list)


@dataclass
class DeleteResult:
    scope: str
    success: bool = True
    remaining_members: int | None = None
    events: list[RoomEvent] = field(default_factory=list)


@dataclass
class SwitchResult:
    success: bool = True
    noop: bool = False
    events: list[RoomEvent] = field(default_factory=list)


@dataclass
class CreateResult:
    room: Room
    events: list[RoomEvent] = field(default_factory=list)


def _reject_profane(username: str) -> None:
    # Deliberately indistinguishable from any other unauthorized identity
    if is_profane_username(username):
        logger.info("room.profane_identity_rejected", extra={"user_hash": hash_identifier(username)})
        raise AuthenticationAppError(code="unauthorized", message="Unauthorized")


class RoomService:
    def __init__(
        self,
        store: AbstractStore,
        *,
        presence: PresenceService | None = None,
        rooms: RoomRepository | None = None,
        users: UserService | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock
        self.presence = presence or PresenceService(store, clock=clock)
        self.rooms = rooms or RoomRepository(store)
        self.users = users or UserService(store, clock=clock)

    def _require_room(self, room_id: str, message: str = "Room not found") -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise NotFoundAppError(code="room_not_found", message=message, details={"room_id": room_id})
        return room

    def _recount(self, room_id: str) -> int:
        return self.presence.refresh_user_count(room_id, self.rooms)

    def _drop_room(self, room_id: str) -> None:
        self.rooms.delete_with_data(room_id)

    def _drop_member(
        self, room: Room, username: str, *, user_count: int | None = None
    ) -> tuple[list[str], bool]:
        """Remove ``username`` from a private room; delete the room at <= 1 member.

        Returns the remaining members and whether the room was deleted.
        """
        remaining = [m for m in (room.members or []) if m != username]
        if len(remaining) <= 1:
            self._drop_room(room.id)
            return remaining, True
        current = self.rooms.get(room.id) or room
        update: dict = {"members": remaining}
        if user_count is not None:
            update["user_count"] = user_count
        self.rooms.save(current.model_copy(update=update))
        return remaining, False

    # ------------------------------------------------------------------ reads

    def get(self, room_id: str) -> Room:
        """Return the room with a freshly recounted ``user_count``."""
        assert_valid_room_id(room_id)
        room = self._require_room(room_id)
        count = self._recount(room_id)
        return room.model_copy(update={"user_count": count})

    def list_visible(self, username: str | None = None) -> list[Room]:
        """Public rooms plus private rooms that list ``username`` as a member."""
        name = (username or "").strip().lower() or None
        visible = []
        for room in self.rooms.list_all():
            if not room.is_private:
                visible.append(room)
            elif name and name in (room.members or []):
                visible.append(room)
        return visible

    def list_users(self, room_id: str) -> list[str]:
        assert_valid_room_id(room_id)
        return self.presence.list_active(room_id)

    def get_with_users(self, room_id: str) -> RoomWithUsers:
        room = self.get(room_id)
        return RoomWithUsers(**room.model_dump(), users=self.presence.list_active(room_id))

    # ---------------------------------------------------------------- create

    def create(
        self,
        *,
        creator: str,
        name: str | None,
        room_type: RoomType = "public",
        members: list[str] | None = None,
    ) -> CreateResult:
        """Create a public (admin only) or private room.

        Private rooms always hold the creator plus at least one other valid
        member, so they are never created in the state that Leave deletes.

        Args:
            creator: Authenticated username of the caller.
            name: Display name; required for public rooms, derived for private ones.
            room_type: ``"public"`` or ``"private"``.
            members: Invited usernames for a private room.

        Returns:
            The stored room and a ``RoomCreated`` event.

        Raises:
            ValidationAppError: Missing public name, profane name or member,
                malformed member name, or no member besides the creator.
            AuthorizationAppError: Non-admin creating a public room.
        """
        creator = creator.lower()
        members = members or []

        if room_type == "public":
            if not name or not name.strip():
                raise ValidationAppError(
                    code="room_name_required",
                    message="Room name is required for public rooms",
                )
            if creator != settings.chat.admin_username.lower():
                raise AuthorizationAppError(
                    code="admin_required",
                    message="Forbidden - Only admin can create public rooms",
                )
            if is_profane_username(name):
                raise ValidationAppError(
                    code="inappropriate_room_name",
                    message="Room name contains inappropriate language",
                )
            room_name = name.strip().lower().replace(" ", "-")
            normalized: list[str] | None = None
        else:
            if not members:
                raise ValidationAppError(
                    code="members_required",
                    message="At least one member is required for private rooms",
                )
            normalized = []
            for member in [*members, creator]:
                member = assert_valid_username(member)
                if is_profane_username(member):
                    raise ValidationAppError(
                        code="inappropriate_username",
                        message="Member username contains inappropriate language",
                    )
                if member not in normalized:
                    normalized.append(member)
            if len(normalized) < 2:
                raise ValidationAppError(
                    code="members_required",
                    message="Private rooms need at least one member besides the creator",
                )
            room_name = ", ".join(f"@{m}" for m in sorted(normalized))

        room = Room(
            id=generate_room_id(),
            name=room_name,
            type=room_type,
            created_at=int(self._clock() * 1000),
            user_count=len(normalized) if normalized else 0,
            members=normalized,
        )
        self.rooms.save(room)
        self.rooms.register(room.id)
        for member in normalized or []:
            self.presence.refresh(room.id, member)

        logger.info("room.created", extra={"room_id": room.id, "room_type": room_type})
        return CreateResult(room=room, events=[RoomCreated(room=room)])

    # ----------------------------------------------------------------- leave

    def leave(self, room_id: str, username: str | None) -> LeaveResult:
        """Remove ``username``'s presence and apply the membership rules.

        Leaving a room the user is not present in is a successful no-op, so
        callers may retry blindly.
        """
        name = assert_valid_username(username)
        assert_valid_room_id(room_id)
        _reject_profane(name)

        room = self._require_room(room_id)

        if not self.presence.remove(room_id, name):
            logger.debug("room.leave.noop", extra={"room_id": room_id})
            return LeaveResult(scope=SCOPE_NOOP)

        self._recount(room_id)

        if not room.is_private:
            logger.info("room.leave.public", extra={"room_id": room_id})
            return LeaveResult(scope=SCOPE_PUBLIC, events=[RoomUpdated(room_id=room_id)])

        remaining, deleted = self._drop_member(room, name)
        if deleted:
            logger.info("room.leave.deleted", extra={"room_id": room_id})
            return LeaveResult(
                scope=SCOPE_PRIVATE_LAST_MEMBER,
                events=[RoomDeleted(room_id=room_id, room_type=room.type, members=tuple(remaining))],
            )

        logger.info("room.leave.member_left", extra={"room_id": room_id, "remaining": len(remaining)})
        return LeaveResult(
            scope=SCOPE_PRIVATE_MEMBER_LEFT,
            remaining_members=len(remaining),
            events=[RoomUpdated(room_id=room_id), MemberRemoved(room_id=room_id, username=name)],
        )

    # ---------------------------------------------------------------- delete

    def delete(self, room_id: str, requester: str) -> DeleteResult:
        """Delete a room on behalf of an authenticated ``requester``.

        Private rooms follow the leave rule: while more than one other member
        remains, the requester is only removed from the member list.
        """
        assert_valid_room_id(room_id)
        name = requester.lower()

        room = self._require_room(room_id)

        if room.is_private:
            if name not in (room.members or []):
                raise AuthorizationAppError(code="not_a_member", message="Unauthorized - not a member")
        elif name != settings.chat.admin_username.lower():
            raise AuthorizationAppError(code="admin_required", message="Unauthorized - admin required")

        if room.is_private:
            remaining, deleted = self._drop_member(room, name, user_count=len(room.members or []) - 1)
            if not deleted:
                logger.info("room.delete.member_left", extra={"room_id": room_id})
                return DeleteResult(
                    scope=SCOPE_PRIVATE_MEMBER_LEFT,
                    remaining_members=len(remaining),
                    events=[RoomUpdated(room_id=room_id), MemberRemoved(room_id=room_id, username=name)],
                )
            logger.info("room.delete.deleted", extra={"room_id": room_id, "room_type": room.type})
            return DeleteResult(
                scope=SCOPE_PRIVATE_LAST_MEMBER,
                events=[RoomDeleted(room_id=room_id, room_type=room.type, members=tuple(room.members or []))],
            )

        self._drop_room(room_id)
        logger.info("room.delete.deleted", extra={"room_id": room_id, "room_type": room.type})
        return DeleteResult(
            scope=SCOPE_PUBLIC,
            events=[RoomDeleted(room_id=room_id, room_type=room.type, members=tuple(room.members or []))],
        )

    # ---------------------------------------------------------------- switch

    def switch(
        self,
        previous_room_id: str | None,
        next_room_id: str | None,
        username: str | None,
    ) -> SwitchResult:
        """Move ``username``'s presence from one room to another.

        Leaving a private room through a switch never edits its members.
        The previous room is left before the next room is looked up, so a
        missing next room still leaves the previous public room.
        """
        name = assert_valid_username(username)
        if previous_room_id:
            assert_valid_room_id(previous_room_id)
        if next_room_id:
            assert_valid_room_id(next_room_id)
        _reject_profane(name)

        if previous_room_id == next_room_id:
            logger.debug("room.switch.noop", extra={"room_id": previous_room_id})
            return SwitchResult(noop=True)

        self.users.ensure_exists(name)
        events: list[RoomEvent] = []

        if previous_room_id:
            previous = self.rooms.get(previous_room_id)
            if previous is not None and not previous.is_private:
                self.presence.remove(previous_room_id, name)
                count = self._recount(previous_room_id)
                logger.debug("room.switch.left", extra={"room_id": previous_room_id, "user_count": count})
                events.append(RoomUpdated(room_id=previous_room_id))

        if next_room_id:
            self._require_room(next_room_id, "Next room not found")
            self.presence.refresh(next_room_id, name)
            count = self._recount(next_room_id)
            logger.debug("room.switch.joined", extra={"room_id": next_room_id, "user_count": count})
            events.append(RoomUpdated(room_id=next_room_id))

        return SwitchResult(events=events)
