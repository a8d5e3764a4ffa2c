from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from chatrooms.adapters.notify import AbstractNotifier
from chatrooms.core.auth import Identity, require_identity
from chatrooms.core.config import settings
from chatrooms.core.dependencies import get_notifier, get_room_service
from chatrooms.core.rate_limit import enforce_route_limit
from chatrooms.schemas.rooms import (
    CreateRoomCommand,
    DeleteRoomResponse,
    LeaveRoomCommand,
    LeaveRoomResponse,
    RoomResponse,
    RoomsResponse,
    RoomUsersResponse,
    SwitchRoomCommand,
    SwitchRoomResponse,
)
from chatrooms.services.room_service import RoomService

router = APIRouter(tags=["Rooms"])

RoomServiceDep = Annotated[RoomService, Depends(get_room_service)]
NotifierDep = Annotated[AbstractNotifier, Depends(get_notifier)]


@router.post("/rooms/switch", response_model=SwitchRoomResponse)
def switch_room(
    command: SwitchRoomCommand,
    rooms: RoomServiceDep,
    notifier: NotifierDep,
    background: BackgroundTasks,
) -> SwitchRoomResponse:
    """Move the user's presence from ``previousRoomId`` to ``nextRoomId``.

    Identical ids are a no-op answered with ``noop: true``.
    """
    result = rooms.switch(command.previous_room_id, command.next_room_id, command.username)
    background.add_task(notifier.dispatch, result.events)
    return SwitchRoomResponse(success=result.success, noop=result.noop)


@router.get("/rooms", response_model=RoomsResponse)
def list_rooms(
    rooms: RoomServiceDep,
    username: Annotated[str | None, Query(max_length=64)] = None,
) -> RoomsResponse:
    """Public rooms plus the private rooms ``username`` belongs to."""
    return RoomsResponse(rooms=rooms.list_visible(username))


@router.post(
    "/rooms",
    response_model=RoomResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[
        Depends(
            enforce_route_limit(
                "create-room",
                window_seconds=settings.quota.create_room_window_seconds,
                limit=settings.quota.create_room_limit,
            )
        )
    ],
)
def create_room(
    command: CreateRoomCommand,
    identity: Annotated[Identity, Depends(require_identity)],
    rooms: RoomServiceDep,
    notifier: NotifierDep,
    background: BackgroundTasks,
) -> RoomResponse:
    """Create a room as the authenticated user.

    Public rooms need the admin identity and a name. Private rooms need at
    least one valid member besides the caller; the caller is always added.

    Args:
        command: Room name, type and invited members.
        identity: Verified caller.

    Returns:
        RoomResponse: The stored room (201).

    Raises:
        ValidationAppError: 400 for a missing name or members, or a profane
            or malformed name.
        AuthorizationAppError: 403 when a non-admin creates a public room.
        RateLimitAppError: 429 once the per-identity creation quota is spent.
    """
    result = rooms.create(
        creator=identity.username,
        name=command.name,
        room_type=command.type,
        members=command.members,
    )
    background.add_task(notifier.dispatch, result.events)
    return RoomResponse(room=result.room)


@router.get("/rooms/{room_id}", response_model=RoomResponse)
def get_room(room_id: str, rooms: RoomServiceDep) -> RoomResponse:
    """Room details with a freshly recounted ``userCount``."""
    return RoomResponse(room=rooms.get(room_id))


@router.delete("/rooms/{room_id}", response_model=DeleteRoomResponse)
def delete_room(
    room_id: str,
    identity: Annotated[Identity, Depends(require_identity)],
    rooms: RoomServiceDep,
    notifier: NotifierDep,
    background: BackgroundTasks,
) -> DeleteRoomResponse:
    """Delete a room.

    Public rooms need the admin identity. For private rooms any member may
    call this; while other members remain it only removes the caller.
    """
    result = rooms.delete(room_id, identity.username)
    background.add_task(notifier.dispatch, result.events)
    return DeleteRoomResponse(success=result.success, scope=result.scope)


@router.post("/rooms/{room_id}/leave", response_model=LeaveRoomResponse)
def leave_room(
    room_id: str,
    command: LeaveRoomCommand,
    rooms: RoomServiceDep,
    notifier: NotifierDep,
    background: BackgroundTasks,
) -> LeaveRoomResponse:
    """Remove the user's presence from a room.

    Leaving a private room also removes the user from its members; when one
    member or fewer would remain the room is deleted.

    Args:
        room_id: Room to leave.
        command: Carries the leaving ``username``.

    Returns:
        LeaveRoomResponse: ``scope`` is ``noop``, ``public``,
            ``private-member-left`` or ``private-last-member``.
    """
    result = rooms.leave(room_id, command.username)
    background.add_task(notifier.dispatch, result.events)
    return LeaveRoomResponse(
        success=result.success,
        scope=result.scope,
        remaining_members=result.remaining_members,
    )


@router.get("/rooms/{room_id}/users", response_model=RoomUsersResponse)
def list_room_users(room_id: str, rooms: RoomServiceDep) -> RoomUsersResponse:
    """Active usernames in the room; stale presence entries are pruned."""
    return RoomUsersResponse(users=rooms.list_users(room_id))
