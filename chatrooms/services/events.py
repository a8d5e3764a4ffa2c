"""Events produced by mutating room and message operations.

Services never notify clients themselves. They return these values once the
store mutation is done and the HTTP layer hands them to a notifier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from chatrooms.schemas.messages import Message
from chatrooms.schemas.rooms import Room


@dataclass(frozen=True)
class RoomCreated:
    room: Room


@dataclass(frozen=True)
class RoomUpdated:
    room_id: str


@dataclass(frozen=True)
class RoomDeleted:
    """A room is gone; ``members`` are the users to notify individually."""

    room_id: str
    room_type: str
    members: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MemberRemoved:
    """``username`` left a private room that still has other members."""

    room_id: str
    username: str


@dataclass(frozen=True)
class MessagePosted:
    room_id: str
    message: Message


RoomEvent = Union[RoomCreated, RoomUpdated, RoomDeleted, MemberRemoved, MessagePosted]
