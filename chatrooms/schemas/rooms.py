"""Room records, room commands and room responses.

Stored JSON and HTTP payloads both use camelCase field names; Python code
uses snake_case attributes through aliases.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

RoomType = Literal["public", "private"]


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Room(CamelModel):
    """Chat room as persisted under ``chat:room:{id}``."""

    id: str
    name: str = ""
    type: RoomType = "public"
    created_at: int = Field(0, alias="createdAt", description="Epoch milliseconds")
    user_count: int = Field(0, alias="userCount", description="Cached active user count")
    members: list[str] | None = Field(
        None,
        description="Explicit member list (private rooms only)",
    )

    @property
    def is_private(self) -> bool:
        return self.type == "private"


class RoomWithUsers(Room):
    users: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------- commands


class CreateRoomCommand(CamelModel):
    name: str | None = Field(None, max_length=64)
    type: RoomType = "public"
    members: list[str] = Field(default_factory=list)


class LeaveRoomCommand(CamelModel):
    username: str | None = None


class SwitchRoomCommand(CamelModel):
    previous_room_id: str | None = Field(None, alias="previousRoomId")
    next_room_id: str | None = Field(None, alias="nextRoomId")
    username: str | None = None


# --------------------------------------------------------------- responses


class RoomResponse(CamelModel):
    room: Room


class RoomsResponse(CamelModel):
    rooms: list[Room]


class RoomUsersResponse(CamelModel):
    users: list[str]


class LeaveRoomResponse(CamelModel):
    success: bool = True
    scope: str
    remaining_members: int | None = Field(None, alias="remainingMembers")


class DeleteRoomResponse(CamelModel):
    success: bool = True
    scope: str


class SwitchRoomResponse(CamelModel):
    success: bool = True
    noop: bool = False
