"""Message and user records plus message endpoint payloads."""

from __future__ import annotations

from pydantic import Field

from chatrooms.schemas.rooms import CamelModel


class Message(CamelModel):
    """One entry of a room's message log. Immutable once stored."""

    id: str
    room_id: str = Field(alias="roomId")
    username: str
    content: str = Field(description="Sanitized (profanity-masked, HTML-escaped) text")
    timestamp: int = Field(description="Epoch milliseconds")


class User(CamelModel):
    username: str
    last_active: int = Field(0, alias="lastActive")


class SendMessageCommand(CamelModel):
    content: str | None = None


class MessageResponse(CamelModel):
    message: Message


class MessagesResponse(CamelModel):
    messages: list[Message]
    count: int


class DeleteMessageResponse(CamelModel):
    success: bool = True
    message_id: str = Field(alias="messageId")
