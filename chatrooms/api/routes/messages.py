from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status

from chatrooms.adapters.notify import AbstractNotifier
from chatrooms.core.auth import Identity, require_admin, require_identity
from chatrooms.core.dependencies import get_message_service, get_notifier
from chatrooms.schemas.messages import (
    DeleteMessageResponse,
    MessageResponse,
    MessagesResponse,
    SendMessageCommand,
)
from chatrooms.services.message_service import MessageService

router = APIRouter(tags=["Messages"])

MessageServiceDep = Annotated[MessageService, Depends(get_message_service)]


@router.get("/rooms/{room_id}/messages", response_model=MessagesResponse)
def list_messages(
    room_id: str,
    messages: MessageServiceDep,
    limit: Annotated[int | None, Query(description="Clamped to 1..500; defaults to 20")] = None,
) -> MessagesResponse:
    """Most recent messages, newest first."""
    items = messages.list_messages(room_id, limit)
    return MessagesResponse(messages=items, count=len(items))


@router.post(
    "/rooms/{room_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    room_id: str,
    command: SendMessageCommand,
    identity: Annotated[Identity, Depends(require_identity)],
    messages: MessageServiceDep,
    notifier: Annotated[AbstractNotifier, Depends(get_notifier)],
    background: BackgroundTasks,
) -> MessageResponse:
    """Post a message as the authenticated user.

    Public rooms apply burst protection (429 with ``Retry-After``). Repeating
    your own previous message verbatim is rejected with 400.
    """
    result = messages.send(room_id, identity.username, command.content)
    background.add_task(notifier.dispatch, result.events)
    return MessageResponse(message=result.message)


@router.delete(
    "/rooms/{room_id}/messages/{message_id}",
    response_model=DeleteMessageResponse,
    dependencies=[Depends(require_admin)],
)
def delete_message(room_id: str, message_id: str, messages: MessageServiceDep) -> DeleteMessageResponse:
    """Remove one message from a room log (admin only).

    Raises:
        AuthorizationAppError: 403 for any identity but the admin.
        NotFoundAppError: 404 when the room or the message does not exist.
    """
    messages.delete_message(room_id, message_id)
    return DeleteMessageResponse(success=True, message_id=message_id)
