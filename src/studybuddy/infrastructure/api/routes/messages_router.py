"""Router for the group and personal message log."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, status

from studybuddy.core.logging import get_logger
from studybuddy.domain.services import MessageService
from studybuddy.infrastructure.api.dependencies import (
    AuthenticatedUser,
    Broadcaster,
    DbSession,
)
from studybuddy.infrastructure.api.schemas import (
    MessageCreate,
    MessageResponse,
)
from studybuddy.infrastructure.persistence.models import MessageModel

router = APIRouter(tags=["Messages"])
logger = get_logger(__name__)


def get_message_service(session: DbSession) -> MessageService:
    """Get the message service."""
    return MessageService(session)


Messages = Annotated[MessageService, Depends(get_message_service)]


@router.get(
    "",
    response_model=list[MessageResponse],
    summary="List messages",
)
async def list_messages(
    current_user: AuthenticatedUser,
    messages: Messages,
    group_id: int | None = None,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int | None, Query(ge=1)] = None,
    order: Literal["asc", "desc"] = "desc",
) -> list[MessageModel]:
    """Read a group's log, or the caller's personal notes when ``group_id`` is omitted.

    ``order=desc`` returns pages of the most recent messages by offset; a
    page shorter than ``limit`` is the last one. ``order=asc`` returns the
    log in chronological order.
    """
    return await messages.list_messages(
        current_user.user_id,
        group_id,
        offset=offset,
        limit=limit,
        order=order,
    )


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
async def send_message(
    message_data: MessageCreate,
    current_user: AuthenticatedUser,
    messages: Messages,
    broadcaster: Broadcaster,
) -> MessageModel:
    message = await messages.send_message(
        current_user.user_id,
        message_data.group_id,
        message=message_data.message,
        attachment_url=message_data.attachment_url,
    )
    broadcaster.messages_changed(message.group_id, message.author_id, message.id)
    return message


@router.delete(
    "/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a message",
)
async def delete_message(
    message_id: int,
    current_user: AuthenticatedUser,
    messages: Messages,
    broadcaster: Broadcaster,
) -> None:
    """Delete one of the caller's own messages."""
    message = await messages.delete_message(current_user.user_id, message_id)
    broadcaster.messages_changed(message.group_id, message.author_id, message_id)
