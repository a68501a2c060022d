"""Message service for business logic.

The message log is append-only and scoped either to a group (readable by
its members) or to its author (personal notes, ``group_id`` null). Two
read strategies are supported:

* ``desc``: pages of the most recent messages by offset, newest first.
  A page shorter than the requested size marks the end of the log.
* ``asc``: the log in chronological order, in full by default.

Ordering is always ``created_at`` with the message id as tie-break.
"""

from typing import Literal

from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import BadRequestError, ForbiddenError, NotFoundError
from studybuddy.domain.services.membership_guard import MembershipGuard
from studybuddy.infrastructure.persistence.models import MessageModel
from studybuddy.infrastructure.persistence.repositories import MessageRepository

logger = get_logger(__name__)

MessageOrder = Literal["asc", "desc"]


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value if value.strip() else None


class MessageService:
    """Service for the group and personal message log."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the message service.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session
        self.settings = get_settings()
        self.message_repo = MessageRepository(session)
        self.guard = MembershipGuard(session)

    async def list_messages(
        self,
        caller_id: int,
        group_id: int | None,
        offset: int = 0,
        limit: int | None = None,
        order: MessageOrder = "desc",
    ) -> list[MessageModel]:
        """Read messages of a group, or the caller's personal notes.

        Args:
            caller_id: User reading the log.
            group_id: Group to read; None for the caller's personal notes.
            offset: Messages to skip from the start of the chosen order.
            limit: Page size. Defaults to the configured page size for
                ``desc``; ``asc`` returns everything when omitted.
            order: ``desc`` for newest-first pages, ``asc`` for chronological.

        Raises:
            UnauthorizedError: If the caller is not a member of the group.
            BadRequestError: If offset or limit is out of range.
        """
        if order not in ("asc", "desc"):
            raise BadRequestError("order must be 'asc' or 'desc'")
        if offset < 0:
            raise BadRequestError("offset cannot be negative")
        if limit is not None and not 0 < limit <= self.settings.max_page_size:
            raise BadRequestError(
                f"limit must be between 1 and {self.settings.max_page_size}"
            )

        if group_id is not None:
            await self.guard.require_member(caller_id, group_id)

        if order == "desc":
            return await self.message_repo.list_recent(
                group_id,
                caller_id,
                offset=offset,
                limit=limit or self.settings.message_page_size,
            )
        return await self.message_repo.list_chronological(
            group_id, caller_id, offset=offset, limit=limit
        )

    async def send_message(
        self,
        caller_id: int,
        group_id: int | None,
        message: str | None = None,
        attachment_url: str | None = None,
    ) -> MessageModel:
        """Append a message to a group log or to the caller's personal notes.

        Raises:
            UnauthorizedError: If the caller is not a member of the group.
            BadRequestError: If both text and attachment are absent.
        """
        if group_id is not None:
            await self.guard.require_member(caller_id, group_id)

        message = _clean(message)
        attachment_url = _clean(attachment_url)
        if message is None and attachment_url is None:
            raise BadRequestError("A message needs text or an attachment")

        created = await self.message_repo.create(
            MessageModel(
                group_id=group_id,
                author_id=caller_id,
                message=message,
                attachment_url=attachment_url,
            )
        )
        await self.session.commit()

        logger.info(
            "Message sent",
            message_id=created.id,
            group_id=group_id,
            author_id=caller_id,
            has_attachment=attachment_url is not None,
        )
        full = await self.message_repo.get_by_id(created.id)
        if full is None:
            raise RuntimeError(f"Message {created.id} vanished after insert")
        return full

    async def delete_message(self, caller_id: int, message_id: int) -> MessageModel:
        """Hard-delete a message written by the caller.

        Membership is re-checked for group messages, so an author who has
        left the group can no longer touch its log.

        Returns:
            The deleted message (detached), for change notifications.

        Raises:
            NotFoundError: If the message does not exist.
            ForbiddenError: If the caller is not the author.
            UnauthorizedError: If the caller no longer belongs to the group.
        """
        message = await self.message_repo.get_by_id(message_id)
        if message is None:
            raise NotFoundError("Message not found")
        if message.author_id != caller_id:
            raise ForbiddenError("Only the author can delete a message")
        if message.group_id is not None:
            await self.guard.require_member(caller_id, message.group_id)

        await self.message_repo.delete(message_id)
        await self.session.commit()

        logger.info("Message deleted", message_id=message_id, group_id=message.group_id)
        return message
