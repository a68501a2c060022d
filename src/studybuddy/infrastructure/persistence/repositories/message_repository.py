"""Repository for message database operations.

All orderings use created_at with the integer id as tie-break.
"""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from studybuddy.infrastructure.persistence.models import MessageModel


class MessageRepository:
    """Repository for message database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    def _scoped(self, group_id: int | None, author_id: int):
        query = select(MessageModel).options(selectinload(MessageModel.author))
        if group_id is not None:
            return query.where(MessageModel.group_id == group_id)
        # Personal notes are only ever visible to their author
        return query.where(MessageModel.group_id.is_(None), MessageModel.author_id == author_id)

    async def create(self, message: MessageModel) -> MessageModel:
        """Insert a message and flush to obtain its id."""
        self.session.add(message)
        await self.session.flush()
        return message

    async def get_by_id(self, message_id: int) -> MessageModel | None:
        """Get a message by ID with its author loaded."""
        result = await self.session.execute(
            select(MessageModel)
            .options(selectinload(MessageModel.author))
            .where(MessageModel.id == message_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_recent(
        self, group_id: int | None, author_id: int, offset: int, limit: int
    ) -> list[MessageModel]:
        """Fetch one page of the log, newest first.

        Args:
            group_id: Group to read, or None for the author's personal notes.
            author_id: Caller id, used to scope personal notes.
            offset: Number of newest messages to skip.
            limit: Page size.
        """
        result = await self.session.execute(
            self._scoped(group_id, author_id)
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_chronological(
        self, group_id: int | None, author_id: int, offset: int = 0, limit: int | None = None
    ) -> list[MessageModel]:
        """Fetch the log oldest first, in full unless limit is given."""
        query = (
            self._scoped(group_id, author_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete(self, message_id: int) -> None:
        """Hard-delete a message."""
        await self.session.execute(delete(MessageModel).where(MessageModel.id == message_id))
        await self.session.flush()

    async def delete_for_group(self, group_id: int) -> int:
        """Delete every message of a group."""
        result = await self.session.execute(
            delete(MessageModel).where(MessageModel.group_id == group_id)
        )
        await self.session.flush()
        return result.rowcount or 0
