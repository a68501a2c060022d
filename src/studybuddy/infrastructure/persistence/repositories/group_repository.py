"""Repository for group database operations."""

from __future__ import annotations

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from studybuddy.infrastructure.persistence.models import GroupModel, MembershipModel


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class GroupRepository:
    """Repository for group database operations.

    Every read eagerly loads the owner so groups can be serialized
    without further queries.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    def _select(self):
        return (
            select(GroupModel)
            .options(selectinload(GroupModel.owner))
            .execution_options(populate_existing=True)
        )

    async def create(self, group: GroupModel) -> GroupModel:
        """Insert a new group and flush to obtain its id."""
        self.session.add(group)
        await self.session.flush()
        return group

    async def get_by_id(self, group_id: int) -> GroupModel | None:
        """Get a group by ID, with its owner loaded."""
        result = await self.session.execute(self._select().where(GroupModel.id == group_id))
        return result.scalar_one_or_none()

    async def exists(self, group_id: int) -> bool:
        """Check whether a group exists without loading it."""
        result = await self.session.execute(select(GroupModel.id).where(GroupModel.id == group_id))
        return result.scalar_one_or_none() is not None

    async def list_all(self, search: str | None = None) -> list[GroupModel]:
        """List every group, newest first, optionally filtered.

        Args:
            search: Case-insensitive substring matched against name or description.
        """
        query = self._select()
        if search:
            pattern = f"%{_escape_like(search)}%"
            query = query.where(
                or_(
                    GroupModel.name.ilike(pattern, escape="\\"),
                    GroupModel.description.ilike(pattern, escape="\\"),
                )
            )
        result = await self.session.execute(
            query.order_by(GroupModel.created_at.desc(), GroupModel.id.desc())
        )
        return list(result.scalars().all())

    async def list_for_user(self, user_id: int) -> list[GroupModel]:
        """List the groups a user holds a membership in, newest first."""
        result = await self.session.execute(
            self._select()
            .join(MembershipModel, MembershipModel.group_id == GroupModel.id)
            .where(MembershipModel.user_id == user_id)
            .order_by(GroupModel.created_at.desc(), GroupModel.id.desc())
        )
        return list(result.scalars().all())

    async def list_discoverable(self, user_id: int) -> list[GroupModel]:
        """List public groups the user does not belong to, newest first."""
        joined = select(MembershipModel.group_id).where(MembershipModel.user_id == user_id)
        result = await self.session.execute(
            self._select()
            .where(GroupModel.is_private.is_(False))
            .where(GroupModel.id.not_in(joined))
            .order_by(GroupModel.created_at.desc(), GroupModel.id.desc())
        )
        return list(result.scalars().all())

    async def update(self, group: GroupModel) -> GroupModel:
        """Flush pending changes on a group."""
        if group not in self.session:
            self.session.add(group)
        await self.session.flush()
        return group

    async def delete(self, group_id: int) -> None:
        """Delete the group row only; dependents must be removed first."""
        await self.session.execute(delete(GroupModel).where(GroupModel.id == group_id))
        await self.session.flush()
