"""Repository for membership database operations."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from studybuddy.domain.entities import MembershipRole
from studybuddy.infrastructure.persistence.models import MembershipModel


class MembershipRepository:
    """Repository for membership database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def get(self, user_id: int, group_id: int) -> MembershipModel | None:
        """Get the membership of a user in a group."""
        result = await self.session.execute(
            select(MembershipModel).where(
                (MembershipModel.user_id == user_id) & (MembershipModel.group_id == group_id)
            )
        )
        return result.scalar_one_or_none()

    async def is_member(self, user_id: int, group_id: int) -> bool:
        """Check if a user holds any membership in a group."""
        return await self.get(user_id, group_id) is not None

    async def add(
        self,
        user_id: int,
        group_id: int,
        role: MembershipRole = MembershipRole.MEMBER,
    ) -> MembershipModel:
        """Insert a membership row.

        Raises:
            sqlalchemy.exc.IntegrityError: If the user is already a member.
        """
        membership = MembershipModel(user_id=user_id, group_id=group_id, role=role.value)
        self.session.add(membership)
        await self.session.flush()
        return membership

    async def remove(self, user_id: int, group_id: int) -> int:
        """Delete a user's membership in a group.

        Returns:
            Number of rows removed.
        """
        result = await self.session.execute(
            delete(MembershipModel).where(
                (MembershipModel.user_id == user_id) & (MembershipModel.group_id == group_id)
            )
        )
        await self.session.flush()
        return result.rowcount or 0

    async def set_role(self, membership: MembershipModel, role: MembershipRole) -> None:
        """Change the role on an existing membership."""
        membership.role = role.value
        await self.session.flush()

    async def delete_for_group(self, group_id: int) -> int:
        """Delete every membership of a group."""
        result = await self.session.execute(
            delete(MembershipModel).where(MembershipModel.group_id == group_id)
        )
        await self.session.flush()
        return result.rowcount or 0

    async def list_for_group(self, group_id: int) -> list[MembershipModel]:
        """List the roster of a group with users loaded, oldest member first."""
        result = await self.session.execute(
            select(MembershipModel)
            .options(selectinload(MembershipModel.user))
            .where(MembershipModel.group_id == group_id)
            .order_by(MembershipModel.joined_at.asc(), MembershipModel.id.asc())
        )
        return list(result.scalars().all())
