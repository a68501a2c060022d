"""Membership and ownership checks shared by the group and message services."""

from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import ForbiddenError, NotFoundError, UnauthorizedError
from studybuddy.infrastructure.persistence.models import GroupModel
from studybuddy.infrastructure.persistence.repositories import (
    GroupRepository,
    MembershipRepository,
)

logger = get_logger(__name__)


class MembershipGuard:
    """Authorization predicates over the memberships table.

    Failed checks always raise. They never degrade into an empty result.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.group_repo = GroupRepository(session)
        self.membership_repo = MembershipRepository(session)

    async def is_member(self, user_id: int, group_id: int) -> bool:
        """Check whether the user holds a membership in the group."""
        return await self.membership_repo.is_member(user_id, group_id)

    async def is_owner(self, user_id: int, group_id: int) -> bool:
        """Check whether the user owns the group."""
        group = await self.group_repo.get_by_id(group_id)
        return group is not None and group.owner_id == user_id

    async def require_member(self, user_id: int, group_id: int) -> None:
        """Ensure the user is a member of the group.

        Raises:
            UnauthorizedError: If the user holds no membership. Absent groups
                fail the same way, so existence is not leaked.
        """
        if not await self.is_member(user_id, group_id):
            logger.info("Membership check failed", user_id=user_id, group_id=group_id)
            raise UnauthorizedError("Group membership required")

    async def require_owner(self, user_id: int, group_id: int) -> GroupModel:
        """Ensure the user owns the group and return it.

        Raises:
            NotFoundError: If the group does not exist.
            ForbiddenError: If the user is not the owner.
        """
        group = await self.group_repo.get_by_id(group_id)
        if group is None:
            raise NotFoundError("Group not found")
        if group.owner_id != user_id:
            logger.info("Ownership check failed", user_id=user_id, group_id=group_id)
            raise ForbiddenError("Only the group owner can do this")
        return group
