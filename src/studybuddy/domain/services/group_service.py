"""Group service for business logic.

Provides group lifecycle operations (create, update, delete), discovery
and membership changes (join, leave, ownership transfer). Ownership is
enforced for every group mutation.
"""

from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.core.logging import get_logger
from studybuddy.domain.entities import MembershipRole
from studybuddy.domain.errors import BadRequestError, ForbiddenError, NotFoundError
from studybuddy.domain.services.membership_guard import MembershipGuard
from studybuddy.infrastructure.persistence.models import GroupModel, MembershipModel
from studybuddy.infrastructure.persistence.repositories import (
    GroupRepository,
    MembershipRepository,
    MessageRepository,
)

logger = get_logger(__name__)

UPDATABLE_FIELDS = ("name", "description", "is_private")


class GroupService:
    """Service for group management business logic."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the group service.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session
        self.group_repo = GroupRepository(session)
        self.membership_repo = MembershipRepository(session)
        self.message_repo = MessageRepository(session)
        self.guard = MembershipGuard(session)

    async def list_all_groups(self, search: str | None = None) -> list[GroupModel]:
        """List every group, newest first, optionally filtered by a search term."""
        term = search.strip() if search else None
        return await self.group_repo.list_all(term or None)

    async def list_user_groups(self, caller_id: int) -> list[GroupModel]:
        """List the groups the caller belongs to."""
        return await self.group_repo.list_for_user(caller_id)

    async def discover_groups(self, caller_id: int) -> list[GroupModel]:
        """List public groups the caller has not joined yet."""
        return await self.group_repo.list_discoverable(caller_id)

    async def get_group(self, group_id: int) -> GroupModel:
        """Get a group by ID.

        Raises:
            NotFoundError: If the group does not exist.
        """
        group = await self.group_repo.get_by_id(group_id)
        if group is None:
            raise NotFoundError("Group not found")
        return group

    async def create_group(
        self,
        caller_id: int,
        name: str,
        description: str | None = None,
        is_private: bool = False,
    ) -> GroupModel:
        """Create a group owned by the caller.

        The group row and the owner membership are written in one
        transaction, so a failure never leaves an ownerless group behind.

        Raises:
            BadRequestError: If the name is blank.
        """
        name = (name or "").strip()
        if not name:
            raise BadRequestError("Group name is required")

        try:
            group = await self.group_repo.create(
                GroupModel(
                    name=name,
                    description=description,
                    owner_id=caller_id,
                    is_private=is_private,
                )
            )
            await self.membership_repo.add(caller_id, group.id, MembershipRole.OWNER)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.error("Group creation rolled back", owner_id=caller_id, name=name)
            raise

        logger.info("Group created", group_id=group.id, owner_id=caller_id, is_private=is_private)
        return await self.get_group(group.id)

    async def update_group(
        self, caller_id: int, group_id: int, changes: dict[str, Any]
    ) -> GroupModel:
        """Apply a partial update to a group.

        Args:
            caller_id: User performing the update.
            group_id: Group to update.
            changes: Subset of name, description and is_private.

        Raises:
            NotFoundError: If the group does not exist.
            ForbiddenError: If the caller is not the owner.
            BadRequestError: If no field is supplied or a value is invalid.
        """
        group = await self.guard.require_owner(caller_id, group_id)

        fields = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
        if not fields:
            raise BadRequestError("No fields to update")

        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise BadRequestError("Group name cannot be empty")
            group.name = name
        if "description" in fields:
            group.description = fields["description"]
        if "is_private" in fields:
            if fields["is_private"] is None:
                raise BadRequestError("is_private cannot be null")
            group.is_private = bool(fields["is_private"])

        await self.group_repo.update(group)
        await self.session.commit()
        logger.info("Group updated", group_id=group_id, fields=sorted(fields))
        return await self.get_group(group_id)

    async def delete_group(self, caller_id: int, group_id: int) -> None:
        """Delete a group with its messages and memberships.

        Dependents are removed before the group row so referential
        constraints hold on stores without cascading deletes.

        Raises:
            NotFoundError: If the group does not exist.
            ForbiddenError: If the caller is not the owner.
        """
        await self.guard.require_owner(caller_id, group_id)

        try:
            messages = await self.message_repo.delete_for_group(group_id)
            memberships = await self.membership_repo.delete_for_group(group_id)
            await self.group_repo.delete(group_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Group deleted",
            group_id=group_id,
            messages_deleted=messages,
            memberships_deleted=memberships,
        )

    async def join_group(self, caller_id: int, group_id: int) -> MembershipModel:
        """Add the caller to a group as a member.

        Raises:
            NotFoundError: If the group does not exist.
            BadRequestError: If the caller is already a member.
        """
        if not await self.group_repo.exists(group_id):
            raise NotFoundError("Group not found")
        if await self.membership_repo.is_member(caller_id, group_id):
            raise BadRequestError("Already a member of this group")

        try:
            membership = await self.membership_repo.add(caller_id, group_id)
            await self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent join; the unique key kept one row
            await self.session.rollback()
            raise BadRequestError("Already a member of this group")

        logger.info("Group joined", group_id=group_id, user_id=caller_id)
        return membership

    async def leave_group(self, caller_id: int, group_id: int) -> None:
        """Remove the caller's membership.

        Owners cannot leave: they must transfer ownership or delete the group.

        Raises:
            NotFoundError: If the group does not exist.
            BadRequestError: If the caller is not a member.
            ForbiddenError: If the caller owns the group.
        """
        group = await self.get_group(group_id)
        if not await self.membership_repo.is_member(caller_id, group_id):
            raise BadRequestError("Not a member of this group")
        if group.owner_id == caller_id:
            raise ForbiddenError("Transfer ownership before leaving the group")

        await self.membership_repo.remove(caller_id, group_id)
        await self.session.commit()
        logger.info("Group left", group_id=group_id, user_id=caller_id)

    async def list_members(self, caller_id: int, group_id: int) -> list[MembershipModel]:
        """List the roster of a group; only members may see it.

        Raises:
            UnauthorizedError: If the caller is not a member.
        """
        await self.guard.require_member(caller_id, group_id)
        return await self.membership_repo.list_for_group(group_id)

    async def transfer_ownership(
        self, caller_id: int, group_id: int, new_owner_id: int
    ) -> GroupModel:
        """Hand the group over to another member.

        The old owner stays on as a regular member.

        Raises:
            NotFoundError: If the group does not exist.
            ForbiddenError: If the caller is not the owner.
            BadRequestError: If the target is the caller or not a member.
        """
        group = await self.guard.require_owner(caller_id, group_id)
        if new_owner_id == caller_id:
            raise BadRequestError("You already own this group")

        target = await self.membership_repo.get(new_owner_id, group_id)
        if target is None:
            raise BadRequestError("New owner must be a member of the group")
        current = await self.membership_repo.get(caller_id, group_id)

        try:
            if current is not None:
                await self.membership_repo.set_role(current, MembershipRole.MEMBER)
            await self.membership_repo.set_role(target, MembershipRole.OWNER)
            group.owner_id = new_owner_id
            await self.group_repo.update(group)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Group ownership transferred",
            group_id=group_id,
            previous_owner_id=caller_id,
            owner_id=new_owner_id,
        )
        return await self.get_group(group_id)
