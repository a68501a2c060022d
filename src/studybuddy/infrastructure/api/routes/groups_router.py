"""Router for group management and membership."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from studybuddy.core.logging import get_logger
from studybuddy.domain.services import GroupService
from studybuddy.infrastructure.api.dependencies import (
    AuthenticatedUser,
    Broadcaster,
    DbSession,
)
from studybuddy.infrastructure.api.schemas import (
    GroupCreate,
    GroupResponse,
    GroupUpdate,
    MemberResponse,
    MembershipResponse,
    OwnershipTransfer,
)
from studybuddy.infrastructure.persistence.models import GroupModel, MembershipModel

router = APIRouter(tags=["Groups"])
logger = get_logger(__name__)


def get_group_service(session: DbSession) -> GroupService:
    """Get the group service."""
    return GroupService(session)


Groups = Annotated[GroupService, Depends(get_group_service)]


@router.get(
    "",
    response_model=list[GroupResponse],
    summary="List all groups",
)
async def list_groups(
    groups: Groups,
    search: Annotated[str | None, Query(max_length=100)] = None,
) -> list[GroupModel]:
    """List every group, newest first. No authentication required."""
    return await groups.list_all_groups(search)


@router.get(
    "/mine",
    response_model=list[GroupResponse],
    summary="List the caller's groups",
)
async def list_my_groups(current_user: AuthenticatedUser, groups: Groups) -> list[GroupModel]:
    return await groups.list_user_groups(current_user.user_id)


@router.get(
    "/discover",
    response_model=list[GroupResponse],
    summary="List public groups the caller has not joined",
)
async def discover_groups(current_user: AuthenticatedUser, groups: Groups) -> list[GroupModel]:
    return await groups.discover_groups(current_user.user_id)


@router.post(
    "",
    response_model=GroupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new group",
)
async def create_group(
    group_data: GroupCreate,
    current_user: AuthenticatedUser,
    groups: Groups,
) -> GroupModel:
    """Create a group; the caller becomes its owner and first member."""
    return await groups.create_group(
        current_user.user_id,
        group_data.name,
        description=group_data.description,
        is_private=group_data.is_private,
    )


@router.get(
    "/{group_id}",
    response_model=GroupResponse,
    summary="Get a group",
)
async def get_group(group_id: int, groups: Groups) -> GroupModel:
    return await groups.get_group(group_id)


@router.patch(
    "/{group_id}",
    response_model=GroupResponse,
    summary="Update a group",
)
async def update_group(
    group_id: int,
    group_data: GroupUpdate,
    current_user: AuthenticatedUser,
    groups: Groups,
    broadcaster: Broadcaster,
) -> GroupModel:
    """Update name, description or visibility. Owner only."""
    group = await groups.update_group(
        current_user.user_id, group_id, group_data.model_dump(exclude_unset=True)
    )
    broadcaster.group_updated(group_id)
    return group


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group",
)
async def delete_group(
    group_id: int,
    current_user: AuthenticatedUser,
    groups: Groups,
    broadcaster: Broadcaster,
) -> None:
    """Delete a group with all its memberships and messages. Owner only."""
    await groups.delete_group(current_user.user_id, group_id)
    broadcaster.group_deleted(group_id)


@router.post(
    "/{group_id}/join",
    response_model=MembershipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Join a group",
)
async def join_group(
    group_id: int,
    current_user: AuthenticatedUser,
    groups: Groups,
    broadcaster: Broadcaster,
) -> MembershipModel:
    membership = await groups.join_group(current_user.user_id, group_id)
    broadcaster.members_changed(group_id, current_user.user_id)
    return membership


@router.post(
    "/{group_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave a group",
)
async def leave_group(
    group_id: int,
    current_user: AuthenticatedUser,
    groups: Groups,
    broadcaster: Broadcaster,
) -> None:
    """Leave a group. Owners must transfer ownership first."""
    await groups.leave_group(current_user.user_id, group_id)
    broadcaster.member_left(group_id, current_user.user_id)


@router.get(
    "/{group_id}/members",
    response_model=list[MemberResponse],
    summary="List group members",
)
async def list_members(
    group_id: int,
    current_user: AuthenticatedUser,
    groups: Groups,
) -> list[MembershipModel]:
    return await groups.list_members(current_user.user_id, group_id)


@router.post(
    "/{group_id}/transfer",
    response_model=GroupResponse,
    summary="Transfer group ownership",
)
async def transfer_ownership(
    group_id: int,
    transfer: OwnershipTransfer,
    current_user: AuthenticatedUser,
    groups: Groups,
    broadcaster: Broadcaster,
) -> GroupModel:
    group = await groups.transfer_ownership(current_user.user_id, group_id, transfer.user_id)
    broadcaster.members_changed(group_id, transfer.user_id)
    broadcaster.group_updated(group_id)
    return group
