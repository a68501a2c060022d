"""Router for user profiles."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger
from studybuddy.domain.services import IdentityResolver, UserService
from studybuddy.infrastructure.api.dependencies import (
    AuthenticatedUser,
    CallerIdentity,
    DbSession,
)
from studybuddy.infrastructure.api.schemas import UserCreate, UserResponse, UserSummary, UserUpdate
from studybuddy.infrastructure.persistence.models import UserModel

router = APIRouter(tags=["Users"])
logger = get_logger(__name__)


def get_user_service(session: DbSession) -> UserService:
    """Get the user service."""
    return UserService(session)


Users = Annotated[UserService, Depends(get_user_service)]


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create the caller's profile",
)
async def create_user(
    user_data: UserCreate,
    identity: CallerIdentity,
    session: DbSession,
) -> UserModel:
    """Complete sign-up for a freshly authenticated identity.

    Fails with 409 when the identity already has a profile or its email
    is registered to another user.
    """
    resolver = IdentityResolver(session, get_settings().identity_strategy)
    return await resolver.register(identity, user_data.name.strip())


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get the caller's profile",
)
async def get_me(current_user: AuthenticatedUser, users: Users) -> UserModel:
    return await users.get_user(current_user.user_id)


@router.patch(
    "/me",
    response_model=UserResponse,
    summary="Update the caller's profile",
)
async def update_me(
    user_data: UserUpdate,
    current_user: AuthenticatedUser,
    users: Users,
) -> UserModel:
    return await users.update_user(current_user.user_id, user_data.model_dump(exclude_unset=True))


@router.get(
    "/{user_id}",
    response_model=UserSummary,
    summary="Get a user's public profile",
)
async def get_user(user_id: int, users: Users) -> UserModel:
    return await users.get_user(user_id)
