"""User profile service."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import BadRequestError, NotFoundError
from studybuddy.infrastructure.persistence.models import UserModel
from studybuddy.infrastructure.persistence.repositories import UserRepository

logger = get_logger(__name__)


class UserService:
    """Read and edit user profiles."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.user_repo = UserRepository(session)

    async def get_user(self, user_id: int) -> UserModel:
        """Get a user by ID.

        Raises:
            NotFoundError: If the user does not exist.
        """
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_user(self, user_id: int, changes: dict[str, Any]) -> UserModel:
        """Update the caller's name and/or avatar.

        Raises:
            NotFoundError: If the user does not exist.
            BadRequestError: If no field is supplied or the name is blank.
        """
        fields = {key: value for key, value in changes.items() if key in ("name", "avatar_url")}
        if not fields:
            raise BadRequestError("No fields to update")

        user = await self.get_user(user_id)
        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise BadRequestError("Name cannot be empty")
            user.name = name
        if "avatar_url" in fields:
            user.avatar_url = fields["avatar_url"]

        await self.user_repo.update(user)
        await self.session.commit()
        logger.info("Profile updated", user_id=user_id, fields=sorted(fields))
        return user
