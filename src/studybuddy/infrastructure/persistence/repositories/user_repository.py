"""Repository for user database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.infrastructure.persistence.models import UserModel


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, user: UserModel) -> UserModel:
        """Insert a new user and flush to obtain its id."""
        self.session.add(user)
        await self.session.flush()
        return user

    async def get_by_id(self, user_id: int) -> UserModel | None:
        """Get a user by ID."""
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> UserModel | None:
        """Get a user by email address."""
        result = await self.session.execute(select(UserModel).where(UserModel.email == email))
        return result.scalar_one_or_none()

    async def update(self, user: UserModel) -> UserModel:
        """Flush pending changes on a user."""
        if user not in self.session:
            self.session.add(user)
        await self.session.flush()
        return user
