"""Repository for external identity mappings."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.infrastructure.persistence.models import IdentityModel


class IdentityRepository:
    """Repository for the subject → user id mapping table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_subject(self, subject_id: str) -> IdentityModel | None:
        """Look up the mapping for an external subject."""
        result = await self.session.execute(
            select(IdentityModel).where(IdentityModel.subject_id == subject_id)
        )
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: int) -> IdentityModel | None:
        """Look up the mapping that points at an internal user."""
        result = await self.session.execute(
            select(IdentityModel).where(IdentityModel.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def create(self, identity: IdentityModel) -> IdentityModel:
        """Insert a new mapping."""
        self.session.add(identity)
        await self.session.flush()
        return identity
