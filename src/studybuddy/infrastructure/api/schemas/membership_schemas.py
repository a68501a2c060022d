"""Pydantic schemas for group membership."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from studybuddy.domain.entities import MembershipRole
from studybuddy.infrastructure.api.schemas.user_schemas import UserSummary


class MembershipResponse(BaseModel):
    """A single membership row."""

    id: int
    user_id: int
    group_id: int
    role: MembershipRole
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MemberResponse(MembershipResponse):
    """Roster entry with the member's display fields."""

    user: UserSummary
