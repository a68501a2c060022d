"""Pydantic schemas for Group operations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from studybuddy.infrastructure.api.schemas.user_schemas import UserSummary


class GroupBase(BaseModel):
    """Base schema for Group data."""

    name: str = Field(..., min_length=1, max_length=100, description="Group name")
    description: str | None = Field(None, max_length=1000, description="Group description")


class GroupCreate(GroupBase):
    """Schema for creating a group."""

    is_private: bool = Field(False, description="Hide the group from discovery")


class GroupUpdate(BaseModel):
    """Schema for updating a group. Only supplied fields are changed."""

    name: str | None = Field(None, min_length=1, max_length=100, description="Group name")
    description: str | None = Field(None, max_length=1000, description="Group description")
    is_private: bool | None = Field(None, description="Hide the group from discovery")


class GroupResponse(GroupBase):
    """Schema for group response."""

    id: int = Field(..., description="Group ID")
    owner_id: int = Field(..., description="User ID of the owner")
    is_private: bool
    owner: UserSummary | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OwnershipTransfer(BaseModel):
    """Schema for handing a group over to another member."""

    user_id: int = Field(..., description="Member who becomes the owner")
