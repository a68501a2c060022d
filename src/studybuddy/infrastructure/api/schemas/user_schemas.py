"""Pydantic schemas for user profile operations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    """Author and member display fields."""

    id: int
    name: str
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserResponse(UserSummary):
    """Schema for a full user profile."""

    email: str
    created_at: datetime


class UserCreate(BaseModel):
    """Schema for completing sign-up after the auth provider issued a token."""

    name: str = Field(..., min_length=1, max_length=100, description="Display name")


class UserUpdate(BaseModel):
    """Schema for editing the caller's profile."""

    name: str | None = Field(None, min_length=1, max_length=100, description="Display name")
    avatar_url: str | None = Field(None, max_length=2048, description="Avatar URL")
