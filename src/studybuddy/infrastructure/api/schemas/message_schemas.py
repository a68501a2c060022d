"""Pydantic schemas for the message log."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from studybuddy.infrastructure.api.schemas.user_schemas import UserSummary


class MessageCreate(BaseModel):
    """Schema for sending a message. Text, attachment or both are required."""

    group_id: int | None = Field(None, description="Target group; omit for a personal note")
    message: str | None = Field(None, max_length=10000, description="Message text")
    attachment_url: str | None = Field(None, max_length=2048, description="Uploaded file URL")


class MessageResponse(BaseModel):
    """Schema for a message joined with its author's display fields."""

    id: int
    group_id: int | None
    author_id: int
    message: str | None
    attachment_url: str | None
    created_at: datetime
    author: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)