"""Error body shared by every failing endpoint."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Response schema for errors."""

    error: str = Field(..., description="Machine readable error code")
    detail: str = Field(..., description="Human readable message")
