"""API Schemas for request/response validation."""

from studybuddy.infrastructure.api.schemas.ai_schemas import (
    ExtractedTextResponse,
    FlashcardsResponse,
    QuizResponse,
    StudyAssistRequest,
    SummaryResponse,
)
from studybuddy.infrastructure.api.schemas.error_schemas import ErrorResponse
from studybuddy.infrastructure.api.schemas.file_schemas import (
    FileMetadataResponse,
    FileUploadResponse,
)
from studybuddy.infrastructure.api.schemas.group_schemas import (
    GroupCreate,
    GroupResponse,
    GroupUpdate,
    OwnershipTransfer,
)
from studybuddy.infrastructure.api.schemas.membership_schemas import (
    MemberResponse,
    MembershipResponse,
)
from studybuddy.infrastructure.api.schemas.message_schemas import (
    MessageCreate,
    MessageResponse,
)
from studybuddy.infrastructure.api.schemas.user_schemas import (
    UserCreate,
    UserResponse,
    UserSummary,
    UserUpdate,
)

__all__ = [
    "ErrorResponse",
    "ExtractedTextResponse",
    "FileMetadataResponse",
    "FileUploadResponse",
    "FlashcardsResponse",
    "GroupCreate",
    "GroupResponse",
    "GroupUpdate",
    "MemberResponse",
    "MembershipResponse",
    "MessageCreate",
    "MessageResponse",
    "OwnershipTransfer",
    "QuizResponse",
    "StudyAssistRequest",
    "SummaryResponse",
    "UserCreate",
    "UserResponse",
    "UserSummary",
    "UserUpdate",
]
