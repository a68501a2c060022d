"""Upload service for message attachments and avatars."""

from typing import Literal

from sqlalchemy.ext.asyncio import AsyncSession

from studybuddy.core.config import Settings, get_settings
from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import BadRequestError, UpstreamError
from studybuddy.domain.services.membership_guard import MembershipGuard
from studybuddy.infrastructure.storage import StorageError, StoredObject, StorageProvider

logger = get_logger(__name__)

UploadKind = Literal["attachment", "avatar"]


def size_limit_for(kind: UploadKind, mime_type: str, settings: Settings) -> int:
    """Maximum upload size in bytes.

    Avatars and images share the smaller ceiling; other attachments use
    the group-file ceiling.
    """
    if kind == "avatar" or mime_type.startswith("image/"):
        return settings.max_image_size
    return settings.max_attachment_size


class AttachmentService:
    """Validates uploads and hands them to the storage provider."""

    def __init__(self, session: AsyncSession, storage: StorageProvider) -> None:
        self.settings = get_settings()
        self.storage = storage
        self.guard = MembershipGuard(session)

    def validate(self, kind: UploadKind, mime_type: str, size: int) -> None:
        """Check type and size before anything is sent to storage.

        Raises:
            BadRequestError: If the file is empty, too large or of a disallowed type.
        """
        if size == 0:
            raise BadRequestError("File is empty")
        if kind == "avatar" and not mime_type.startswith("image/"):
            raise BadRequestError("Avatars must be images")
        if mime_type not in self.settings.allowed_mime_types:
            raise BadRequestError(f"File type '{mime_type}' is not allowed")

        limit = size_limit_for(kind, mime_type, self.settings)
        if size > limit:
            raise BadRequestError(
                f"File size ({size / (1024 * 1024):.2f}MB) exceeds maximum allowed "
                f"size ({limit / (1024 * 1024):.2f}MB)"
            )

    async def upload(
        self,
        caller_id: int,
        content: bytes,
        filename: str,
        mime_type: str,
        kind: UploadKind = "attachment",
        group_id: int | None = None,
    ) -> StoredObject:
        """Store a file and return its public URL.

        Args:
            caller_id: Uploading user.
            content: File bytes.
            filename: Original filename (only the extension is kept).
            mime_type: Declared content type.
            kind: "attachment" for message files, "avatar" for profile images.
            group_id: Group the attachment is for; None for personal notes.

        Raises:
            UnauthorizedError: If uploading to a group the caller is not in.
            BadRequestError: If validation fails.
            UpstreamError: If the storage backend fails.
        """
        self.validate(kind, mime_type, len(content))

        if kind == "avatar":
            scope_key = f"avatars/{caller_id}"
        elif group_id is not None:
            await self.guard.require_member(caller_id, group_id)
            scope_key = f"groups/{group_id}"
        else:
            scope_key = f"notes/{caller_id}"

        try:
            stored = await self.storage.save(scope_key, content, filename, mime_type)
        except StorageError as e:
            logger.error("Upload failed", user_id=caller_id, scope_key=scope_key, error=str(e))
            raise UpstreamError("File storage is unavailable") from e

        logger.info(
            "File uploaded",
            user_id=caller_id,
            scope_key=scope_key,
            size=stored.size,
            mime_type=mime_type,
        )
        return stored
