"""File storage API endpoints for uploading and serving files."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse

from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import NotFoundError
from studybuddy.domain.services import AttachmentService
from studybuddy.infrastructure.api.dependencies import (
    AuthenticatedUser,
    DbSession,
    Storage,
    get_storage,
)
from studybuddy.infrastructure.api.schemas import FileMetadataResponse, FileUploadResponse
from studybuddy.infrastructure.storage import LocalStorageProvider, StorageProvider

logger = get_logger(__name__)

router = APIRouter(tags=["files"])

# Public downloads for the local provider, mounted outside the API prefix
download_router = APIRouter(tags=["files"])


@router.post(
    "/upload",
    response_model=FileUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file",
    description="Upload an attachment or avatar. Returns the public URL to reference from a message or profile.",
)
async def upload_file(
    current_user: AuthenticatedUser,
    session: DbSession,
    storage: Storage,
    file: UploadFile = File(..., description="File to upload"),
    kind: Annotated[Literal["attachment", "avatar"], Form()] = "attachment",
    group_id: Annotated[int | None, Form()] = None,
) -> FileUploadResponse:
    """Upload a file to storage."""
    filename = file.filename or "unnamed"
    mime_type = file.content_type or "application/octet-stream"
    content = await file.read()

    stored = await AttachmentService(session, storage).upload(
        current_user.user_id,
        content,
        filename,
        mime_type,
        kind=kind,
        group_id=group_id,
    )

    return FileUploadResponse(
        file=FileMetadataResponse(
            filename=stored.filename,
            size=stored.size,
            mime_type=stored.mime_type,
            path=stored.path,
            url=stored.url,
        ),
    )


@download_router.get(
    "/{file_path:path}",
    response_class=FileResponse,
    response_model=None,
    summary="Download a file",
)
async def download_file(
    file_path: str,
    storage: Annotated[StorageProvider, Depends(get_storage)],
) -> FileResponse:
    """Serve a file written by the local storage provider."""
    if not isinstance(storage, LocalStorageProvider):
        raise NotFoundError("File not found")
    try:
        absolute_path = storage.resolve(file_path)
    except ValueError:
        logger.warning("Rejected file path", file_path=file_path)
        raise NotFoundError("File not found")
    if not absolute_path.is_file():
        raise NotFoundError("File not found")
    return FileResponse(path=absolute_path, filename=absolute_path.name)
