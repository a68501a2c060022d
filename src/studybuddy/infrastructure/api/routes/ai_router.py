"""Router for the AI study helpers."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, UploadFile

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger
from studybuddy.domain.services import DocumentTextService, StudyAssistantService
from studybuddy.infrastructure.ai import CompletionProvider
from studybuddy.infrastructure.api.dependencies import (
    AuthenticatedUser,
    get_ai_providers,
    get_rate_limiter,
)
from studybuddy.infrastructure.api.schemas import (
    ExtractedTextResponse,
    FlashcardsResponse,
    QuizResponse,
    StudyAssistRequest,
    SummaryResponse,
)
from studybuddy.infrastructure.security import RateLimitStorage

router = APIRouter(tags=["AI"])
logger = get_logger(__name__)


def get_study_assistant(
    providers: Annotated[dict[str, CompletionProvider], Depends(get_ai_providers)],
    rate_limits: Annotated[RateLimitStorage, Depends(get_rate_limiter)],
) -> StudyAssistantService:
    """Get the study assistant service."""
    return StudyAssistantService(providers, rate_limits)


@router.post(
    "/generate",
    response_model=SummaryResponse | QuizResponse | FlashcardsResponse,
    summary="Generate a summary, quiz or flashcards",
)
async def generate(
    request_data: StudyAssistRequest,
    current_user: AuthenticatedUser,
    assistant: Annotated[StudyAssistantService, Depends(get_study_assistant)],
) -> dict[str, Any]:
    """Relay study material to the caller's chosen LLM provider.

    Limited to ten requests per minute per user. The caller supplies their
    own provider key; it is never stored.
    """
    count = request_data.num_questions if request_data.type == "quiz" else request_data.num_flashcards
    return await assistant.generate(
        current_user.user_id,
        request_data.text,
        request_data.type,
        request_data.provider,
        request_data.api_key,
        count=count,
    )


@router.post(
    "/extract-pdf",
    response_model=ExtractedTextResponse,
    summary="Extract the text of a PDF",
)
async def extract_pdf(
    current_user: AuthenticatedUser,
    file: UploadFile = File(..., description="PDF document"),
) -> ExtractedTextResponse:
    """Pull the text out of a PDF so it can be sent to ``/generate``.

    The file is parsed in memory and never stored.
    """
    # One byte past the ceiling is enough to reject an oversized file
    content = await file.read(get_settings().ai_max_pdf_size + 1)
    text = await DocumentTextService().extract_pdf(
        content, file.content_type or "application/octet-stream"
    )
    logger.info("PDF text extracted for AI", user_id=current_user.user_id, filename=file.filename)
    return ExtractedTextResponse(text=text, characters=len(text))
