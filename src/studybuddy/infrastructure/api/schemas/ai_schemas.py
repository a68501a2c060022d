"""Pydantic schemas for the AI study helpers."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class StudyAssistRequest(BaseModel):
    """Request for a summary, quiz or flashcard set.

    Length and key-format checks happen in the service so their failures
    share the domain error body.
    """

    text: str = Field(..., description="Study material")
    type: Literal["summary", "quiz", "flashcards"] = Field(..., description="Artifact to produce")
    provider: Literal["openai", "gemini"] = Field(..., description="LLM provider")
    api_key: str = Field(..., description="Caller's own provider API key")
    num_questions: int | None = Field(None, ge=1, le=50)
    num_flashcards: int | None = Field(None, ge=1, le=100)


class SummaryResponse(BaseModel):
    summary: str


class QuizResponse(BaseModel):
    quiz: list[dict[str, Any]]


class FlashcardsResponse(BaseModel):
    flashcards: list[dict[str, Any]]


class ExtractedTextResponse(BaseModel):
    """Text pulled out of an uploaded PDF, ready for ``/ai/generate``."""

    text: str
    characters: int
