"""AI study helpers: summaries, quizzes and flashcards.

A thin relay to third-party LLM providers. Everything that can be checked
locally (text length, artifact type, provider, key shape, rate limit) is
checked before the provider is called.
"""

import json
import re
from typing import Any, Literal

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import BadRequestError, RateLimitedError, UpstreamError
from studybuddy.infrastructure.ai import CompletionProvider, ProviderError
from studybuddy.infrastructure.security import RateLimitStorage

logger = get_logger(__name__)

ArtifactType = Literal["summary", "quiz", "flashcards"]

API_KEY_PATTERNS = {
    "openai": re.compile(r"^sk-[A-Za-z0-9_\-]{16,}$"),
    "gemini": re.compile(r"^AIza[A-Za-z0-9_\-]{30,}$"),
}

SYSTEM_PROMPTS = {
    "summary": (
        "You are a helpful study assistant. Create clear, concise summaries of study "
        "materials that capture the key concepts and important details."
    ),
    "quiz": (
        "You are a helpful study assistant. Create multiple-choice quiz questions based "
        "on study materials. Return ONLY valid JSON with no additional text."
    ),
    "flashcards": (
        "You are a helpful study assistant. Create flashcards from study materials with "
        "concise questions/prompts on the front and clear answers on the back. Return "
        "ONLY valid JSON with no additional text."
    ),
}

_CODE_FENCE = re.compile(r"```(?:json)?\s*")


def build_prompt(artifact: ArtifactType, text: str, count: int) -> str:
    """Build the user prompt for an artifact."""
    if artifact == "summary":
        return f"Please summarize the following text in a clear and organized way:\n\n{text}"
    if artifact == "quiz":
        return (
            f"Create {count} multiple-choice questions from this text. Return as JSON array "
            'with format: [{"question": "...", "options": ["A", "B", "C", "D"], '
            '"correctAnswer": 0, "explanation": "..."}]\n\nText:\n' + text
        )
    return (
        f"Create {count} flashcards from this text. Return as JSON array with format: "
        '[{"front": "question or prompt", "back": "answer or explanation"}]\n\nText:\n' + text
    )


def parse_json_list(content: str) -> list[dict[str, Any]]:
    """Parse a provider answer that should be a JSON array.

    Markdown code fences are stripped. Anything that is not a list of
    objects becomes an empty list.
    """
    cleaned = _CODE_FENCE.sub("", content or "").strip()
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        logger.warning("AI provider returned unparseable JSON")
        return []
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, dict)]


class StudyAssistantService:
    """Validates AI requests, applies the per-caller rate limit and relays them."""

    def __init__(
        self,
        providers: dict[str, CompletionProvider],
        rate_limits: RateLimitStorage,
    ) -> None:
        self.settings = get_settings()
        self.providers = providers
        self.rate_limits = rate_limits

    def validate(self, text: str, artifact: str, provider: str, api_key: str) -> None:
        """Reject requests that must never reach a provider.

        Raises:
            BadRequestError: On empty or oversized text, unknown artifact or
                provider, or a malformed API key.
        """
        if not text or not text.strip():
            raise BadRequestError("Text is required")
        if len(text) > self.settings.ai_max_text_length:
            raise BadRequestError(
                f"Text exceeds maximum length of {self.settings.ai_max_text_length:,} characters"
            )
        if artifact not in SYSTEM_PROMPTS:
            raise BadRequestError("Invalid request type. Must be 'summary', 'quiz', or 'flashcards'")
        if provider not in self.providers:
            raise BadRequestError("Invalid provider. Must be 'openai' or 'gemini'")
        if not api_key or not api_key.strip():
            raise BadRequestError("API key is required")
        if not API_KEY_PATTERNS[provider].match(api_key.strip()):
            raise BadRequestError(f"Invalid {provider} API key format")

    def check_rate_limit(self, caller_id: int) -> None:
        """Consume one request from the caller's budget.

        Raises:
            RateLimitedError: When the caller exceeded the per-minute budget.
        """
        rate = self.settings.ai_rate_limit_per_minute
        allowed, _, wait_seconds = self.rate_limits.consume(f"ai:{caller_id}", rate, burst=rate)
        if not allowed:
            retry_after = max(1, int(wait_seconds + 0.999))
            logger.warning("AI rate limit exceeded", user_id=caller_id, retry_after=retry_after)
            raise RateLimitedError(
                f"Rate limit exceeded. Please try again in {retry_after} seconds.",
                retry_after=retry_after,
            )

    async def generate(
        self,
        caller_id: int,
        text: str,
        artifact: ArtifactType,
        provider: str,
        api_key: str,
        count: int | None = None,
    ) -> dict[str, Any]:
        """Produce a summary, quiz or flashcard set.

        Args:
            caller_id: Requesting user, the rate-limit key.
            text: Study material.
            artifact: "summary", "quiz" or "flashcards".
            provider: "openai" or "gemini".
            api_key: The caller's own provider key.
            count: Number of questions (default 5) or flashcards (default 10).

        Returns:
            ``{"summary": str}``, ``{"quiz": [...]}`` or ``{"flashcards": [...]}``.

        Raises:
            BadRequestError: On invalid input.
            RateLimitedError: When the caller or the provider is rate limited.
            UpstreamError: When the provider fails.
        """
        self.validate(text, artifact, provider, api_key)
        self.check_rate_limit(caller_id)

        if count is None:
            count = 5 if artifact == "quiz" else 10

        try:
            content = await self.providers[provider].complete(
                api_key.strip(),
                SYSTEM_PROMPTS[artifact],
                build_prompt(artifact, text, count),
                temperature=0.8 if artifact == "quiz" else 0.7,
                max_tokens=500 if artifact == "summary" else 1500,
            )
        except ProviderError as e:
            if e.status_code == 429:
                raise RateLimitedError(f"{provider} rate limit exceeded. Please try again later.") from e
            if e.status_code in (401, 403):
                raise UpstreamError(f"{provider} rejected the API key") from e
            raise UpstreamError(f"{provider} request failed") from e

        logger.info("AI artifact generated", user_id=caller_id, artifact=artifact, provider=provider)
        if artifact == "summary":
            return {"summary": content.strip() or "Unable to generate summary"}
        return {artifact: parse_json_list(content)}
