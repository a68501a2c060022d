"""HTTP clients for the third-party LLM providers.

Each provider turns a (system, prompt) pair into plain text. Callers'
own API keys are forwarded per request and never stored.
"""

from abc import ABC, abstractmethod

import httpx

from studybuddy.core.config import Settings
from studybuddy.core.logging import get_logger

logger = get_logger(__name__)


class ProviderError(Exception):
    """Raised when a provider call fails.

    Attributes:
        status_code: HTTP status returned by the provider, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CompletionProvider(ABC):
    """A text completion backend."""

    name: str

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self.client = client
        self.settings = settings

    @abstractmethod
    async def complete(
        self,
        api_key: str,
        system: str,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ) -> str:
        """Return the provider's text answer for a prompt."""
        ...

    async def _post(self, url: str, **kwargs) -> dict:
        try:
            response = await self.client.post(url, timeout=self.settings.ai_request_timeout, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "AI provider returned an error",
                provider=self.name,
                status_code=e.response.status_code,
            )
            raise ProviderError(f"{self.name} request failed", e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.warning("AI provider unreachable", provider=self.name, error=str(e))
            raise ProviderError(f"{self.name} is unreachable") from e

        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.name} returned invalid JSON") from e


class OpenAIProvider(CompletionProvider):
    """OpenAI chat completions."""

    name = "openai"

    async def complete(
        self,
        api_key: str,
        system: str,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ) -> str:
        payload = await self._post(
            f"{self.settings.openai_base_url.rstrip('/')}/chat/completions",
            headers={"Authorization": f"Bearer {api_key}"},
            json={
                "model": self.settings.openai_model,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )
        try:
            return payload["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("openai returned an unexpected payload") from e


class GeminiProvider(CompletionProvider):
    """Google Gemini generateContent."""

    name = "gemini"

    async def complete(
        self,
        api_key: str,
        system: str,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1500,
    ) -> str:
        payload = await self._post(
            f"{self.settings.gemini_base_url.rstrip('/')}/models/"
            f"{self.settings.gemini_model}:generateContent",
            params={"key": api_key},
            json={
                "contents": [{"parts": [{"text": f"{system}\n\n{prompt}"}]}],
                "generationConfig": {
                    "temperature": temperature,
                    "maxOutputTokens": max_tokens,
                },
            },
        )
        try:
            parts = payload["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("gemini returned an unexpected payload") from e
        return "".join(part.get("text", "") for part in parts)


def create_providers(client: httpx.AsyncClient, settings: Settings) -> dict[str, CompletionProvider]:
    """Build every supported provider keyed by name."""
    return {
        OpenAIProvider.name: OpenAIProvider(client, settings),
        GeminiProvider.name: GeminiProvider(client, settings),
    }
