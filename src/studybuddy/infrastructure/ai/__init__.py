"""Third-party AI provider clients."""

from studybuddy.infrastructure.ai.providers import (
    CompletionProvider,
    GeminiProvider,
    OpenAIProvider,
    ProviderError,
    create_providers,
)

__all__ = [
    "CompletionProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "ProviderError",
    "create_providers",
]
