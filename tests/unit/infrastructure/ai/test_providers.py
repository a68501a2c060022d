"""Unit tests for the LLM provider clients."""

import json

import httpx
import pytest

from studybuddy.core.config import get_settings
from studybuddy.infrastructure.ai import GeminiProvider, OpenAIProvider, ProviderError, create_providers


def make_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_openai_request_and_answer():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "Answer"}}]})

    async with make_client(handler) as client:
        provider = OpenAIProvider(client, get_settings())
        answer = await provider.complete("sk-key", "system", "prompt", temperature=0.8, max_tokens=42)

    assert answer == "Answer"
    assert seen["url"].endswith("/chat/completions")
    assert seen["auth"] == "Bearer sk-key"
    assert seen["body"]["messages"][0] == {"role": "system", "content": "system"}
    assert seen["body"]["max_tokens"] == 42
    assert seen["body"]["temperature"] == 0.8


@pytest.mark.asyncio
async def test_gemini_request_and_answer():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["key"] = request.url.params["key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": "Hel"}, {"text": "lo"}]}}]},
        )

    async with make_client(handler) as client:
        answer = await GeminiProvider(client, get_settings()).complete("AIza-key", "sys", "prompt")

    assert answer == "Hello"
    assert seen["key"] == "AIza-key"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "sys\n\nprompt"
    assert seen["body"]["generationConfig"]["maxOutputTokens"] == 1500


@pytest.mark.asyncio
async def test_http_error_carries_status():
    async with make_client(lambda request: httpx.Response(429, json={})) as client:
        provider = OpenAIProvider(client, get_settings())
        with pytest.raises(ProviderError) as exc_info:
            await provider.complete("sk-key", "s", "p")
    assert exc_info.value.status_code == 429


@pytest.mark.asyncio
async def test_unexpected_payload():
    async with make_client(lambda request: httpx.Response(200, json={"choices": []})) as client:
        with pytest.raises(ProviderError):
            await OpenAIProvider(client, get_settings()).complete("sk-key", "s", "p")


@pytest.mark.asyncio
async def test_unreachable_provider():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(ProviderError) as exc_info:
            await GeminiProvider(client, get_settings()).complete("k", "s", "p")
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_create_providers():
    async with make_client(lambda request: httpx.Response(200)) as client:
        providers = create_providers(client, get_settings())
    assert set(providers) == {"openai", "gemini"}
