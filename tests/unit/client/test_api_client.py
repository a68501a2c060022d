"""Unit tests for StudyBuddyClient."""

import json

import httpx
import pytest

from studybuddy.client import StudyBuddyClient
from studybuddy.domain.errors import BadRequestError, NotFoundError, RateLimitedError, UnauthorizedError


def make_client(handler, token="tok"):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return StudyBuddyClient("http://api.test", token=token, http_client=http)


@pytest.mark.asyncio
async def test_sends_bearer_and_parses_json():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["url"] = str(request.url)
        return httpx.Response(200, json=[{"id": 1, "name": "CS101"}])

    client = make_client(handler)
    groups = await client.list_groups(search="cs")

    assert groups == [{"id": 1, "name": "CS101"}]
    assert seen["auth"] == "Bearer tok"
    assert seen["url"] == "http://api.test/api/v1/groups?search=cs"


@pytest.mark.asyncio
async def test_no_content_returns_none():
    client = make_client(lambda request: httpx.Response(204))
    assert await client.delete_message(3) is None


@pytest.mark.parametrize(
    "status_code,error_cls",
    [(401, UnauthorizedError), (404, NotFoundError), (422, BadRequestError)],
)
@pytest.mark.asyncio
async def test_errors_map_to_domain_errors(status_code, error_cls):
    client = make_client(
        lambda request: httpx.Response(status_code, json={"error": "x", "detail": "went wrong"})
    )
    with pytest.raises(error_cls) as exc_info:
        await client.get_me()
    if status_code != 422:
        assert exc_info.value.message == "went wrong"


@pytest.mark.asyncio
async def test_rate_limited_reads_retry_after():
    client = make_client(
        lambda request: httpx.Response(429, json={"detail": "slow down"}, headers={"Retry-After": "17"})
    )
    with pytest.raises(RateLimitedError) as exc_info:
        await client.generate_study_aid("text", "summary", "openai", "sk-key")
    assert exc_info.value.retry_after == 17


@pytest.mark.asyncio
async def test_list_messages_params():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[])

    await make_client(handler).list_messages(4, offset=20, limit=20)

    assert seen["params"] == {"offset": "20", "order": "desc", "group_id": "4", "limit": "20"}


@pytest.mark.asyncio
async def test_generate_study_aid_count_field():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"quiz": []})

    await make_client(handler).generate_study_aid("text", "quiz", "openai", "sk-key", count=3)

    assert seen["body"]["num_questions"] == 3
    assert seen["body"]["type"] == "quiz"


@pytest.mark.asyncio
async def test_upload_returns_file_metadata():
    def handler(request):
        assert b'name="kind"' in request.content
        return httpx.Response(201, json={"file": {"url": "http://files/x.pdf"}})

    uploaded = await make_client(handler).upload_file(b"%PDF", "x.pdf", "application/pdf", group_id=2)
    assert uploaded == {"url": "http://files/x.pdf"}


def test_realtime_url():
    assert StudyBuddyClient("https://sb.example.com").realtime_url == "wss://sb.example.com/api/v1/realtime/ws"
    assert StudyBuddyClient("http://localhost:8000/").realtime_url == "ws://localhost:8000/api/v1/realtime/ws"


@pytest.mark.asyncio
async def test_extract_pdf_text_uploads_multipart():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = request.content
        return httpx.Response(200, json={"text": "Krebs cycle", "characters": 11})

    client = make_client(handler)

    assert await client.extract_pdf_text(b"%PDF-1.4 ...", "notes.pdf") == "Krebs cycle"
    assert seen["path"] == "/api/v1/ai/extract-pdf"
    assert b'filename="notes.pdf"' in seen["body"]
    assert b"application/pdf" in seen["body"]
