"""Async HTTP client for the StudyBuddy API.

Failed calls raise the same domain errors the server raised, rebuilt from
the status code and the ``{"error", "detail"}`` body.
"""

from typing import Any

import httpx

from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import RateLimitedError, StudyBuddyError, error_for_status

logger = get_logger(__name__)


class StudyBuddyClient:
    """Thin wrapper over ``httpx.AsyncClient`` exposing every API operation.

    Usable as an async context manager. Pass ``http_client`` to share a
    client or to talk to an ASGI app through ``httpx.ASGITransport``.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        api_prefix: str = "/api/v1",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix
        self.token = token
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def __aenter__(self) -> "StudyBuddyClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    @property
    def realtime_url(self) -> str:
        """WebSocket URL of the realtime endpoint (without the token)."""
        scheme, _, rest = self.base_url.partition("://")
        ws_scheme = "wss" if scheme == "https" else "ws"
        return f"{ws_scheme}://{rest}{self.api_prefix}/realtime/ws"

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = await self._http.request(
            method, f"{self.base_url}{self.api_prefix}{path}", headers=headers, **kwargs
        )
        if response.is_error:
            raise self._error_from(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_from(response: httpx.Response) -> StudyBuddyError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        detail = body.get("detail") if isinstance(body, dict) else None
        if not isinstance(detail, str):
            detail = response.reason_phrase or f"HTTP {response.status_code}"

        # Validation errors are client mistakes
        status_code = 400 if response.status_code == 422 else response.status_code
        if status_code == 429:
            retry_after = int(response.headers.get("Retry-After", "60"))
            return RateLimitedError(detail, retry_after=retry_after)
        logger.debug("API call failed", status_code=response.status_code, detail=detail)
        return error_for_status(status_code, detail)

    # Users

    async def create_profile(self, name: str) -> dict[str, Any]:
        return await self._request("POST", "/users", json={"name": name})

    async def get_me(self) -> dict[str, Any]:
        return await self._request("GET", "/users/me")

    async def update_me(self, **changes: Any) -> dict[str, Any]:
        return await self._request("PATCH", "/users/me", json=changes)

    async def get_user(self, user_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/users/{user_id}")

    # Groups

    async def list_groups(self, search: str | None = None) -> list[dict[str, Any]]:
        params = {"search": search} if search else None
        return await self._request("GET", "/groups", params=params)

    async def list_my_groups(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/groups/mine")

    async def discover_groups(self) -> list[dict[str, Any]]:
        return await self._request("GET", "/groups/discover")

    async def get_group(self, group_id: int) -> dict[str, Any]:
        return await self._request("GET", f"/groups/{group_id}")

    async def create_group(
        self, name: str, description: str | None = None, is_private: bool = False
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/groups",
            json={"name": name, "description": description, "is_private": is_private},
        )

    async def update_group(self, group_id: int, **changes: Any) -> dict[str, Any]:
        return await self._request("PATCH", f"/groups/{group_id}", json=changes)

    async def delete_group(self, group_id: int) -> None:
        await self._request("DELETE", f"/groups/{group_id}")

    async def join_group(self, group_id: int) -> dict[str, Any]:
        return await self._request("POST", f"/groups/{group_id}/join")

    async def leave_group(self, group_id: int) -> None:
        await self._request("POST", f"/groups/{group_id}/leave")

    async def list_members(self, group_id: int) -> list[dict[str, Any]]:
        return await self._request("GET", f"/groups/{group_id}/members")

    async def transfer_ownership(self, group_id: int, user_id: int) -> dict[str, Any]:
        return await self._request("POST", f"/groups/{group_id}/transfer", json={"user_id": user_id})

    # Messages

    async def list_messages(
        self,
        group_id: int | None = None,
        offset: int = 0,
        limit: int | None = None,
        order: str = "desc",
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"offset": offset, "order": order}
        if group_id is not None:
            params["group_id"] = group_id
        if limit is not None:
            params["limit"] = limit
        return await self._request("GET", "/messages", params=params)

    async def send_message(
        self,
        group_id: int | None = None,
        message: str | None = None,
        attachment_url: str | None = None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "/messages",
            json={"group_id": group_id, "message": message, "attachment_url": attachment_url},
        )

    async def delete_message(self, message_id: int) -> None:
        await self._request("DELETE", f"/messages/{message_id}")

    # Files and AI

    async def upload_file(
        self,
        content: bytes,
        filename: str,
        mime_type: str,
        kind: str = "attachment",
        group_id: int | None = None,
    ) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": kind}
        if group_id is not None:
            data["group_id"] = str(group_id)
        body = await self._request(
            "POST",
            "/files/upload",
            files={"file": (filename, content, mime_type)},
            data=data,
        )
        return body["file"]

    async def generate_study_aid(
        self,
        text: str,
        artifact: str,
        provider: str,
        api_key: str,
        count: int | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "text": text,
            "type": artifact,
            "provider": provider,
            "api_key": api_key,
        }
        if count is not None:
            payload["num_questions" if artifact == "quiz" else "num_flashcards"] = count
        return await self._request("POST", "/ai/generate", json=payload)

    async def extract_pdf_text(self, content: bytes, filename: str = "document.pdf") -> str:
        body = await self._request(
            "POST",
            "/ai/extract-pdf",
            files={"file": (filename, content, "application/pdf")},
        )
        return body["text"]
