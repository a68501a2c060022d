"""Client-side state for a group (or personal notes) message board.

The board keeps the loaded slice of the log in display order
(``created_at`` ascending, id as tie-break), pages backwards through
history, sends messages with an optional attachment, and reconciles with
the server whenever a realtime change signal arrives.

Deletes use a command/acknowledgement scheme: the message disappears
immediately and is tagged as pending; the tag is cleared when the server
confirms, and the message is restored if the server refuses.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from studybuddy.client.api_client import StudyBuddyClient
from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import BadRequestError, ForbiddenError, StudyBuddyError

logger = get_logger(__name__)

MEGABYTE = 1024 * 1024
MAX_IMAGE_SIZE = 5 * MEGABYTE
MAX_ATTACHMENT_SIZE = 10 * MEGABYTE


@dataclass
class BoardMessage:
    """A message as shown on the board."""

    id: int
    group_id: int | None
    author_id: int
    message: str | None
    attachment_url: str | None
    created_at: datetime
    author_name: str | None = None
    author_avatar_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "BoardMessage":
        author = data.get("author") or {}
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return cls(
            id=data["id"],
            group_id=data.get("group_id"),
            author_id=data["author_id"],
            message=data.get("message"),
            attachment_url=data.get("attachment_url"),
            created_at=created_at,
            author_name=author.get("name"),
            author_avatar_url=author.get("avatar_url"),
        )

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.id)


@dataclass
class Attachment:
    """A file picked in the composer, not uploaded yet."""

    content: bytes
    filename: str
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def size_limit(self) -> int:
        if self.mime_type.startswith("image/"):
            return MAX_IMAGE_SIZE
        return MAX_ATTACHMENT_SIZE


@dataclass
class Draft:
    """Composer contents; kept intact until a send succeeds."""

    text: str = ""
    attachment: Attachment | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() and self.attachment is None


class MessageBoard:
    """Loaded log, composer and live-update handling for one board.

    Args:
        client: API client authenticated as the viewer.
        viewer_id: Internal user id of the viewer, to recognise own messages.
        group_id: Group being viewed; None for the viewer's personal notes.
        page_size: Messages per page when paging backwards.
    """

    def __init__(
        self,
        client: StudyBuddyClient,
        viewer_id: int,
        group_id: int | None = None,
        page_size: int = 20,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.client = client
        self.viewer_id = viewer_id
        self.group_id = group_id
        self.page_size = page_size

        self._messages: dict[int, BoardMessage] = {}
        self.pending_deletes: dict[int, BoardMessage] = {}
        self.cursor = 0
        self.has_more = True
        self.draft = Draft()
        self.online_user_ids: set[int] = set()
        self.group_deleted = False
        self.last_error: str | None = None

        self.is_loading = False
        self.is_loading_more = False
        self.is_sending = False
        self.is_uploading = False
        self._refresh_lock = asyncio.Lock()

    @property
    def messages(self) -> list[BoardMessage]:
        """Loaded messages in display order, oldest first."""
        return sorted(self._messages.values(), key=lambda m: m.sort_key)

    @property
    def can_send(self) -> bool:
        return not (self.is_sending or self.is_uploading) and not self.draft.is_empty

    async def _fetch_page(self, offset: int) -> list[BoardMessage]:
        rows = await self.client.list_messages(
            self.group_id, offset=offset, limit=self.page_size, order="desc"
        )
        return [BoardMessage.from_api(row) for row in rows]

    def _merge(self, page: list[BoardMessage]) -> None:
        for message in page:
            if message.id not in self.pending_deletes:
                self._messages[message.id] = message

    async def load_initial(self) -> list[BoardMessage]:
        """Fetch the newest page, replacing whatever was loaded."""
        self.is_loading = True
        try:
            page = await self._fetch_page(0)
        finally:
            self.is_loading = False
        self._messages = {}
        self._merge(page)
        self.cursor = len(page)
        self.has_more = len(page) == self.page_size
        return self.messages

    async def load_more(self) -> list[BoardMessage]:
        """Fetch the next older page.

        Does nothing once a short page has been seen or while another
        page is loading. Returns the messages added to the board.
        """
        if not self.has_more or self.is_loading_more:
            return []

        self.is_loading_more = True
        try:
            page = await self._fetch_page(self.cursor)
        finally:
            self.is_loading_more = False

        added = [m for m in page if m.id not in self._messages and m.id not in self.pending_deletes]
        self._merge(page)
        self.cursor += len(page)
        if len(page) < self.page_size:
            self.has_more = False
        return sorted(added, key=lambda m: m.sort_key)

    async def refresh(self) -> None:
        """Re-run the first-page fetch and reconcile the tail of the log.

        Loaded messages inside the refetched window that the server no
        longer returns were deleted elsewhere and are dropped.
        """
        async with self._refresh_lock:
            page = await self._fetch_page(0)
            if len(page) == self.page_size:
                window_start = min(m.sort_key for m in page)
                stale = [k for k, m in self._messages.items() if m.sort_key >= window_start]
            else:
                # The page holds the whole log
                stale = list(self._messages)
            fetched = {m.id for m in page}
            removed = 0
            for message_id in stale:
                if message_id not in fetched:
                    del self._messages[message_id]
                    removed += 1
            self._merge(page)
            # Rows deleted elsewhere no longer occupy server offsets
            self.cursor = max(self.cursor - removed, len(page))
            if len(page) < self.page_size:
                self.has_more = False

    def set_draft(self, text: str | None = None, attachment: Attachment | None = None) -> None:
        if text is not None:
            self.draft.text = text
        if attachment is not None:
            self.draft.attachment = attachment

    def clear_attachment(self) -> None:
        self.draft.attachment = None

    async def send(self) -> BoardMessage | None:
        """Send the draft.

        The attachment is uploaded first; the message is only written once
        the upload has produced a URL. The draft is cleared on success and
        kept on any failure. Returns None when sending is not possible
        (empty draft or a send already in flight).

        Raises:
            BadRequestError: If the attachment exceeds its size ceiling.
            StudyBuddyError: If the upload or the send fails.
        """
        if not self.can_send:
            return None

        attachment = self.draft.attachment
        if attachment is not None and attachment.size > attachment.size_limit:
            self.last_error = (
                f"File is too large; the limit is {attachment.size_limit // MEGABYTE}MB"
            )
            raise BadRequestError(self.last_error)

        self.is_sending = True
        try:
            attachment_url = None
            if attachment is not None:
                self.is_uploading = True
                try:
                    uploaded = await self.client.upload_file(
                        attachment.content,
                        attachment.filename,
                        attachment.mime_type,
                        group_id=self.group_id,
                    )
                finally:
                    self.is_uploading = False
                attachment_url = uploaded["url"]

            text = self.draft.text.strip() or None
            created = BoardMessage.from_api(
                await self.client.send_message(self.group_id, message=text, attachment_url=attachment_url)
            )
        except StudyBuddyError as e:
            self.last_error = e.message
            logger.warning("Send failed; draft kept", group_id=self.group_id, error=e.message)
            raise
        finally:
            self.is_sending = False

        self.draft = Draft()
        self.last_error = None
        self._messages[created.id] = created
        return created

    async def delete(self, message_id: int) -> None:
        """Delete one of the viewer's messages, optimistically.

        Raises:
            ForbiddenError: If the message is not the viewer's own.
            StudyBuddyError: If the server refuses; the message is restored.
        """
        message = self._messages.get(message_id)
        if message is None:
            return
        if message.author_id != self.viewer_id:
            raise ForbiddenError("Only the author can delete a message")

        del self._messages[message_id]
        self.pending_deletes[message_id] = message
        try:
            await self.client.delete_message(message_id)
        except StudyBuddyError as e:
            pending = self.pending_deletes.pop(message_id, None)
            if pending is not None:
                self._messages[message_id] = pending
            self.last_error = e.message
            logger.warning("Delete failed; message restored", message_id=message_id, error=e.message)
            raise
        self.pending_deletes.pop(message_id, None)
        # Older messages each moved up one server offset
        self.cursor = max(0, self.cursor - 1)

    def _is_own_channel(self, channel: str | None) -> bool:
        if self.group_id is not None:
            return channel == f"group:{self.group_id}"
        return channel == f"personal:{self.viewer_id}"

    async def handle_realtime_event(self, event: dict[str, Any]) -> None:
        """React to a frame from the realtime channel."""
        if not self._is_own_channel(event.get("channel")):
            return

        event_type = event.get("type")
        data = event.get("data")
        if event_type == "messages.changed":
            await self.refresh()
        elif event_type == "group.deleted":
            self.group_deleted = True
            self._messages = {}
            self.has_more = False
        elif event_type == "presence.sync":
            self.online_user_ids = {entry["user_id"] for entry in data or []}
        elif event_type == "presence.join":
            self.online_user_ids.add(data["user_id"])
        elif event_type == "presence.leave":
            self.online_user_ids.discard(data["user_id"])
