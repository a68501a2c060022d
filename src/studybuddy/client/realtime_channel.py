"""WebSocket connection that keeps a MessageBoard live.

Entering the channel subscribes to the board's channel and, for groups,
announces presence. Leaving it untracks, unsubscribes and closes, so
navigating away from a group never leaves a stale subscription behind.
"""

import asyncio
import json
from contextlib import suppress
from typing import Any, Awaitable, Callable
from urllib.parse import urlencode

import websockets

from studybuddy.client.message_board import MessageBoard
from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import StudyBuddyError

logger = get_logger(__name__)

EventHandler = Callable[[dict[str, Any]], Awaitable[None]]


class RealtimeChannel:
    """Async context manager around one realtime WebSocket.

    Args:
        url: WebSocket URL of the realtime endpoint, e.g.
            ``StudyBuddyClient.realtime_url``.
        token: Bearer token of the viewer.
        board: Board that receives every event frame.
        on_event: Optional extra callback for event frames.
        ping_interval: Seconds between keepalive pings; None disables them.
    """

    def __init__(
        self,
        url: str,
        token: str,
        board: MessageBoard,
        on_event: EventHandler | None = None,
        ping_interval: float | None = 30.0,
    ) -> None:
        self.url = url
        self.token = token
        self.board = board
        self.on_event = on_event
        self.ping_interval = ping_interval
        self.errors: list[dict[str, Any]] = []
        self._ws: Any = None
        self._reader: asyncio.Task | None = None
        self._keepalive: asyncio.Task | None = None

    @property
    def group_id(self) -> int | None:
        return self.board.group_id

    async def __aenter__(self) -> "RealtimeChannel":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def open(self) -> None:
        self._ws = await websockets.connect(f"{self.url}?{urlencode({'token': self.token})}")
        await self._send({"action": "subscribe", "group_id": self.group_id})
        if self.group_id is not None:
            await self._send({"action": "track", "group_id": self.group_id})
        self._reader = asyncio.create_task(self._read_loop())
        if self.ping_interval:
            self._keepalive = asyncio.create_task(self._keepalive_loop(self.ping_interval))
        logger.info("Realtime channel opened", group_id=self.group_id)

    async def close(self) -> None:
        if self._ws is None:
            return
        try:
            if self.group_id is not None:
                await self._send({"action": "untrack", "group_id": self.group_id})
            await self._send({"action": "unsubscribe", "group_id": self.group_id})
        except websockets.ConnectionClosed:
            logger.info("Realtime channel already closed", group_id=self.group_id)
        finally:
            for task in (self._keepalive, self._reader):
                if task is not None:
                    task.cancel()
                    with suppress(asyncio.CancelledError):
                        await task
            self._keepalive = None
            await self._ws.close()
            self._ws = None
            logger.info("Realtime channel closed", group_id=self.group_id)

    async def ping(self) -> None:
        """Keep the server from pruning an otherwise silent connection."""
        await self._send({"action": "ping"})

    async def _keepalive_loop(self, interval: float) -> None:
        try:
            while True:
                await asyncio.sleep(interval)
                await self.ping()
        except websockets.ConnectionClosed:
            logger.info("Keepalive stopped; connection closed", group_id=self.group_id)

    async def _send(self, frame: dict[str, Any]) -> None:
        await self._ws.send(json.dumps(frame))

    async def dispatch(self, frame: dict[str, Any]) -> None:
        """Route one server frame."""
        frame_type = frame.get("type")
        if frame_type == "error":
            self.errors.append(frame)
            logger.warning("Realtime request rejected", error=frame.get("error"), detail=frame.get("detail"))
            return
        if frame_type in ("ack", "pong", "heartbeat"):
            return
        await self.board.handle_realtime_event(frame)
        if self.on_event is not None:
            await self.on_event(frame)

    async def _read_loop(self) -> None:
        try:
            async for raw in self._ws:
                try:
                    frame = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Ignoring malformed realtime frame")
                    continue
                try:
                    await self.dispatch(frame)
                except StudyBuddyError as e:
                    logger.warning("Board refresh failed", group_id=self.group_id, error=e.message)
        except websockets.ConnectionClosed:
            logger.info("Realtime connection closed by server", group_id=self.group_id)
