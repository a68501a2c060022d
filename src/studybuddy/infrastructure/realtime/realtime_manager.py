"""Connection registry, channel fan-out and presence for realtime clients.

One ConnectionManager exists per application (kept on ``app.state``).
Connections subscribe to channels (``group:<id>`` or ``personal:<userId>``)
and may track presence on a group channel. Presence is keyed by the
internal user id, so several tabs of the same user count once.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from studybuddy.core.logging import get_logger

logger = get_logger(__name__)

SendCallback = Callable[[dict[str, Any]], Awaitable[None]]
CloseCallback = Callable[[], Awaitable[None]]


def group_channel(group_id: int) -> str:
    return f"group:{group_id}"


def personal_channel(user_id: int) -> str:
    return f"personal:{user_id}"


def make_event(event_type: str, channel: str | None, data: Any = None) -> dict[str, Any]:
    """Build the frame sent to clients."""
    return {
        "type": event_type,
        "channel": channel,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


class SubscriptionLimitError(Exception):
    """Raised when a connection exceeds its channel budget."""

    pass


class RealtimeConnection:
    """An active realtime connection (WebSocket or SSE)."""

    def __init__(
        self,
        connection_id: str,
        user_id: int,
        send_callback: SendCallback,
        name: str | None = None,
        close_callback: CloseCallback | None = None,
    ):
        self.id = connection_id
        self.user_id = user_id
        self.name = name
        self.channels: set[str] = set()
        self.tracked: set[str] = set()
        self.last_activity = datetime.now(timezone.utc)
        self.send_callback = send_callback
        self.close_callback = close_callback

    def touch(self) -> None:
        self.last_activity = datetime.now(timezone.utc)

    def idle_seconds(self, now: datetime | None = None) -> float:
        now = now or datetime.now(timezone.utc)
        return (now - self.last_activity).total_seconds()

    async def send(self, data: dict[str, Any]) -> None:
        await self.send_callback(data)
        # Accepted frames count as activity
        self.touch()

    async def close(self) -> None:
        """Close the underlying transport, if it can be closed from here."""
        if self.close_callback is not None:
            await self.close_callback()


class ConnectionManager:
    """Manages active realtime connections, their channels and presence."""

    def __init__(self, max_subscriptions: int = 50):
        self.max_subscriptions = max_subscriptions
        self.active_connections: dict[str, RealtimeConnection] = {}
        # channel -> user_id -> connection ids tracking that user
        self._presence: dict[str, dict[int, set[str]]] = {}
        self._lock = asyncio.Lock()

    async def add_connection(self, connection: RealtimeConnection) -> None:
        async with self._lock:
            self.active_connections[connection.id] = connection
        logger.info(
            "Realtime connection added",
            connection_id=connection.id,
            user_id=connection.user_id,
        )

    async def remove_connection(self, connection_id: str) -> None:
        """Drop a connection, emitting presence leaves for what it tracked."""
        async with self._lock:
            conn = self.active_connections.pop(connection_id, None)
            if conn is None:
                return
            left = [
                channel for channel in list(conn.tracked) if self._untrack_locked(conn, channel)
            ]
            conn.channels.clear()

        for channel in left:
            await self.broadcast(channel, "presence.leave", {"user_id": conn.user_id})
        logger.info("Realtime connection removed", connection_id=connection_id, user_id=conn.user_id)

    def get_connection(self, connection_id: str) -> RealtimeConnection | None:
        return self.active_connections.get(connection_id)

    async def subscribe(self, connection_id: str, channel: str) -> None:
        """Add a channel to a connection.

        Raises:
            KeyError: If the connection is unknown.
            SubscriptionLimitError: If the connection has too many channels.
        """
        async with self._lock:
            conn = self.active_connections[connection_id]
            if channel not in conn.channels and len(conn.channels) >= self.max_subscriptions:
                raise SubscriptionLimitError(
                    f"Maximum of {self.max_subscriptions} subscriptions per connection"
                )
            conn.channels.add(channel)
            conn.touch()
        logger.debug("Channel subscribed", connection_id=connection_id, channel=channel)

    async def unsubscribe(self, connection_id: str, channel: str) -> None:
        """Remove a channel from a connection, untracking presence there too."""
        await self.untrack(connection_id, channel)
        async with self._lock:
            conn = self.active_connections.get(connection_id)
            if conn is None:
                return
            conn.channels.discard(channel)
            conn.touch()
        logger.debug("Channel unsubscribed", connection_id=connection_id, channel=channel)

    async def track(self, connection_id: str, channel: str) -> None:
        """Announce the connection's user as present on a channel.

        The connection receives ``presence.sync`` with the full set; the
        rest of the channel receives ``presence.join`` when the user was not
        already present through another connection.
        """
        async with self._lock:
            conn = self.active_connections[connection_id]
            conn.channels.add(channel)
            conn.tracked.add(channel)
            conn.touch()
            users = self._presence.setdefault(channel, {})
            first = conn.user_id not in users
            users.setdefault(conn.user_id, set()).add(connection_id)

        await self._send_safe(conn, make_event("presence.sync", channel, self.presence(channel)))
        if first:
            await self.broadcast(
                channel,
                "presence.join",
                {"user_id": conn.user_id, "name": conn.name},
                exclude=connection_id,
            )

    async def untrack(self, connection_id: str, channel: str) -> None:
        async with self._lock:
            conn = self.active_connections.get(connection_id)
            if conn is None or channel not in conn.tracked:
                return
            last = self._untrack_locked(conn, channel)
        if last:
            await self.broadcast(channel, "presence.leave", {"user_id": conn.user_id})

    def presence(self, channel: str) -> list[dict[str, Any]]:
        """Users currently present on a channel, one entry per user."""
        users = self._presence.get(channel, {})
        result = []
        for user_id in sorted(users):
            name = None
            for connection_id in users[user_id]:
                conn = self.active_connections.get(connection_id)
                if conn is not None and conn.name:
                    name = conn.name
                    break
            result.append({"user_id": user_id, "name": name})
        return result

    async def broadcast(
        self,
        channel: str,
        event_type: str,
        data: Any = None,
        exclude: str | None = None,
    ) -> int:
        """Send an event to every connection subscribed to a channel.

        Returns:
            Number of connections the event was delivered to.
        """
        async with self._lock:
            targets = [
                conn
                for conn in self.active_connections.values()
                if channel in conn.channels and conn.id != exclude
            ]

        event = make_event(event_type, channel, data)
        delivered = 0
        for conn in targets:
            if await self._send_safe(conn, event):
                delivered += 1
        return delivered

    async def heartbeat(self) -> None:
        """Send a heartbeat frame to every connection."""
        async with self._lock:
            connections = list(self.active_connections.values())
        event = make_event("heartbeat", None)
        for conn in connections:
            await self._send_safe(conn, event)

    async def prune_stale(self, idle_timeout: float) -> list[str]:
        """Remove and close connections idle for longer than the timeout.

        A connection is idle when it neither sent a frame nor accepted one,
        so heartbeats keep reading clients alive and dead transports age out.

        Returns:
            Ids of the removed connections.
        """
        now = datetime.now(timezone.utc)
        async with self._lock:
            stale = [
                conn.id
                for conn in self.active_connections.values()
                if conn.idle_seconds(now) > idle_timeout
            ]
        for connection_id in stale:
            logger.info("Pruning idle realtime connection", connection_id=connection_id)
            conn = self.active_connections.get(connection_id)
            await self.remove_connection(connection_id)
            if conn is not None:
                await self._close_safe(conn)
        return stale

    async def revoke(self, channel: str, user_id: int | None = None) -> list[str]:
        """Withdraw a channel from connections that lost access to it.

        With ``user_id`` only that user's connections are affected (they left
        the group) and the remaining subscribers see ``presence.leave``.
        Without it every connection loses the channel (the group is gone).

        Returns:
            Ids of the connections that were subscribed.
        """
        async with self._lock:
            affected = [
                conn
                for conn in self.active_connections.values()
                if channel in conn.channels and (user_id is None or conn.user_id == user_id)
            ]
            left = False
            for conn in affected:
                if channel in conn.tracked and self._untrack_locked(conn, channel):
                    left = True
                conn.channels.discard(channel)
            if user_id is None:
                self._presence.pop(channel, None)

        if left and user_id is not None:
            await self.broadcast(channel, "presence.leave", {"user_id": user_id})
        if affected:
            logger.info(
                "Realtime channel revoked",
                channel=channel,
                user_id=user_id,
                connections=len(affected),
            )
        return [conn.id for conn in affected]

    async def close(self) -> None:
        """Forget every connection without emitting presence events."""
        async with self._lock:
            self.active_connections.clear()
            self._presence.clear()

    def _untrack_locked(self, conn: RealtimeConnection, channel: str) -> bool:
        """Remove presence for one connection; True if its user left the channel."""
        conn.tracked.discard(channel)
        users = self._presence.get(channel)
        if not users or conn.user_id not in users:
            return False
        users[conn.user_id].discard(conn.id)
        if users[conn.user_id]:
            return False
        del users[conn.user_id]
        if not users:
            del self._presence[channel]
        return True

    async def _close_safe(self, conn: RealtimeConnection) -> None:
        try:
            await conn.close()
        except Exception as e:
            logger.warning("Failed to close realtime connection", connection_id=conn.id, error=str(e))

    async def _send_safe(self, conn: RealtimeConnection, event: dict[str, Any]) -> bool:
        try:
            await conn.send(event)
            return True
        except Exception as e:
            logger.error("Failed to send realtime event", connection_id=conn.id, error=str(e))
            return False
