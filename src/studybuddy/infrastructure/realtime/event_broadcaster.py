"""Publishes change notifications after successful writes.

Notifications carry no rows: clients treat them as "something changed,
refetch". Delivery runs in background tasks so requests never wait on
slow subscribers.
"""

import asyncio
from typing import Any, Coroutine

from studybuddy.core.logging import get_logger
from studybuddy.infrastructure.realtime.realtime_manager import (
    ConnectionManager,
    group_channel,
    personal_channel,
)

logger = get_logger(__name__)


class EventBroadcaster:
    """Service for broadcasting change events to channel subscribers."""

    def __init__(self, connection_manager: ConnectionManager):
        self.connection_manager = connection_manager
        self._tasks: set[asyncio.Task] = set()

    def _schedule(self, coro: Coroutine[Any, Any, Any], channel: str, event_type: str) -> None:
        try:
            task = asyncio.create_task(coro)
        except RuntimeError as e:
            coro.close()
            logger.error(
                "Failed to publish event for broadcast",
                error=str(e),
                channel=channel,
                event_type=event_type,
            )
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Event published for broadcast", channel=channel, event_type=event_type)

    def publish(self, channel: str, event_type: str, data: Any = None) -> None:
        """Schedule an event for delivery on a channel."""
        self._schedule(
            self.connection_manager.broadcast(channel, event_type, data), channel, event_type
        )

    def messages_changed(self, group_id: int | None, author_id: int, message_id: int) -> None:
        """Signal a change in a group log, or in the author's personal notes."""
        channel = group_channel(group_id) if group_id is not None else personal_channel(author_id)
        self.publish(channel, "messages.changed", {"group_id": group_id, "message_id": message_id})

    def members_changed(self, group_id: int, user_id: int) -> None:
        self.publish(group_channel(group_id), "members.changed", {"group_id": group_id, "user_id": user_id})

    def group_updated(self, group_id: int) -> None:
        self.publish(group_channel(group_id), "group.updated", {"group_id": group_id})

    def member_left(self, group_id: int, user_id: int) -> None:
        """Stop delivering the group to a former member, then tell the rest."""
        channel = group_channel(group_id)

        async def deliver() -> None:
            await self.connection_manager.revoke(channel, user_id)
            await self.connection_manager.broadcast(
                channel, "members.changed", {"group_id": group_id, "user_id": user_id}
            )

        self._schedule(deliver(), channel, "members.changed")

    def group_deleted(self, group_id: int) -> None:
        """Announce the deletion, then drop the channel from every connection."""
        channel = group_channel(group_id)

        async def deliver() -> None:
            await self.connection_manager.broadcast(channel, "group.deleted", {"group_id": group_id})
            await self.connection_manager.revoke(channel)

        self._schedule(deliver(), channel, "group.deleted")

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
