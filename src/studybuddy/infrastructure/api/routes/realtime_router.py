"""Realtime endpoints: a WebSocket with subscribe/track actions and an SSE stream."""

import asyncio
import json
import uuid
from typing import Any

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession
from sse_starlette.sse import EventSourceResponse

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import StudyBuddyError
from studybuddy.domain.services import MembershipGuard
from studybuddy.infrastructure.api.dependencies import DbSession, get_connection_manager
from studybuddy.infrastructure.realtime.realtime_auth import (
    authenticate_realtime,
    get_token_from_request,
)
from studybuddy.infrastructure.realtime.realtime_manager import (
    ConnectionManager,
    RealtimeConnection,
    SubscriptionLimitError,
    group_channel,
    make_event,
    personal_channel,
)

logger = get_logger(__name__)

router = APIRouter(tags=["realtime"])

CONNECTION_CLOSED = {
    "type": "error",
    "error": "connection_closed",
    "detail": "Connection expired; reconnect to continue",
}


def get_manager_from_websocket(websocket: WebSocket) -> ConnectionManager:
    """Dependency to get connection manager from websocket app state."""
    if not hasattr(websocket.app.state, "connection_manager"):
        websocket.app.state.connection_manager = ConnectionManager(
            max_subscriptions=get_settings().realtime_max_subscriptions
        )
    return websocket.app.state.connection_manager


async def channel_for(
    session: AsyncSession, user_id: int, group_id: int | None
) -> str:
    """Resolve the channel a client asked for, checking group membership.

    Raises:
        UnauthorizedError: If the user is not a member of the group.
    """
    if group_id is None:
        return personal_channel(user_id)
    try:
        await MembershipGuard(session).require_member(user_id, group_id)
    finally:
        # Do not keep a read transaction open for the connection's lifetime
        await session.rollback()
    return group_channel(group_id)


async def handle_action(
    message: dict[str, Any],
    connection: RealtimeConnection,
    manager: ConnectionManager,
    session: AsyncSession,
) -> dict[str, Any]:
    """Apply one client action and return the acknowledgement frame."""
    if manager.get_connection(connection.id) is None:
        return dict(CONNECTION_CLOSED)
    action = message.get("action")
    if action == "ping":
        return {"type": "pong"}
    if action not in ("subscribe", "unsubscribe", "track", "untrack"):
        return {"type": "error", "error": "bad_request", "detail": f"Unknown action: {action}"}

    group_id = message.get("group_id")
    if group_id is not None and not isinstance(group_id, int):
        return {"type": "error", "error": "bad_request", "detail": "group_id must be an integer"}
    if action in ("track", "untrack") and group_id is None:
        return {"type": "error", "error": "bad_request", "detail": "Presence requires a group_id"}

    if action in ("subscribe", "track"):
        try:
            channel = await channel_for(session, connection.user_id, group_id)
        except StudyBuddyError as e:
            return {"type": "error", "error": e.code, "detail": e.message, "group_id": group_id}
    else:
        channel = group_channel(group_id) if group_id is not None else personal_channel(connection.user_id)

    try:
        if action == "subscribe":
            await manager.subscribe(connection.id, channel)
        elif action == "unsubscribe":
            await manager.unsubscribe(connection.id, channel)
        elif action == "track":
            await manager.track(connection.id, channel)
        else:
            await manager.untrack(connection.id, channel)
    except SubscriptionLimitError as e:
        return {"type": "error", "error": "bad_request", "detail": str(e)}
    except KeyError:
        # Pruned while the membership check was running
        return dict(CONNECTION_CLOSED)

    return {"type": "ack", "action": action, "channel": channel}


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    session: DbSession,
    manager: ConnectionManager = Depends(get_manager_from_websocket),
):
    """WebSocket endpoint for change notifications and presence."""
    await websocket.accept()

    token = get_token_from_request(websocket=websocket)
    try:
        current_user = await authenticate_realtime(token, session)
    except StudyBuddyError as e:
        logger.info("Realtime authentication failed", error=e.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    connection_id = str(uuid.uuid4())

    async def send_callback(data: dict[str, Any]) -> None:
        await websocket.send_json(data)

    async def close_callback() -> None:
        await websocket.close(code=status.WS_1001_GOING_AWAY, reason="Idle timeout")

    connection = RealtimeConnection(
        connection_id=connection_id,
        user_id=current_user.user_id,
        send_callback=send_callback,
        name=current_user.name,
        close_callback=close_callback,
    )
    await manager.add_connection(connection)

    try:
        while True:
            data = await websocket.receive_text()
            if manager.get_connection(connection_id) is None:
                # Pruned while waiting; the socket is already closing
                break
            connection.touch()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "error": "bad_request", "detail": "Invalid JSON"})
                continue
            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "error": "bad_request", "detail": "Expected an object"})
                continue
            await websocket.send_json(await handle_action(message, connection, manager, session))
    except WebSocketDisconnect:
        logger.info("WebSocket disconnected", connection_id=connection_id)
    finally:
        await manager.remove_connection(connection_id)


@router.get("/subscribe")
async def sse_endpoint(
    request: Request,
    session: DbSession,
    manager: ConnectionManager = Depends(get_connection_manager),
    group_id: int | None = None,
):
    """SSE stream of change notifications.

    Always includes the caller's personal channel, plus ``group:<id>``
    when ``group_id`` is given.
    """
    token = get_token_from_request(request=request)
    current_user = await authenticate_realtime(token, session)
    channels = [personal_channel(current_user.user_id)]
    if group_id is not None:
        channels.append(await channel_for(session, current_user.user_id, group_id))

    connection_id = str(uuid.uuid4())
    event_queue: asyncio.Queue = asyncio.Queue()

    async def send_callback(data: dict[str, Any]) -> None:
        await event_queue.put(data)

    async def close_callback() -> None:
        await event_queue.put(None)

    connection = RealtimeConnection(
        connection_id=connection_id,
        user_id=current_user.user_id,
        send_callback=send_callback,
        name=current_user.name,
        close_callback=close_callback,
    )
    await manager.add_connection(connection)
    for channel in channels:
        await manager.subscribe(connection_id, channel)

    heartbeat_seconds = get_settings().realtime_heartbeat_seconds

    async def event_generator():
        try:
            while True:
                if await request.is_disconnected():
                    break
                try:
                    data = await asyncio.wait_for(event_queue.get(), timeout=heartbeat_seconds)
                except asyncio.TimeoutError:
                    data = make_event("heartbeat", None)
                if data is None:
                    break
                # The stream is alive as long as the client is reading it
                connection.touch()
                yield {"event": data["type"], "data": json.dumps(data)}
        finally:
            await manager.remove_connection(connection_id)

    return EventSourceResponse(event_generator())
