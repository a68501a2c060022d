"""Unit tests for the realtime WebSocket action handler."""

import pytest
import pytest_asyncio

from studybuddy.domain.services import GroupService
from studybuddy.infrastructure.api.routes.realtime_router import handle_action
from studybuddy.infrastructure.realtime.realtime_manager import ConnectionManager, RealtimeConnection


@pytest_asyncio.fixture
async def setup(db_session, make_user):
    alice = await make_user("Alice")
    mallory = await make_user("Mallory")
    group = await GroupService(db_session).create_group(alice.id, "CS101")

    manager = ConnectionManager(max_subscriptions=2)
    frames = []

    async def record(frame):
        frames.append(frame)

    alice_conn = RealtimeConnection("alice", alice.id, record, name="Alice")
    mallory_conn = RealtimeConnection("mallory", mallory.id, record, name="Mallory")
    await manager.add_connection(alice_conn)
    await manager.add_connection(mallory_conn)
    # Membership checks roll the session back, which expires loaded rows
    return manager, group.id, alice_conn, mallory_conn


@pytest.mark.asyncio
async def test_ping(setup, db_session):
    manager, _, alice, _ = setup
    assert await handle_action({"action": "ping"}, alice, manager, db_session) == {"type": "pong"}


@pytest.mark.asyncio
async def test_member_subscribes_to_group(setup, db_session):
    manager, group_id, alice, _ = setup

    ack = await handle_action({"action": "subscribe", "group_id": group_id}, alice, manager, db_session)

    assert ack == {"type": "ack", "action": "subscribe", "channel": f"group:{group_id}"}
    assert f"group:{group_id}" in alice.channels


@pytest.mark.asyncio
async def test_non_member_is_refused(setup, db_session):
    manager, group_id, _, mallory = setup

    frame = await handle_action({"action": "subscribe", "group_id": group_id}, mallory, manager, db_session)

    assert frame["type"] == "error"
    assert frame["error"] == "unauthorized"
    assert mallory.channels == set()

    frame = await handle_action({"action": "track", "group_id": group_id}, mallory, manager, db_session)
    assert frame["error"] == "unauthorized"
    assert manager.presence(f"group:{group_id}") == []


@pytest.mark.asyncio
async def test_personal_channel_subscription(setup, db_session):
    manager, _, alice, _ = setup

    ack = await handle_action({"action": "subscribe"}, alice, manager, db_session)

    assert ack["channel"] == f"personal:{alice.user_id}"


@pytest.mark.asyncio
async def test_track_and_untrack(setup, db_session):
    manager, group_id, alice, _ = setup
    channel = f"group:{group_id}"

    await handle_action({"action": "track", "group_id": group_id}, alice, manager, db_session)
    assert manager.presence(channel) == [{"user_id": alice.user_id, "name": "Alice"}]

    await handle_action({"action": "untrack", "group_id": group_id}, alice, manager, db_session)
    assert manager.presence(channel) == []


@pytest.mark.parametrize(
    "message",
    [
        {"action": "explode"},
        {"action": "subscribe", "group_id": "1"},
        {"action": "track"},
    ],
)
@pytest.mark.asyncio
async def test_invalid_actions(setup, db_session, message):
    manager, _, alice, _ = setup
    frame = await handle_action(message, alice, manager, db_session)
    assert frame["type"] == "error"
    assert frame["error"] == "bad_request"


@pytest.mark.asyncio
async def test_subscription_limit_reported(setup, db_session, make_user):
    manager, group_id, alice, _ = setup
    other_id = (await GroupService(db_session).create_group(alice.user_id, "CS102")).id
    await handle_action({"action": "subscribe"}, alice, manager, db_session)
    await handle_action({"action": "subscribe", "group_id": group_id}, alice, manager, db_session)

    frame = await handle_action({"action": "subscribe", "group_id": other_id}, alice, manager, db_session)

    assert frame["type"] == "error"
    assert "Maximum of 2" in frame["detail"]


@pytest.mark.asyncio
async def test_pruned_connection_gets_error_frame(setup, db_session):
    manager, group_id, alice, _ = setup
    await manager.remove_connection(alice.id)

    for action in ({"action": "ping"}, {"action": "subscribe", "group_id": group_id}):
        frame = await handle_action(action, alice, manager, db_session)
        assert frame["type"] == "error"
        assert frame["error"] == "connection_closed"
