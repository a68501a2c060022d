"""Unit tests for the realtime heartbeat/prune loop."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from studybuddy.infrastructure.api.app import run_realtime_maintenance


@pytest.mark.asyncio
async def test_maintenance_survives_a_failed_pass():
    manager = MagicMock()
    manager.heartbeat = AsyncMock(
        side_effect=[RuntimeError("boom"), None, asyncio.CancelledError()]
    )
    manager.prune_stale = AsyncMock(return_value=[])

    with pytest.raises(asyncio.CancelledError):
        await run_realtime_maintenance(manager, 0, 90)

    assert manager.heartbeat.await_count == 3
    manager.prune_stale.assert_awaited_once_with(90)
