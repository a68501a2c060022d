"""Integration tests for health endpoints."""

import pytest

API = "/api/v1"


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_live(client):
    response = await client.get("/live")
    assert response.json()["status"] == "alive"


@pytest.mark.asyncio
async def test_api_root(client):
    response = await client.get(API)
    assert response.json()["api_version"] == "v1"


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"
