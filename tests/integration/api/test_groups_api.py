"""Integration tests for the groups API."""

import pytest

API = "/api/v1"


async def create_group(client, headers, name="CS101", **extra):
    response = await client.post(f"{API}/groups", json={"name": name, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_group_requires_auth(client):
    response = await client.post(f"{API}/groups", json={"name": "CS101"})

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["error"] == "unauthorized"


@pytest.mark.asyncio
async def test_malformed_authorization_header(client):
    response = await client.get(f"{API}/groups/mine", headers={"Authorization": "Token abc"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_and_list_groups(client, alice_headers):
    group = await create_group(client, alice_headers, description="Intro to CS")

    assert group["name"] == "CS101"
    assert group["owner"]["name"] == "Alice"
    assert group["is_private"] is False

    # Listing is public
    listed = await client.get(f"{API}/groups")
    assert [g["id"] for g in listed.json()] == [group["id"]]

    mine = await client.get(f"{API}/groups/mine", headers=alice_headers)
    assert [g["id"] for g in mine.json()] == [group["id"]]


@pytest.mark.asyncio
async def test_missing_name_is_rejected(client, alice_headers):
    response = await client.post(f"{API}/groups", json={"description": "no name"}, headers=alice_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_search(client, alice_headers):
    await create_group(client, alice_headers, "Linear Algebra")
    await create_group(client, alice_headers, "History")

    response = await client.get(f"{API}/groups", params={"search": "algebra"})

    assert [g["name"] for g in response.json()] == ["Linear Algebra"]


@pytest.mark.asyncio
async def test_join_twice_is_bad_request(client, alice_headers, bob_headers):
    group = await create_group(client, alice_headers)

    first = await client.post(f"{API}/groups/{group['id']}/join", headers=bob_headers)
    assert first.status_code == 201
    assert first.json()["role"] == "member"

    second = await client.post(f"{API}/groups/{group['id']}/join", headers=bob_headers)
    assert second.status_code == 400
    assert second.json()["error"] == "bad_request"

    members = await client.get(f"{API}/groups/{group['id']}/members", headers=bob_headers)
    assert sorted(m["user"]["name"] for m in members.json()) == ["Alice", "Bob"]


@pytest.mark.asyncio
async def test_join_missing_group(client, bob_headers):
    response = await client.post(f"{API}/groups/999/join", headers=bob_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rename_owner_only(client, alice_headers, bob_headers):
    group = await create_group(client, alice_headers)
    await client.post(f"{API}/groups/{group['id']}/join", headers=bob_headers)

    forbidden = await client.patch(
        f"{API}/groups/{group['id']}", json={"name": "Hijacked"}, headers=bob_headers
    )
    assert forbidden.status_code == 403

    renamed = await client.patch(
        f"{API}/groups/{group['id']}", json={"name": "CS102"}, headers=alice_headers
    )
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "CS102"


@pytest.mark.asyncio
async def test_delete_group_cascades(client, alice_headers, bob_headers):
    group = await create_group(client, alice_headers)
    await client.post(f"{API}/groups/{group['id']}/join", headers=bob_headers)
    await client.post(
        f"{API}/messages", json={"group_id": group["id"], "message": "hi"}, headers=bob_headers
    )

    assert (await client.delete(f"{API}/groups/{group['id']}", headers=bob_headers)).status_code == 403

    deleted = await client.delete(f"{API}/groups/{group['id']}", headers=alice_headers)
    assert deleted.status_code == 204

    assert (await client.get(f"{API}/groups/{group['id']}")).status_code == 404
    mine = await client.get(f"{API}/groups/mine", headers=bob_headers)
    assert mine.json() == []
    messages = await client.get(f"{API}/messages", params={"group_id": group["id"]}, headers=bob_headers)
    assert messages.status_code == 401


@pytest.mark.asyncio
async def test_leave_and_transfer(client, alice_headers, bob_headers):
    group = await create_group(client, alice_headers)
    await client.post(f"{API}/groups/{group['id']}/join", headers=bob_headers)

    owner_leave = await client.post(f"{API}/groups/{group['id']}/leave", headers=alice_headers)
    assert owner_leave.status_code == 403

    me = await client.get(f"{API}/users/me", headers=bob_headers)
    transferred = await client.post(
        f"{API}/groups/{group['id']}/transfer",
        json={"user_id": me.json()["id"]},
        headers=alice_headers,
    )
    assert transferred.status_code == 200
    assert transferred.json()["owner_id"] == me.json()["id"]

    assert (await client.post(f"{API}/groups/{group['id']}/leave", headers=alice_headers)).status_code == 204


@pytest.mark.asyncio
async def test_discover(client, alice_headers, bob_headers):
    public = await create_group(client, alice_headers, "Public")
    await create_group(client, alice_headers, "Secret", is_private=True)

    discovered = await client.get(f"{API}/groups/discover", headers=bob_headers)

    assert [g["id"] for g in discovered.json()] == [public["id"]]
