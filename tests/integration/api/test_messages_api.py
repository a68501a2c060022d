"""Integration tests for the messages API."""

import pytest

API = "/api/v1"


async def setup_group(client, owner_headers, *member_headers):
    group = (await client.post(f"{API}/groups", json={"name": "CS101"}, headers=owner_headers)).json()
    for headers in member_headers:
        await client.post(f"{API}/groups/{group['id']}/join", headers=headers)
    return group["id"]


async def send(client, headers, group_id, text):
    response = await client.post(
        f"{API}/messages", json={"group_id": group_id, "message": text}, headers=headers
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_study_group_conversation(client, alice_headers, bob_headers, carol_headers):
    group_id = await setup_group(client, alice_headers, bob_headers)

    await send(client, alice_headers, group_id, "Welcome to CS101")
    reply = await send(client, bob_headers, group_id, "Thanks!")
    assert reply["author"]["name"] == "Bob"

    log = await client.get(
        f"{API}/messages", params={"group_id": group_id, "order": "asc"}, headers=bob_headers
    )
    assert [m["message"] for m in log.json()] == ["Welcome to CS101", "Thanks!"]

    outsider = await client.get(f"{API}/messages", params={"group_id": group_id}, headers=carol_headers)
    assert outsider.status_code == 401
    intrusion = await client.post(
        f"{API}/messages", json={"group_id": group_id, "message": "hi"}, headers=carol_headers
    )
    assert intrusion.status_code == 401


@pytest.mark.asyncio
async def test_empty_message_is_bad_request(client, alice_headers):
    group_id = await setup_group(client, alice_headers)

    response = await client.post(
        f"{API}/messages", json={"group_id": group_id, "message": "  "}, headers=alice_headers
    )

    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"


@pytest.mark.asyncio
async def test_pages_are_complete_and_disjoint(client, alice_headers):
    group_id = await setup_group(client, alice_headers)
    sent = {(await send(client, alice_headers, group_id, f"m{i}"))["id"] for i in range(12)}

    seen = []
    offset = 0
    while True:
        page = (
            await client.get(
                f"{API}/messages",
                params={"group_id": group_id, "offset": offset, "limit": 5},
                headers=alice_headers,
            )
        ).json()
        seen.extend(m["id"] for m in page)
        offset += len(page)
        if len(page) < 5:
            break

    assert len(seen) == 12
    assert set(seen) == sent


@pytest.mark.asyncio
async def test_invalid_paging_params(client, alice_headers):
    response = await client.get(f"{API}/messages", params={"offset": -1}, headers=alice_headers)
    assert response.status_code == 422

    too_big = await client.get(f"{API}/messages", params={"limit": 10_000}, headers=alice_headers)
    assert too_big.status_code == 400


@pytest.mark.asyncio
async def test_delete_only_by_author(client, alice_headers, bob_headers):
    group_id = await setup_group(client, alice_headers, bob_headers)
    message = await send(client, bob_headers, group_id, "oops")

    by_owner = await client.delete(f"{API}/messages/{message['id']}", headers=alice_headers)
    assert by_owner.status_code == 403

    by_author = await client.delete(f"{API}/messages/{message['id']}", headers=bob_headers)
    assert by_author.status_code == 204

    again = await client.delete(f"{API}/messages/{message['id']}", headers=bob_headers)
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_personal_notes(client, alice_headers, bob_headers):
    created = await client.post(f"{API}/messages", json={"message": "remember"}, headers=alice_headers)
    assert created.status_code == 201
    assert created.json()["group_id"] is None

    alice_notes = await client.get(f"{API}/messages", headers=alice_headers)
    bob_notes = await client.get(f"{API}/messages", headers=bob_headers)

    assert [m["message"] for m in alice_notes.json()] == ["remember"]
    assert bob_notes.json() == []
