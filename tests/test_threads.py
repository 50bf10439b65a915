import pytest
import httpx


async def _create(client: httpx.AsyncClient, headers: dict, **body) -> dict:
    resp = await client.post("/v1/threads", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["thread"]


@pytest.mark.asyncio
async def test_create_and_list_own_threads(client: httpx.AsyncClient, alice: dict, bob: dict, alice_id: str):
    t = await _create(client, alice, thread_id="t-1", name="Summer wedding")
    assert t["owner_id"] == alice_id
    assert t["is_public"] is False
    assert t["created_at"] == t["updated_at"]
    await _create(client, bob, thread_id="t-2", name="Bob's", is_public=True)

    resp = await client.get("/v1/threads", headers=alice)
    assert resp.status_code == 200
    ids = [x["thread_id"] for x in resp.json()["threads"]]
    # public threads of others are not "my threads"
    assert ids == ["t-1"]


@pytest.mark.asyncio
async def test_create_generates_thread_id(client: httpx.AsyncClient, alice: dict):
    t = await _create(client, alice)
    assert t["thread_id"]


@pytest.mark.asyncio
async def test_duplicate_thread_id_is_rejected(client: httpx.AsyncClient, alice: dict):
    await _create(client, alice, thread_id="dup")
    resp = await client.post("/v1/threads", json={"thread_id": "dup"}, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["details"]["fields"][0]["field"] == "thread_id"


@pytest.mark.asyncio
async def test_unauthenticated_requests_get_401(client: httpx.AsyncClient):
    resp = await client.get("/v1/threads")
    assert resp.status_code == 401
    assert resp.json()["error"] == "Unauthorized"

    resp = await client.get("/v1/threads", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_validate_reports_ownership(client: httpx.AsyncClient, alice: dict, bob: dict):
    await _create(client, alice, thread_id="private-t")
    await _create(client, alice, thread_id="public-t", is_public=True)

    resp = await client.get("/v1/threads/validate/private-t", headers=alice)
    assert resp.status_code == 200
    assert resp.json() == {
        "exists": True,
        "thread": {"thread_id": "private-t", "is_owner": True, "is_public": False},
    }

    resp = await client.get("/v1/threads/validate/public-t", headers=bob)
    assert resp.status_code == 200
    assert resp.json()["thread"]["is_owner"] is False

    # a private thread of someone else looks exactly like a missing one
    hidden = await client.get("/v1/threads/validate/private-t", headers=bob)
    missing = await client.get("/v1/threads/validate/nope", headers=bob)
    assert hidden.status_code == missing.status_code == 404
    assert hidden.json() == missing.json()
    assert hidden.json()["exists"] is False


@pytest.mark.asyncio
async def test_validate_without_session(client: httpx.AsyncClient):
    resp = await client.get("/v1/threads/validate/anything")
    assert resp.status_code == 401
    assert resp.json()["exists"] is False


@pytest.mark.asyncio
async def test_update_stamps_updated_at(client: httpx.AsyncClient, alice: dict):
    t = await _create(client, alice, thread_id="t-upd")
    resp = await client.patch("/v1/threads/t-upd", json={"name": "Renamed", "is_public": True}, headers=alice)
    assert resp.status_code == 200
    updated = resp.json()["thread"]
    assert updated["name"] == "Renamed"
    assert updated["is_public"] is True
    assert updated["created_at"] == t["created_at"]
    assert updated["updated_at"] >= t["updated_at"]


@pytest.mark.asyncio
async def test_non_owner_cannot_write_public_thread(client: httpx.AsyncClient, alice: dict, bob: dict):
    await _create(client, alice, thread_id="shared", is_public=True)
    resp = await client.patch("/v1/threads/shared", json={"name": "mine now"}, headers=bob)
    assert resp.status_code == 404
    resp = await client.delete("/v1/threads/shared", headers=bob)
    assert resp.status_code == 404

    resp = await client.get("/v1/threads/validate/shared", headers=alice)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_delete_is_not_idempotent(client: httpx.AsyncClient, alice: dict):
    await _create(client, alice, thread_id="gone")
    first = await client.delete("/v1/threads/gone", headers=alice)
    assert first.status_code == 200
    assert first.json() == {"success": True}
    second = await client.delete("/v1/threads/gone", headers=alice)
    assert second.status_code == 404
