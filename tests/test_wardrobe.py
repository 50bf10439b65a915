import pytest
import httpx


async def _add(client: httpx.AsyncClient, headers: dict, **body) -> dict:
    payload = {"name": "White Tee", "category": "shirt"}
    payload.update(body)
    resp = await client.post("/v1/wardrobe", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["item"]


@pytest.mark.asyncio
async def test_create_derives_role_and_normalizes_tags(client: httpx.AsyncClient, alice: dict, alice_id: str):
    item = await _add(client, alice, colors=["White", " white ", "Navy"], brand="  Uniqlo ")
    assert item["owner_id"] == alice_id
    assert item["role"] == "top"
    assert item["source"] == "manual"
    assert item["colors"] == ["white", "navy"]
    assert item["brand"] == "Uniqlo"
    assert item["created_at"] == item["updated_at"]


@pytest.mark.asyncio
async def test_explicit_role_wins(client: httpx.AsyncClient, alice: dict):
    item = await _add(client, alice, name="Silk scarf", category="accessories", role="accessory")
    assert item["role"] == "accessory"


@pytest.mark.asyncio
async def test_create_reports_every_invalid_field(client: httpx.AsyncClient, alice: dict):
    resp = await client.post(
        "/v1/wardrobe",
        json={"name": "", "category": "spacesuit", "price": -3},
        headers=alice,
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "validation_failed"
    fields = {f["field"] for f in body["details"]["fields"]}
    assert {"name", "category", "price"} <= fields


@pytest.mark.asyncio
async def test_list_filters_and_paginates(client: httpx.AsyncClient, alice: dict, bob: dict):
    await _add(client, alice, name="Blue Jeans", category="pants")
    await _add(client, alice, name="Black Jeans", category="pants")
    await _add(client, alice, name="Oxford shirt", category="shirt")
    await _add(client, bob, name="Bob Jeans", category="pants")

    resp = await client.get("/v1/wardrobe", params={"category": "pants"}, headers=alice)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 2
    # newest first
    assert [i["name"] for i in body["items"]] == ["Black Jeans", "Blue Jeans"]

    resp = await client.get("/v1/wardrobe", params={"search": "OXFORD"}, headers=alice)
    assert [i["name"] for i in resp.json()["items"]] == ["Oxford shirt"]

    resp = await client.get("/v1/wardrobe", params={"limit": 1, "offset": 1}, headers=alice)
    body = resp.json()
    assert body["total"] == 3
    assert body["limit"] == 1 and body["offset"] == 1
    assert len(body["items"]) == 1


@pytest.mark.asyncio
async def test_items_are_owner_private(client: httpx.AsyncClient, alice: dict, bob: dict):
    item = await _add(client, alice)
    for method in ("get", "delete"):
        resp = await getattr(client, method)(f"/v1/wardrobe/{item['id']}", headers=bob)
        assert resp.status_code == 404
    resp = await client.patch(f"/v1/wardrobe/{item['id']}", json={"name": "stolen"}, headers=bob)
    assert resp.status_code == 404

    resp = await client.get(f"/v1/wardrobe/{item['id']}", headers=alice)
    assert resp.json()["item"]["name"] == "White Tee"


@pytest.mark.asyncio
async def test_update_requires_fields_and_rederives_role(client: httpx.AsyncClient, alice: dict):
    item = await _add(client, alice)
    resp = await client.patch(f"/v1/wardrobe/{item['id']}", json={}, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["error"] == "No fields to update"

    resp = await client.patch(f"/v1/wardrobe/{item['id']}", json={"category": "jacket"}, headers=alice)
    assert resp.status_code == 200
    updated = resp.json()["item"]
    assert updated["role"] == "outerwear"
    assert updated["updated_at"] >= item["updated_at"]
    assert updated["created_at"] == item["created_at"]


@pytest.mark.asyncio
async def test_delete_twice(client: httpx.AsyncClient, alice: dict):
    item = await _add(client, alice)
    resp = await client.delete(f"/v1/wardrobe/{item['id']}", headers=alice)
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "id": item["id"]}
    resp = await client.delete(f"/v1/wardrobe/{item['id']}", headers=alice)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_save_product_dedupes_by_url(client: httpx.AsyncClient, alice: dict, bob: dict):
    product = {
        "name": "Linen Blazer",
        "image": "https://shop.example.com/blazer.jpg",
        "brand": "Acme",
        "price": 129.0,
        "product_url": "https://shop.example.com/p/blazer",
        "attributes": {"category": "blazer"},
    }
    first = await client.post("/v1/wardrobe/save-product", json={"product": product}, headers=alice)
    assert first.status_code == 201
    assert first.json()["alreadyExists"] is False
    item_id = first.json()["wardrobeItemId"]

    again = await client.post("/v1/wardrobe/save-product", json={"product": product}, headers=alice)
    assert again.status_code == 200
    assert again.json() == {"wardrobeItemId": item_id, "alreadyExists": True}

    # dedup is per owner
    other = await client.post("/v1/wardrobe/save-product", json={"product": product}, headers=bob)
    assert other.status_code == 201
    assert other.json()["wardrobeItemId"] != item_id

    saved = (await client.get(f"/v1/wardrobe/{item_id}", headers=alice)).json()["item"]
    assert saved["source"] == "search_result"
    assert saved["role"] == "outerwear"
    # storage is not configured, so the retailer image is kept
    assert saved["image_url"] == product["image"]
    assert saved["metadata"]["product_url"] == product["product_url"]


@pytest.mark.asyncio
async def test_save_product_requires_image(client: httpx.AsyncClient, alice: dict):
    resp = await client.post("/v1/wardrobe/save-product", json={"product": {"name": "x"}}, headers=alice)
    assert resp.status_code == 400
