import pytest
import httpx

from app.auth.jwt import decode_token, mint_access, mint_refresh


async def _signup(client: httpx.AsyncClient, email="jane@example.com", password="correct-horse", name=None) -> dict:
    resp = await client.post("/v1/auth/signup", json={"email": email, "password": password, "name": name})
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_signup_sets_cookies_and_tokens(client: httpx.AsyncClient):
    tokens = await _signup(client)
    assert decode_token(tokens["access"])["typ"] == "access"
    assert decode_token(tokens["refresh"])["typ"] == "refresh"
    assert client.cookies.get("access_token") == tokens["access"]
    assert client.cookies.get("refresh_token") == tokens["refresh"]

    resp = await client.post("/v1/auth/signup", json={"email": "JANE@example.com", "password": "another-pass"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "email_exists"


@pytest.mark.asyncio
async def test_login_checks_password(client: httpx.AsyncClient):
    await _signup(client)
    client.cookies.clear()
    bad = await client.post("/v1/auth/login", json={"email": "jane@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401
    ok = await client.post("/v1/auth/login", json={"email": "jane@example.com", "password": "correct-horse"})
    assert ok.status_code == 200
    assert ok.json()["access"]


@pytest.mark.asyncio
async def test_me_uses_cookie_session_and_falls_back_to_email(client: httpx.AsyncClient):
    await _signup(client)
    resp = await client.get("/v1/auth/me")
    assert resp.status_code == 200
    assert resp.json()["name"] == "jane"
    assert resp.json()["email"] == "jane@example.com"


@pytest.mark.asyncio
async def test_refresh_rejects_access_tokens(client: httpx.AsyncClient):
    tokens = await _signup(client)
    resp = await client.post("/v1/auth/refresh", json={"refresh": tokens["access"]})
    assert resp.status_code == 401
    resp = await client.post("/v1/auth/refresh", json={"refresh": tokens["refresh"]})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_logout_clears_cookies(client: httpx.AsyncClient):
    await _signup(client)
    resp = await client.post("/v1/auth/logout")
    assert resp.status_code == 200
    assert client.cookies.get("access_token") is None
    assert (await client.get("/v1/auth/me")).status_code == 401


@pytest.mark.asyncio
async def test_expiring_access_cookie_is_rotated(client: httpx.AsyncClient, alice_id: str):
    client.cookies.set("access_token", mint_access(alice_id, ttl=10))
    client.cookies.set("refresh_token", mint_refresh(alice_id))
    resp = await client.get("/v1/threads")
    assert resp.status_code == 200
    rotated = resp.cookies.get("access_token")
    assert rotated
    assert decode_token(rotated)["exp"] - decode_token(rotated)["iat"] > 10


@pytest.mark.asyncio
async def test_missing_access_cookie_is_restored_from_refresh(client: httpx.AsyncClient, alice_id: str):
    client.cookies.set("refresh_token", mint_refresh(alice_id))
    resp = await client.get("/v1/threads")
    assert resp.status_code == 200
    assert "access_token" in resp.cookies


@pytest.mark.asyncio
async def test_expired_access_without_refresh_is_401(client: httpx.AsyncClient, alice_id: str):
    client.cookies.set("access_token", mint_access(alice_id, ttl=-5))
    resp = await client.get("/v1/threads")
    assert resp.status_code == 401
