import json

import pytest
import httpx

from app.core.http import get_agent_client
from app.main import app


class ChunkedBody(httpx.AsyncByteStream):
    """An upstream body that is only produced when the proxy iterates it."""

    def __init__(self, *chunks: bytes):
        self.chunks = chunks
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


def streamed(status: int, *chunks: bytes, headers: dict = None) -> httpx.Response:
    return httpx.Response(status, headers=headers, stream=ChunkedBody(*chunks))


def use_agent(handler) -> None:
    mocked = httpx.AsyncClient(base_url="http://agent.test", transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_agent_client] = lambda: mocked


@pytest.mark.asyncio
async def test_forwards_request_verbatim(client: httpx.AsyncClient, alice: dict):
    seen = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = await request.aread()
        return streamed(
            200,
            b"event: values\n",
            b'data: {"ok": true}\n\n',
            headers={"content-type": "text/event-stream", "x-run-id": "run-1"},
        )

    use_agent(handler)
    resp = await client.post(
        "/v1/agent/threads/t-1/runs/stream?stream_mode=values",
        content=b'{"input": {}}',
        headers={**alice, "content-type": "application/json"},
    )
    assert resp.status_code == 200
    assert resp.headers["x-run-id"] == "run-1"
    assert resp.text == 'event: values\ndata: {"ok": true}\n\n'
    assert seen["method"] == "POST"
    assert seen["url"] == "http://agent.test/threads/t-1/runs/stream?stream_mode=values"
    assert seen["auth"] == alice["Authorization"]
    assert seen["body"] == b'{"input": {}}'


@pytest.mark.asyncio
async def test_relays_upstream_errors(client: httpx.AsyncClient):
    body = json.dumps({"detail": "Thread not found"}).encode()
    use_agent(lambda request: streamed(404, body, headers={"content-type": "application/json"}))
    resp = await client.get("/v1/agent/threads/missing")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Thread not found"}


@pytest.mark.asyncio
async def test_cookie_session_becomes_bearer(client: httpx.AsyncClient, alice: dict):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return streamed(200, b"{}", headers={"content-type": "application/json"})

    use_agent(handler)
    token = alice["Authorization"].split(" ", 1)[1]
    client.cookies.set("access_token", token)
    resp = await client.get("/v1/agent/info")
    assert resp.status_code == 200
    assert resp.json() == {}
    assert seen["auth"] == f"Bearer {token}"


@pytest.mark.asyncio
async def test_upstream_body_is_closed_after_relay(client: httpx.AsyncClient):
    body = ChunkedBody(b"a", b"b", b"c")
    use_agent(lambda request: httpx.Response(200, stream=body))
    resp = await client.get("/v1/agent/stream")
    assert resp.content == b"abc"
    assert body.closed


@pytest.mark.asyncio
async def test_unreachable_agent_is_502(client: httpx.AsyncClient):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    use_agent(handler)
    resp = await client.get("/v1/agent/ok")
    assert resp.status_code == 502
