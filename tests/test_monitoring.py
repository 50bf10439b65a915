import pytest
import httpx

ENVELOPE = b'{"event_id":"abc"}\n{"type":"event"}\n{}'


@pytest.mark.asyncio
async def test_envelope_is_forwarded(client: httpx.AsyncClient, outbound):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["type"] = request.headers["content-type"]
        seen["body"] = request.content
        return httpx.Response(200, json={"id": "abc"})

    outbound(handler)
    resp = await client.post("/v1/monitoring?o=123&p=456&r=de", content=ENVELOPE)
    assert resp.status_code == 200
    assert resp.json() == {"id": "abc"}
    assert seen["url"] == "https://o123.ingest.de.sentry.io/api/456/envelope/"
    assert seen["type"] == "application/x-sentry-envelope"
    assert seen["body"] == ENVELOPE


@pytest.mark.asyncio
async def test_region_defaults_to_us_and_status_is_relayed(client: httpx.AsyncClient, outbound):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["host"] = request.url.host
        return httpx.Response(429, text="slow down")

    outbound(handler)
    resp = await client.post("/v1/monitoring?o=1&p=2", content=ENVELOPE)
    assert resp.status_code == 429
    assert resp.text == "slow down"
    assert seen["host"] == "o1.ingest.us.sentry.io"


@pytest.mark.asyncio
async def test_missing_ids(client: httpx.AsyncClient):
    resp = await client.post("/v1/monitoring?o=1", content=ENVELOPE)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing organization or project ID"


@pytest.mark.asyncio
async def test_transport_failure(client: httpx.AsyncClient, outbound):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    outbound(handler)
    resp = await client.post("/v1/monitoring?o=1&p=2", content=ENVELOPE)
    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to forward error to Sentry"
