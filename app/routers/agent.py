import logging

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from app.auth.session import ACCESS_COOKIE
from app.core.errors import UpstreamFailure
from app.core.http import get_agent_client

router = APIRouter(prefix="/agent", tags=["agent"])
logger = logging.getLogger("uvicorn.error")

HOP_BY_HOP = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
        "content-length",
    }
)


def _forward_headers(request: Request) -> dict:
    headers = {k: v for k, v in request.headers.items() if k.lower() not in HOP_BY_HOP}
    if "authorization" not in headers:
        # browser callers authenticate with the session cookie
        token = getattr(request.state, "access_token", None) or request.cookies.get(ACCESS_COOKIE)
        if token:
            headers["authorization"] = f"Bearer {token}"
    return headers


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
async def passthrough(path: str, request: Request, client: httpx.AsyncClient = Depends(get_agent_client)):
    upstream = client.build_request(
        request.method,
        "/" + path,
        params=request.query_params.multi_items(),
        headers=_forward_headers(request),
        content=await request.body(),
    )
    try:
        resp = await client.send(upstream, stream=True)
    except httpx.TransportError as e:
        logger.error("agent passthrough %s /%s failed: %s", request.method, path, e)
        raise UpstreamFailure("Agent server unreachable", status_code=502, code="bad_gateway")

    headers = {k: v for k, v in resp.headers.items() if k.lower() not in HOP_BY_HOP}
    return StreamingResponse(
        resp.aiter_raw(),
        status_code=resp.status_code,
        headers=headers,
        background=BackgroundTask(resp.aclose),
    )
