import logging
import re
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Query, Request, Response

from app.core.config import settings
from app.core.errors import UpstreamFailure, ValidationFailed
from app.core.http import get_http

router = APIRouter(prefix="/monitoring", tags=["monitoring"])
logger = logging.getLogger("uvicorn.error")

# ids end up in the ingest hostname
_SEGMENT = re.compile(r"^[A-Za-z0-9-]+$")


def ingest_url(org: str, project: str, region: str = "us") -> str:
    return f"https://o{org}.ingest.{region}.sentry.io/api/{project}/envelope/"


@router.post("")
async def tunnel(
    request: Request,
    o: Optional[str] = Query(None),
    p: Optional[str] = Query(None),
    r: str = Query("us"),
    http: httpx.AsyncClient = Depends(get_http),
):
    if not o or not p:
        raise ValidationFailed("Missing organization or project ID")
    if not all(_SEGMENT.match(v) for v in (o, p, r)):
        raise ValidationFailed("Invalid organization, project or region")
    body = await request.body()
    try:
        resp = await http.post(
            ingest_url(o, p, r),
            content=body,
            headers={"Content-Type": "application/x-sentry-envelope"},
            timeout=settings.SENTRY_TUNNEL_TIMEOUT_S,
        )
    except httpx.HTTPError as e:
        logger.error("monitoring tunnel: forward failed reason=%s", e)
        raise UpstreamFailure("Failed to forward error to Sentry")
    return Response(content=resp.content, status_code=resp.status_code, media_type="application/json")
