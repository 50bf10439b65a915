import httpx
from fastapi import APIRouter, Depends, Request

from app.access.policy import Principal
from app.auth.deps import get_principal
from app.core.errors import ValidationFailed
from app.core.http import get_http
from app.schemas.enrich import EnrichIn, EnrichOut
from app.services import enrichment

router = APIRouter(prefix="/products", tags=["products"])


@router.post("/enrich", response_model=EnrichOut)
async def enrich_product(
    payload: EnrichIn,
    request: Request,
    principal: Principal = Depends(get_principal),
    http: httpx.AsyncClient = Depends(get_http),
):
    url = (payload.productUrl or "").strip()
    if not url:
        raise ValidationFailed("Product URL is required")
    return await enrichment.enrich(http, request.app.state.inflight, url, payload.productId)
