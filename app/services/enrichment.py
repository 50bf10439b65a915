"""Product page enrichment through Firecrawl's extract endpoint.

Results are cached in redis per product URL; concurrent misses for the same
URL share one upstream call through ``InflightRequests``.
"""
import logging
from typing import Any, Optional, Tuple

import httpx
from pydantic import ValidationError
from redis.exceptions import RedisError

from app.core.cache import cache_json_get, cache_json_set, hashed_key
from app.core.config import settings
from app.core.errors import APIError, UpstreamFailure
from app.core.inflight import InflightRequests
from app.core.timestamps import iso, utcnow
from app.schemas.enrich import EnrichedData, EnrichOut

logger = logging.getLogger("uvicorn.error")

CACHE_NAMESPACE = "enrich"
SCRAPE_TIMEOUT_MS = 15000

EXTRACT_PROMPT = """Extract the following information from this product page:
1. Current price (as a number, null if not available)
2. Currency code (USD, EUR, GBP, etc.)
3. A concise 2-3 sentence summary of the product description
4. Materials and fabric composition summary
5. Sizing information and fit details
6. A summary of customer reviews highlighting key pros and cons

Return as JSON with keys: price, currency, description_summary, materials_summary, sizing_info, reviews_summary"""

EXTRACT_SCHEMA = {
    "type": "object",
    "properties": {
        "price": {"type": ["number", "null"]},
        "currency": {"type": ["string", "null"]},
        "description_summary": {"type": ["string", "null"]},
        "materials_summary": {"type": ["string", "null"]},
        "sizing_info": {"type": ["string", "null"]},
        "reviews_summary": {"type": ["string", "null"]},
    },
}


class EnrichmentFailed(APIError):
    code = "enrichment_failed"


def cache_key(product_url: str) -> str:
    return hashed_key(CACHE_NAMESPACE, product_url)


async def read_cached(product_url: str) -> Optional[dict]:
    try:
        hit = await cache_json_get(cache_key(product_url))
    except RedisError as e:
        logger.warning("enrich: cache read failed reason=%s", e)
        return None
    if not isinstance(hit, dict) or "enriched_data" not in hit:
        return None
    return hit


async def write_cached(product_url: str, data: dict, enriched_at: str, product_id: Optional[str] = None) -> None:
    record = {"enriched_data": data, "enriched_at": enriched_at, "product_id": product_id}
    try:
        await cache_json_set(cache_key(product_url), record, settings.ENRICH_CACHE_TTL_S)
    except RedisError as e:
        logger.error("enrich: failed to cache url=%s reason=%s", product_url, e)


async def scrape(http: httpx.AsyncClient, product_url: str, api_key: str) -> dict:
    body = {
        "url": product_url,
        "formats": ["extract"],
        "timeout": SCRAPE_TIMEOUT_MS,
        "extract": {"prompt": EXTRACT_PROMPT, "schema": EXTRACT_SCHEMA},
    }
    try:
        resp = await http.post(
            settings.FIRECRAWL_API_URL,
            json=body,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=settings.FIRECRAWL_TIMEOUT_S,
        )
    except httpx.TransportError as e:
        logger.error("enrich: firecrawl unreachable url=%s reason=%s", product_url, e)
        raise UpstreamFailure("Failed to enrich product data")

    if resp.is_error:
        try:
            details: Any = resp.json()
        except ValueError:
            details = {}
        logger.error("enrich: firecrawl status=%s details=%s", resp.status_code, details)
        raise EnrichmentFailed("Failed to enrich product data", status_code=resp.status_code, details=details)

    try:
        payload = resp.json()
    except ValueError:
        payload = {}
    data = payload.get("data") if isinstance(payload, dict) else None
    extract = (data or {}).get("extract") if isinstance(data, dict) else None
    extract = extract or data
    if not isinstance(extract, dict):
        raise UpstreamFailure("Invalid enrichment data received")
    try:
        return EnrichedData.model_validate(extract).model_dump()
    except ValidationError:
        raise UpstreamFailure("Invalid enrichment data received")


async def enrich(
    http: httpx.AsyncClient,
    inflight: InflightRequests,
    product_url: str,
    product_id: Optional[str] = None,
) -> EnrichOut:
    api_key = settings.FIRECRAWL_API_KEY
    if not api_key:
        raise UpstreamFailure("Firecrawl API key not configured", code="not_configured")

    hit = await read_cached(product_url)
    if hit:
        logger.info("enrich: cache hit url=%s", product_url)
        return EnrichOut(enrichedData=hit["enriched_data"], cached=True, enrichedAt=hit["enriched_at"])

    async def _fetch() -> Tuple[dict, str]:
        logger.info("enrich: cache miss, scraping url=%s", product_url)
        data = await scrape(http, product_url, api_key)
        enriched_at = iso(utcnow())
        await write_cached(product_url, data, enriched_at, product_id)
        return data, enriched_at

    data, enriched_at = await inflight.run(product_url, _fetch)
    return EnrichOut(enrichedData=data, cached=False, enrichedAt=enriched_at)
