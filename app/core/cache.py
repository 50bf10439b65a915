"""JSON values in redis with per-key expiry."""
import hashlib
import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis

from app.core.config import settings

logger = logging.getLogger("uvicorn.error")

_redis: Optional[Redis] = None


def get_redis() -> Redis:
    global _redis
    if _redis is None:
        _redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def hashed_key(namespace: str, raw: str) -> str:
    # raw values are URLs of unbounded length
    return f"{namespace}:{hashlib.sha256(raw.encode('utf-8')).hexdigest()}"


async def cache_json_get(key: str) -> Optional[Any]:
    val = await get_redis().get(key)
    if not val:
        return None
    try:
        return json.loads(val)
    except ValueError:
        logger.warning("cache: dropping undecodable value key=%s", key)
        await get_redis().delete(key)
        return None


async def cache_json_set(key: str, data: Any, ttl_s: int) -> None:
    await get_redis().set(key, json.dumps(data, separators=(",", ":")), ex=ttl_s)
