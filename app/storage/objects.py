import asyncio
import base64
import binascii
import logging
import os
import re
from typing import Optional, Tuple

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

STORAGE_BUCKET = os.environ.get("STORAGE_BUCKET", "")
STORAGE_ENDPOINT = os.environ.get("STORAGE_ENDPOINT", "")
STORAGE_REGION = os.environ.get("STORAGE_REGION", "auto")
STORAGE_PUBLIC_BASE = os.environ.get("STORAGE_PUBLIC_BASE", "").rstrip("/")

logger = logging.getLogger("uvicorn.error")

DATA_URL_RE = re.compile(r"^data:([\w.+-]+/[\w.+-]+);base64,(.+)$", re.DOTALL)


def storage_client():
    return boto3.client(
        "s3",
        endpoint_url=STORAGE_ENDPOINT or None,
        aws_access_key_id=os.environ.get("STORAGE_ACCESS_KEY_ID"),
        aws_secret_access_key=os.environ.get("STORAGE_SECRET_ACCESS_KEY"),
        region_name=STORAGE_REGION,
        config=Config(signature_version="s3v4"),
    )


def storage_enabled() -> bool:
    return bool(STORAGE_BUCKET)


def _public_base() -> str:
    if STORAGE_PUBLIC_BASE:
        return STORAGE_PUBLIC_BASE
    return f"{STORAGE_ENDPOINT.rstrip('/')}/{STORAGE_BUCKET}"


def object_url(key: str) -> str:
    return f"{_public_base()}/{key}"


def key_from_url(url: Optional[str]) -> Optional[str]:
    """Return the object key for a URL we issued, None for foreign URLs."""
    if not url:
        return None
    base = _public_base().rstrip("/") + "/"
    if base == "/" or not url.startswith(base):
        return None
    key = url[len(base):].split("?", 1)[0]
    return key or None


def put_object(key: str, body: bytes, content_type: str) -> str:
    storage_client().put_object(
        Bucket=STORAGE_BUCKET,
        Key=key,
        Body=body,
        ContentType=content_type,
        CacheControl="max-age=3600",
    )
    return object_url(key)


def delete_object(key: str) -> None:
    storage_client().delete_object(Bucket=STORAGE_BUCKET, Key=key)


async def discard_url(url: Optional[str]) -> None:
    """Best-effort removal of a stored object once its row is gone."""
    key = key_from_url(url)
    if not key:
        return
    try:
        await asyncio.to_thread(delete_object, key)
    except (BotoCoreError, ClientError) as e:
        logger.warning("storage delete failed key=%s reason=%s", key, e)


def decode_data_url(value: Optional[str]) -> Tuple[str, bytes]:
    """Split a base64 data URL into its mime type and decoded bytes."""
    m = DATA_URL_RE.match(value or "")
    if not m:
        raise ValueError("not a base64 data URL")
    try:
        blob = base64.b64decode(m.group(2))
    except binascii.Error as e:
        raise ValueError(f"bad base64 payload: {e}")
    return m.group(1).lower(), blob
