import asyncio
import logging
from uuid import UUID
from typing import Optional
import httpx
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from app.access.policy import Principal
from app.access.repository import OwnedRepository
from app.auth.deps import get_principal, get_scoped_session
from app.core.config import settings
from app.core.errors import ValidationFailed
from app.core.http import get_http
from app.core.roles import get_product_role
from app.models.models import WardrobeItem
from app.routers.wardrobe_helpers import (
    build_item_out,
    normalize_item_values,
    product_category,
    product_metadata,
    product_role,
)
from app.schemas.wardrobe import (
    SaveProductIn,
    SaveProductOut,
    WardrobeDeleteOut,
    WardrobeItemCreate,
    WardrobeItemEnvelope,
    WardrobeItemUpdate,
    WardrobeListOut,
)
from app.storage import objects
from app.storage.keys import item_image_key

router = APIRouter(prefix="/wardrobe", tags=["wardrobe"])
logger = logging.getLogger("uvicorn.error")

ITEM_WRITABLE = (
    "name",
    "category",
    "role",
    "brand",
    "image_url",
    "colors",
    "fabrics",
    "seasons",
    "tags",
    "price",
    "dress_codes",
    "gender",
    "size",
    "notes",
)


class WardrobeRepository(OwnedRepository[WardrobeItem]):
    not_found = "Item not found"

    def __init__(self, session: AsyncSession, principal: Principal):
        super().__init__(
            WardrobeItem,
            session,
            principal,
            writable=ITEM_WRITABLE,
            default_order=[WardrobeItem.created_at.desc()],
        )

    async def find_by_product_url(self, product_url: str) -> Optional[WardrobeItem]:
        rows = await self.list(WardrobeItem.item_metadata["product_url"].as_string() == product_url, limit=1)
        return rows[0] if rows else None


@router.get("", response_model=WardrobeListOut)
async def list_items(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    conds = []
    if category:
        conds.append(WardrobeItem.category == category)
    if search and search.strip():
        conds.append(func.lower(WardrobeItem.name).contains(search.strip().lower(), autoescape=True))
    repo = WardrobeRepository(session, principal)
    items = await repo.list(*conds, limit=limit, offset=offset)
    total = await repo.count(*conds)
    return WardrobeListOut(items=[build_item_out(i) for i in items], total=total, limit=limit, offset=offset)


@router.post("", response_model=WardrobeItemEnvelope, status_code=201)
async def create_item(
    payload: WardrobeItemCreate,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    data = normalize_item_values(payload.model_dump())
    data["role"] = get_product_role(data["category"], data.get("role"))
    data["source"] = "manual"
    item = await WardrobeRepository(session, principal).create(data)
    await session.commit()
    return WardrobeItemEnvelope(item=build_item_out(item))


async def _copy_product_image(http: httpx.AsyncClient, owner_id: str, url: str) -> str:
    """Mirror a retailer image into our bucket; keep the external URL if that fails."""
    if not objects.storage_enabled():
        return url
    try:
        resp = await http.get(url)
        resp.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning("save-product: image fetch failed url=%s reason=%s", url, e)
        return url
    if len(resp.content) > settings.MAX_IMAGE_BYTES:
        raise ValidationFailed("Image size must be less than 10MB", code="file_too_large")
    content_type = resp.headers.get("content-type", "image/jpeg").split(";")[0]
    ext = content_type.split("/")[-1] or "jpg"
    try:
        return await asyncio.to_thread(objects.put_object, item_image_key(owner_id, ext), resp.content, content_type)
    except (BotoCoreError, ClientError) as e:
        logger.warning("save-product: upload failed reason=%s", e)
        return url


@router.post("/save-product", response_model=SaveProductOut, status_code=201)
async def save_product(
    payload: SaveProductIn,
    response: Response,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
    http: httpx.AsyncClient = Depends(get_http),
):
    product = payload.product
    repo = WardrobeRepository(session, principal)
    if product.product_url:
        existing = await repo.find_by_product_url(product.product_url)
        if existing:
            response.status_code = 200
            return SaveProductOut(wardrobeItemId=str(existing.id), alreadyExists=True)

    category = product_category(product)
    role = product_role(product, category)
    image_url = await _copy_product_image(http, principal.id, product.image)
    item = await repo.create(
        {
            "name": product.name[:100],
            "brand": product.brand or "Unknown",
            "category": category,
            "role": role,
            "image_url": image_url,
            "source": "search_result",
            "item_metadata": product_metadata(product, category, role),
        }
    )
    await session.commit()
    return SaveProductOut(wardrobeItemId=str(item.id), alreadyExists=False)


@router.get("/{item_id}", response_model=WardrobeItemEnvelope)
async def get_item(
    item_id: UUID,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    item = await WardrobeRepository(session, principal).get(item_id)
    return WardrobeItemEnvelope(item=build_item_out(item))


@router.patch("/{item_id}", response_model=WardrobeItemEnvelope)
async def update_item(
    item_id: UUID,
    payload: WardrobeItemUpdate,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    data = normalize_item_values(payload.model_dump(exclude_unset=True))
    for required in ("name", "category"):
        if required in data and data[required] is None:
            data.pop(required)
    if not data:
        raise ValidationFailed("No fields to update")
    if data.get("category") and "role" not in data:
        data["role"] = get_product_role(data["category"])
    item = await WardrobeRepository(session, principal).update(item_id, data)
    await session.commit()
    return WardrobeItemEnvelope(item=build_item_out(item))


@router.delete("/{item_id}", response_model=WardrobeDeleteOut)
async def delete_item(
    item_id: UUID,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    item = await WardrobeRepository(session, principal).delete(item_id)
    await session.commit()
    await objects.discard_url(item.image_url)
    return WardrobeDeleteOut(success=True, id=str(item_id))
