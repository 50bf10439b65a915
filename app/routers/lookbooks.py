import asyncio
import logging
import uuid
from uuid import UUID
from typing import Any, Dict, List
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.access.policy import Principal
from app.access.repository import OwnedRepository
from app.access.row_policy import VIA_LOOKBOOK
from app.auth.deps import get_principal, get_scoped_session
from app.core.config import settings
from app.core.errors import NotFoundOrForbidden, UpstreamFailure, ValidationFailed
from app.core.roles import get_product_role, validate_outfit
from app.core.timestamps import iso, next_stamp, utcnow
from app.models.models import Lookbook, LookbookItem, WardrobeItem
from app.routers.wardrobe import WardrobeRepository
from app.routers.wardrobe_helpers import item_fields
from app.schemas.lookbooks import (
    LookbookCreate,
    LookbookDetailOut,
    LookbookEnvelope,
    LookbookLinkIn,
    LookbookLinkOut,
    LookbookListOut,
    LookbookOut,
    LookbookUpdate,
    LookProduct,
    SaveLookIn,
    SaveLookOut,
)
from app.storage import objects
from app.storage.keys import look_cover_key

router = APIRouter(prefix="/lookbooks", tags=["lookbooks"])
logger = logging.getLogger("uvicorn.error")


class LookbookRepository(OwnedRepository[Lookbook]):
    not_found = "Lookbook not found"

    def __init__(self, session: AsyncSession, principal: Principal):
        super().__init__(
            Lookbook,
            session,
            principal,
            writable=("title", "description", "cover_image_url", "is_public"),
        )


def _lookbook_out(lb: Lookbook) -> LookbookOut:
    return LookbookOut(
        id=str(lb.id),
        owner_id=str(lb.owner_id),
        title=lb.title,
        description=lb.description,
        cover_image_url=lb.cover_image_url,
        is_public=bool(lb.is_public),
        created_at=iso(lb.created_at),
        updated_at=iso(lb.updated_at),
    )


def _link_out(link: LookbookItem) -> LookbookLinkOut:
    return LookbookLinkOut(
        lookbook_id=str(link.lookbook_id),
        wardrobe_item_id=str(link.wardrobe_item_id),
        category=link.category,
        role=link.role,
        note=link.note,
        created_at=iso(link.created_at),
    )


async def _lookbook_products(session: AsyncSession, lookbook_id) -> List[Dict[str, Any]]:
    """Flatten the linked items; link annotations win over the item's own fields."""
    q = (
        select(LookbookItem, WardrobeItem)
        .join(WardrobeItem, LookbookItem.wardrobe_item_id == WardrobeItem.id)
        .where(LookbookItem.lookbook_id == lookbook_id)
        .order_by(LookbookItem.created_at)
        .execution_options(row_policy=VIA_LOOKBOOK)
    )
    res = await session.execute(q)
    products = []
    for link, item in res.all():
        row = item_fields(item)
        row.update(
            {
                "category": link.category or item.category,
                "role": link.role or item.role,
                "linkCategory": link.category,
                "linkRole": link.role,
                "note": link.note,
            }
        )
        products.append(row)
    return products


async def _find_link(session: AsyncSession, lookbook_id, item_id):
    res = await session.execute(
        select(LookbookItem).where(
            LookbookItem.lookbook_id == lookbook_id,
            LookbookItem.wardrobe_item_id == item_id,
        )
    )
    return res.scalar_one_or_none()


@router.get("", response_model=LookbookListOut)
async def list_lookbooks(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    repo = LookbookRepository(session, principal)
    rows = await repo.list(own_only=True, limit=limit, offset=offset)
    total = await repo.count(own_only=True)
    return LookbookListOut(lookbooks=[_lookbook_out(lb) for lb in rows], total=total)


@router.post("", response_model=LookbookEnvelope, status_code=201)
async def create_lookbook(
    payload: LookbookCreate,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    lb = await LookbookRepository(session, principal).create(payload.model_dump())
    await session.commit()
    return LookbookEnvelope(lookbook=_lookbook_out(lb))


@router.post("/save-look", response_model=SaveLookOut, status_code=201)
async def save_look(
    payload: SaveLookIn,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    if len(payload.products) > settings.MAX_LOOK_PRODUCTS:
        raise ValidationFailed(f"Maximum {settings.MAX_LOOK_PRODUCTS} products allowed")
    roles = [get_product_role(p.category, p.role) for p in payload.products]
    problem = validate_outfit(roles)
    if problem:
        raise ValidationFailed(problem, code="invalid_outfit")

    try:
        mime, blob = objects.decode_data_url(payload.generated_image)
    except ValueError:
        mime, blob = "", b""
    if not mime.startswith("image/"):
        raise ValidationFailed("Generated image must be a valid base64 data URL", code="invalid_image")
    image_type = mime.split("/", 1)[1]
    if len(blob) > settings.MAX_IMAGE_BYTES:
        raise ValidationFailed("Image size must be less than 10MB", code="file_too_large")

    if not objects.storage_enabled():
        raise UpstreamFailure("Failed to upload image to storage")
    lookbook_id = uuid.uuid4()
    key = look_cover_key(principal.id, str(lookbook_id), image_type)
    try:
        image_url = await asyncio.to_thread(objects.put_object, key, blob, f"image/{image_type}")
    except (BotoCoreError, ClientError) as e:
        logger.error("save-look: upload failed key=%s reason=%s", key, e)
        raise UpstreamFailure("Failed to upload image to storage")

    try:
        lb = await LookbookRepository(session, principal).create(
            {
                "id": lookbook_id,
                "title": (payload.title or "").strip() or f"Look - {utcnow().isoformat()}",
                "cover_image_url": image_url,
                "is_public": False,
            }
        )
        items = await _look_items(session, principal, payload.products, roles)
        for item, role in items:
            link = LookbookItem(category=item.category, role=role, created_at=utcnow())
            link.lookbook = lb
            link.item = item
            session.add(link)
        await session.commit()
    except Exception:
        await session.rollback()
        await objects.discard_url(image_url)
        raise
    logger.info("save-look: lookbook=%s items=%d user=%s", lb.id, len(items), principal.id)
    return SaveLookOut(lookbook=_lookbook_out(lb), imageUrl=image_url)


async def _look_items(session: AsyncSession, principal: Principal, products: List[LookProduct], roles: List[str]):
    """Resolve each product to an owned wardrobe item, creating search results on the way."""
    repo = WardrobeRepository(session, principal)
    out = []
    seen = set()
    for product, role in zip(products, roles):
        if product.source_data:
            item = await repo.create(
                {
                    "name": (product.title or "Untitled")[:100],
                    "brand": product.brand or "Unknown",
                    "category": product.category or "other",
                    "role": role,
                    "image_url": product.image,
                    "source": "search_result",
                    "item_metadata": {**product.source_data, "product_url": product.product_url},
                }
            )
        else:
            try:
                item = await repo.get_owned(UUID(str(product.id)))
            except (ValueError, NotFoundOrForbidden):
                logger.warning("save-look: skipping product id=%s", product.id)
                continue
        if item.id in seen:
            continue
        seen.add(item.id)
        out.append((item, role))
    return out


@router.get("/{lookbook_id}", response_model=LookbookDetailOut)
async def get_lookbook(
    lookbook_id: UUID,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    lb = await LookbookRepository(session, principal).get(lookbook_id)
    products = await _lookbook_products(session, lb.id)
    return LookbookDetailOut(lookbook=_lookbook_out(lb), products=products)


@router.patch("/{lookbook_id}", response_model=LookbookEnvelope)
async def update_lookbook(
    lookbook_id: UUID,
    payload: LookbookUpdate,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    changes = payload.model_dump(exclude_unset=True)
    for field in ("title", "is_public"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    lb = await LookbookRepository(session, principal).update(lookbook_id, changes)
    await session.commit()
    return LookbookEnvelope(lookbook=_lookbook_out(lb))


@router.delete("/{lookbook_id}")
async def delete_lookbook(
    lookbook_id: UUID,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    lb = await LookbookRepository(session, principal).delete(lookbook_id)
    await session.commit()
    await objects.discard_url(lb.cover_image_url)
    return {"success": True}


@router.post("/{lookbook_id}/items", response_model=LookbookLinkOut, status_code=201)
async def add_lookbook_item(
    lookbook_id: UUID,
    payload: LookbookLinkIn,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    lb = await LookbookRepository(session, principal).get_owned(lookbook_id)
    item = await WardrobeRepository(session, principal).get_owned(payload.wardrobe_item_id)

    link = await _find_link(session, lb.id, item.id)
    if link is None:
        link = LookbookItem(
            category=payload.category or item.category,
            role=payload.role or item.role or get_product_role(item.category),
            note=payload.note,
            created_at=utcnow(),
        )
        link.lookbook = lb
        link.item = item
        session.add(link)
    else:
        for field in ("category", "role", "note"):
            value = getattr(payload, field)
            if value is not None:
                setattr(link, field, value)
    lb.updated_at = next_stamp(lb.updated_at)
    await session.commit()
    return _link_out(link)


@router.delete("/{lookbook_id}/items/{item_id}")
async def remove_lookbook_item(
    lookbook_id: UUID,
    item_id: UUID,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    lb = await LookbookRepository(session, principal).get_owned(lookbook_id)
    link = await _find_link(session, lb.id, item_id)
    if link is None:
        raise NotFoundOrForbidden("Item not in lookbook")
    await session.delete(link)
    lb.updated_at = next_stamp(lb.updated_at)
    await session.commit()
    return {"success": True}
