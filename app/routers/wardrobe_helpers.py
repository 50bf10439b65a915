from typing import Any, Dict, Optional
from app.core.roles import get_product_role
from app.core.taxonomy import normalize_many
from app.core.timestamps import iso
from app.models.models import WardrobeItem
from app.schemas.wardrobe import Product, WardrobeItemOut

TAG_FIELDS = ("colors", "fabrics", "tags")


def item_fields(item: WardrobeItem) -> Dict[str, Any]:
    return {
        "id": str(item.id),
        "owner_id": str(item.owner_id),
        "name": item.name,
        "category": item.category,
        "role": item.role,
        "brand": item.brand,
        "image_url": item.image_url,
        "colors": item.colors,
        "fabrics": item.fabrics,
        "seasons": item.seasons,
        "tags": item.tags,
        "price": item.price,
        "dress_codes": item.dress_codes,
        "gender": item.gender,
        "size": item.size,
        "notes": item.notes,
        "source": item.source,
        "metadata": item.item_metadata,
        "created_at": iso(item.created_at),
        "updated_at": iso(item.updated_at),
    }


def build_item_out(item: WardrobeItem) -> WardrobeItemOut:
    return WardrobeItemOut(**item_fields(item))


def normalize_item_values(data: Dict[str, Any]) -> Dict[str, Any]:
    for field in TAG_FIELDS:
        if field in data:
            data[field] = normalize_many(data[field])
    if "brand" in data and data["brand"] is not None:
        data["brand"] = data["brand"].strip() or None
    if "name" in data and data["name"] is not None:
        data["name"] = data["name"].strip()
    return data


def product_category(product: Product) -> str:
    return str(product.attributes.get("category") or "other")


def product_role(product: Product, category: Optional[str] = None) -> str:
    return get_product_role(category or product_category(product), product.attributes.get("role"))


def product_metadata(product: Product, category: str, role: str) -> Dict[str, Any]:
    meta = {
        "product_url": product.product_url,
        "price": product.price,
        "currency": product.currency,
        "description": product.description,
        "rating": product.rating,
        "reviews": product.reviews,
        "in_stock": product.in_stock,
        "source_icon": product.source_icon,
        "category": category,
        "role": role,
    }
    meta.update(product.attributes)
    return meta
