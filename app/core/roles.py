"""Outfit roles: the slot a garment fills in a look.

A product either carries an explicit role or gets one from its category;
anything unknown is treated as an accessory.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

OUTFIT_ROLES = ("top", "bottom", "dress", "fullbody", "outerwear", "footwear", "accessory")

CATEGORY_TO_ROLE = {
    # tops
    "shirt": "top",
    "blouse": "top",
    "t-shirt": "top",
    "tshirt": "top",
    "tank top": "top",
    "tanktop": "top",
    "crop top": "top",
    "croptop": "top",
    "sweater": "top",
    "hoodie": "top",
    "cardigan": "top",
    # bottoms
    "pants": "bottom",
    "jeans": "bottom",
    "shorts": "bottom",
    "skirt": "bottom",
    "trousers": "bottom",
    "leggings": "bottom",
    "dress": "dress",
    # fullbody
    "suit": "fullbody",
    "tracksuit": "fullbody",
    "jumpsuit": "fullbody",
    "romper": "fullbody",
    "overalls": "fullbody",
    "coveralls": "fullbody",
    # outerwear
    "jacket": "outerwear",
    "coat": "outerwear",
    "blazer": "outerwear",
    "parka": "outerwear",
    "windbreaker": "outerwear",
    "vest": "outerwear",
    # footwear
    "shoes": "footwear",
    "boots": "footwear",
    "sneakers": "footwear",
    "sandals": "footwear",
    "heels": "footwear",
    "flats": "footwear",
    # accessories
    "accessories": "accessory",
    "bag": "accessory",
    "purse": "accessory",
    "backpack": "accessory",
    "belt": "accessory",
    "hat": "accessory",
    "scarf": "accessory",
    "jewelry": "accessory",
    "watch": "accessory",
    "sunglasses": "accessory",
    "glasses": "accessory",
}

ROLE_DISPLAY_ORDER = {
    "outerwear": 1,
    "top": 2,
    "dress": 3,
    "fullbody": 3,
    "bottom": 4,
    "footwear": 5,
    "accessory": 6,
}

MAX_OUTFIT_ITEMS = 6
MAX_ACCESSORIES = 3


def get_product_role(category: Optional[str] = None, role: Optional[str] = None) -> str:
    if role and role in OUTFIT_ROLES:
        return role
    if category:
        mapped = CATEGORY_TO_ROLE.get(category.lower())
        if mapped:
            return mapped
    return "accessory"


@dataclass
class AddCheck:
    can_add: bool
    reason: Optional[str] = None


def can_add_to_outfit(current_roles: Sequence[str], new_role: str) -> AddCheck:
    """Check whether a garment with ``new_role`` fits next to ``current_roles``."""
    if len(current_roles) >= MAX_OUTFIT_ITEMS:
        return AddCheck(False, f"Outfit is full (max {MAX_OUTFIT_ITEMS} items)")

    counts: dict[str, int] = {}
    for r in current_roles:
        counts[r] = counts.get(r, 0) + 1
    has_top = counts.get("top", 0) > 0
    has_bottom = counts.get("bottom", 0) > 0
    has_dress = counts.get("dress", 0) > 0
    has_fullbody = counts.get("fullbody", 0) > 0

    if new_role == "top" and has_top:
        return AddCheck(False, "You already have a top in this outfit")
    if new_role == "bottom" and has_bottom:
        return AddCheck(False, "You already have a bottom in this outfit")
    if new_role == "dress":
        if has_dress:
            return AddCheck(False, "You already have a dress in this outfit")
        if has_top or has_bottom:
            return AddCheck(False, "Can't add dress - you already have a top or bottom")
        if has_fullbody:
            return AddCheck(False, "Can't add dress - you already have a full body item")
    if new_role == "fullbody":
        if has_fullbody:
            return AddCheck(False, "You already have a full body item in this outfit")
        if has_top or has_bottom:
            return AddCheck(False, "Can't add full body item - you already have a top or bottom")
        if has_dress:
            return AddCheck(False, "Can't add full body item - you already have a dress")
    if new_role == "outerwear" and counts.get("outerwear", 0) > 0:
        return AddCheck(False, "You already have outerwear in this outfit")
    if new_role == "footwear" and counts.get("footwear", 0) > 0:
        return AddCheck(False, "You already have footwear in this outfit")
    if new_role == "accessory" and counts.get("accessory", 0) >= MAX_ACCESSORIES:
        return AddCheck(False, f"Maximum {MAX_ACCESSORIES} accessories allowed per outfit")
    if new_role in ("top", "bottom") and has_dress:
        return AddCheck(False, "Can't add top or bottom - you already have a dress")
    if new_role in ("top", "bottom") and has_fullbody:
        return AddCheck(False, "Can't add top or bottom - you already have a full body item")
    return AddCheck(True)


def validate_outfit(roles: Iterable[str]) -> Optional[str]:
    """Return the first composition problem in ``roles``, or None."""
    placed: list[str] = []
    for role in roles:
        check = can_add_to_outfit(placed, role)
        if not check.can_add:
            return check.reason
        placed.append(role)
    return None


def sort_by_role(products: Sequence[dict]) -> list[dict]:
    return sorted(
        products,
        key=lambda p: ROLE_DISPLAY_ORDER[get_product_role(p.get("category"), p.get("role"))],
    )
