import re
import unicodedata
from typing import Iterable, Literal, Optional

ClothingCategory = Literal[
    "shirt",
    "pants",
    "shorts",
    "dress",
    "skirt",
    "jacket",
    "coat",
    "sweater",
    "hoodie",
    "shoes",
    "boots",
    "sneakers",
    "accessories",
    "suit",
    "tracksuit",
    "jumpsuit",
    "romper",
    "other",
]
Season = Literal["spring", "summer", "fall", "winter", "all-season"]
DressCode = Literal["casual", "business-casual", "business", "formal", "athletic"]
Gender = Literal["men", "women", "unisex"]


def normalize_tag(s: str) -> str:
    s = unicodedata.normalize("NFKD", s or "").encode("ascii", "ignore").decode()
    s = s.strip().lower()
    s = re.sub(r"[^a-z0-9]+", "-", s)
    return re.sub(r"-{2,}", "-", s).strip("-")


def normalize_many(xs: Optional[Iterable[str]]) -> Optional[list[str]]:
    if xs is None:
        return None
    seen: set[str] = set()
    out: list[str] = []
    for x in xs:
        t = normalize_tag(x)
        if t and t not in seen:
            seen.add(t)
            out.append(t)
    return out
