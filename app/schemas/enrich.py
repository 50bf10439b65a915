from pydantic import BaseModel
from typing import Optional


class EnrichIn(BaseModel):
    productId: Optional[str] = None
    productUrl: Optional[str] = None


class EnrichedData(BaseModel):
    price: Optional[float] = None
    currency: Optional[str] = None
    description_summary: Optional[str] = None
    materials_summary: Optional[str] = None
    sizing_info: Optional[str] = None
    reviews_summary: Optional[str] = None


class EnrichOut(BaseModel):
    enrichedData: EnrichedData
    cached: bool
    enrichedAt: str
