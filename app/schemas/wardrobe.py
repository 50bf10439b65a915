from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal, Any, Dict
from app.core.taxonomy import ClothingCategory, DressCode, Gender, Season

OutfitRole = Literal["top", "bottom", "dress", "fullbody", "outerwear", "footwear", "accessory"]


class WardrobeItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    category: ClothingCategory
    role: Optional[OutfitRole] = None
    brand: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = None
    colors: Optional[List[str]] = None
    fabrics: Optional[List[str]] = None
    seasons: Optional[List[Season]] = None
    tags: Optional[List[str]] = None
    price: Optional[float] = Field(None, gt=0)
    dress_codes: Optional[List[DressCode]] = None
    gender: Optional[Gender] = None
    size: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = Field(None, max_length=500)


class WardrobeItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[ClothingCategory] = None
    role: Optional[OutfitRole] = None
    brand: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = None
    colors: Optional[List[str]] = None
    fabrics: Optional[List[str]] = None
    seasons: Optional[List[Season]] = None
    tags: Optional[List[str]] = None
    price: Optional[float] = Field(None, gt=0)
    dress_codes: Optional[List[DressCode]] = None
    gender: Optional[Gender] = None
    size: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = Field(None, max_length=500)


class WardrobeItemOut(BaseModel):
    id: str
    owner_id: str
    name: str
    category: str
    role: Optional[str] = None
    brand: Optional[str] = None
    image_url: Optional[str] = None
    colors: Optional[List[str]] = None
    fabrics: Optional[List[str]] = None
    seasons: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    price: Optional[float] = None
    dress_codes: Optional[List[str]] = None
    gender: Optional[str] = None
    size: Optional[str] = None
    notes: Optional[str] = None
    source: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class WardrobeItemEnvelope(BaseModel):
    item: WardrobeItemOut


class WardrobeListOut(BaseModel):
    items: List[WardrobeItemOut]
    total: int
    limit: int
    offset: int


class WardrobeDeleteOut(BaseModel):
    success: bool
    id: str


class Product(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: Optional[str] = None
    name: str = Field(min_length=1)
    image: str = Field(min_length=1)
    price: Optional[float] = None
    brand: Optional[str] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    product_url: Optional[str] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None
    in_stock: Optional[bool] = None
    source_icon: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)


class SaveProductIn(BaseModel):
    product: Product


class SaveProductOut(BaseModel):
    wardrobeItemId: str
    alreadyExists: bool
