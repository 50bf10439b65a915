from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Any, Dict


class LookbookCreate(BaseModel):
    title: str = Field(max_length=200)
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    is_public: bool = False

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Title is required and must be a non-empty string")
        return v

    @field_validator("description", "cover_image_url")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class LookbookUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    is_public: Optional[bool] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Title must be a non-empty string")
        return v


class LookbookOut(BaseModel):
    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    is_public: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class LookbookEnvelope(BaseModel):
    lookbook: LookbookOut


class LookbookListOut(BaseModel):
    lookbooks: List[LookbookOut]
    total: int


class LookbookDetailOut(BaseModel):
    lookbook: LookbookOut
    products: List[Dict[str, Any]]


class LookbookLinkIn(BaseModel):
    wardrobe_item_id: UUID
    category: Optional[str] = Field(None, max_length=32)
    role: Optional[str] = Field(None, max_length=32)
    note: Optional[str] = None


class LookbookLinkOut(BaseModel):
    lookbook_id: str
    wardrobe_item_id: str
    category: Optional[str] = None
    role: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[str] = None


class LookProduct(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    id: Optional[str] = None
    title: Optional[str] = None
    brand: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    role: Optional[str] = None
    product_url: Optional[str] = None
    source_data: Optional[Dict[str, Any]] = Field(None, alias="sourceData")


class SaveLookIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    title: Optional[str] = None
    products: List[LookProduct] = Field(min_length=1)
    generated_image: str = Field(alias="generatedImageBase64")


class SaveLookOut(BaseModel):
    lookbook: LookbookOut
    imageUrl: str
