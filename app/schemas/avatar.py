from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Any, Dict


class AvatarMeasurements(BaseModel):
    model_config = ConfigDict(extra="allow")
    height_cm: Optional[float] = Field(None, ge=0)
    weight_kg: Optional[float] = Field(None, ge=0)
    body_shape: Optional[str] = Field(None, max_length=32)


class AvatarSaveIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    image: Optional[str] = Field(None, alias="avatarImageDataUrl")
    measurements: Optional[AvatarMeasurements] = None


class AvatarOut(BaseModel):
    id: str
    owner_id: str
    image_url: str
    height_cm: float
    weight_kg: float
    body_shape: Optional[str] = None
    measurements: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AvatarEnvelope(BaseModel):
    avatar: Optional[AvatarOut] = None


class AvatarSaveOut(BaseModel):
    success: bool = True
    avatar: AvatarOut
