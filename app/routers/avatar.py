import asyncio
import logging
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.access.policy import Principal
from app.access.repository import OwnedRepository
from app.auth.deps import get_principal, get_scoped_session
from app.core.config import settings
from app.core.db import bind_principal
from app.core.errors import NotFoundOrForbidden, UpstreamFailure, ValidationFailed
from app.core.timestamps import iso
from app.models.models import Avatar
from app.schemas.avatar import AvatarEnvelope, AvatarOut, AvatarSaveIn, AvatarSaveOut
from app.storage import objects
from app.storage.keys import avatar_key

router = APIRouter(prefix="/avatar", tags=["avatar"])
logger = logging.getLogger("uvicorn.error")

AVATAR_FIELDS = ("image_url", "height_cm", "weight_kg", "body_shape", "measurements")


class AvatarRepository(OwnedRepository[Avatar]):
    """One avatar per principal, addressed by the owner id."""

    not_found = "Avatar not found"

    def __init__(self, session: AsyncSession, principal: Principal):
        super().__init__(Avatar, session, principal, writable=AVATAR_FIELDS, id_column="owner_id")

    async def upsert(self, values: dict) -> Avatar:
        try:
            await self.get_owned(self.principal.id)
        except NotFoundOrForbidden:
            return await self.create(values)
        return await self.update(self.principal.id, values)


def _avatar_out(a: Avatar) -> AvatarOut:
    return AvatarOut(
        id=str(a.id),
        owner_id=str(a.owner_id),
        image_url=a.image_url,
        height_cm=a.height_cm,
        weight_kg=a.weight_kg,
        body_shape=a.body_shape,
        measurements=a.measurements,
        created_at=iso(a.created_at),
        updated_at=iso(a.updated_at),
    )


@router.get("", response_model=AvatarEnvelope)
async def get_avatar(
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    try:
        avatar = await AvatarRepository(session, principal).get_owned(principal.id)
    except NotFoundOrForbidden:
        return AvatarEnvelope(avatar=None)
    return AvatarEnvelope(avatar=_avatar_out(avatar))


@router.post("", response_model=AvatarSaveOut)
async def save_avatar(
    payload: AvatarSaveIn,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    if not payload.image:
        raise ValidationFailed("Avatar image is required")
    m = payload.measurements
    if m is None:
        raise ValidationFailed("Measurements are required")
    if not m.height_cm or not m.weight_kg:
        raise ValidationFailed("Height and weight are required measurements")

    try:
        mime, blob = objects.decode_data_url(payload.image)
    except ValueError:
        raise ValidationFailed("Avatar image must be a valid base64 data URL", code="invalid_image")
    if not mime.startswith("image/"):
        mime = "image/png"
    if len(blob) > settings.MAX_IMAGE_BYTES:
        raise ValidationFailed("Image size must be less than 10MB", code="file_too_large")

    if not objects.storage_enabled():
        raise UpstreamFailure("Failed to upload avatar image")
    key = avatar_key(principal.id)
    try:
        image_url = await asyncio.to_thread(objects.put_object, key, blob, mime)
    except (BotoCoreError, ClientError) as e:
        logger.error("avatar: upload failed key=%s reason=%s", key, e)
        raise UpstreamFailure("Failed to upload avatar image")

    values = {
        "image_url": image_url,
        "height_cm": m.height_cm,
        "weight_kg": m.weight_kg,
        "body_shape": m.body_shape,
        "measurements": m.model_dump(exclude_none=True),
    }
    repo = AvatarRepository(session, principal)
    try:
        avatar = await repo.upsert(values)
        await session.commit()
    except IntegrityError:
        # a concurrent first save won the insert
        await session.rollback()
        await bind_principal(session, principal.id)
        avatar = await repo.update(principal.id, values)
        await session.commit()
    logger.info("avatar: saved user=%s", principal.id)
    return AvatarSaveOut(avatar=_avatar_out(avatar))
