import logging
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.access import policy
from app.access.policy import Principal
from app.access.repository import OwnedRepository
from app.auth.deps import get_principal, get_principal_optional, get_scoped_session
from app.core.db import bind_principal, get_session
from app.core.errors import NotFoundOrForbidden, Unauthenticated, ValidationFailed
from app.core.timestamps import iso
from app.models.models import Thread
from app.schemas.threads import (
    ThreadAccess,
    ThreadCreate,
    ThreadEnvelope,
    ThreadListOut,
    ThreadOut,
    ThreadUpdate,
    ThreadValidateOut,
)

router = APIRouter(prefix="/threads", tags=["threads"])
logger = logging.getLogger("uvicorn.error")

THREAD_NOT_FOUND = "Thread not found or access denied"


class ThreadRepository(OwnedRepository[Thread]):
    not_found = THREAD_NOT_FOUND

    def __init__(self, session: AsyncSession, principal: Principal):
        super().__init__(Thread, session, principal, writable=("name", "is_public"), id_column="thread_id")


def _thread_out(t: Thread) -> ThreadOut:
    return ThreadOut(
        thread_id=t.thread_id,
        owner_id=str(t.owner_id),
        name=t.name,
        is_public=bool(t.is_public),
        metadata=t.thread_metadata,
        created_at=iso(t.created_at),
        updated_at=iso(t.updated_at),
    )


@router.get("", response_model=ThreadListOut)
async def list_threads(
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    threads = await ThreadRepository(session, principal).list(own_only=True)
    logger.info("threads: found %d for user=%s", len(threads), principal.id)
    return ThreadListOut(threads=[_thread_out(t) for t in threads])


@router.post("", response_model=ThreadEnvelope, status_code=201)
async def create_thread(
    payload: ThreadCreate,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    values = {"name": payload.name, "is_public": payload.is_public, "thread_metadata": payload.metadata}
    if payload.thread_id:
        values["thread_id"] = payload.thread_id
    try:
        thread = await ThreadRepository(session, principal).create(values)
    except IntegrityError:
        await session.rollback()
        raise ValidationFailed("Thread id already registered", fields=[{"field": "thread_id", "message": "already registered"}])
    await session.commit()
    return ThreadEnvelope(thread=_thread_out(thread))


@router.get("/validate/{thread_id}", response_model=ThreadValidateOut)
async def validate_thread(
    thread_id: str,
    session: AsyncSession = Depends(get_session),
    principal: Optional[Principal] = Depends(get_principal_optional),
):
    if principal is None:
        raise Unauthenticated(extra={"exists": False})
    await bind_principal(session, principal.id)
    try:
        thread = await ThreadRepository(session, principal).get(thread_id)
    except NotFoundOrForbidden:
        raise NotFoundOrForbidden(THREAD_NOT_FOUND, extra={"exists": False})
    return ThreadValidateOut(
        exists=True,
        thread=ThreadAccess(
            thread_id=thread.thread_id,
            is_owner=policy.can_write(thread, principal),
            is_public=bool(thread.is_public),
        ),
    )


@router.patch("/{thread_id}", response_model=ThreadEnvelope)
async def update_thread(
    thread_id: str,
    payload: ThreadUpdate,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("is_public") is None:
        changes.pop("is_public", None)
    thread = await ThreadRepository(session, principal).update(thread_id, changes)
    await session.commit()
    return ThreadEnvelope(thread=_thread_out(thread))


@router.delete("/{thread_id}")
async def delete_thread(
    thread_id: str,
    session: AsyncSession = Depends(get_scoped_session),
    principal: Principal = Depends(get_principal),
):
    await ThreadRepository(session, principal).delete(thread_id)
    await session.commit()
    # checkpoints stay on the agent server; without the row they are unreachable
    return {"success": True}
