"""Ownership-scoped CRUD over owned models.

Reads go through the visibility predicate, writes through the ownership
predicate. A row that fails either predicate is reported as not found.
"""
from typing import Any, Generic, Iterable, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.access import policy
from app.access.policy import Principal
from app.core.errors import NotFoundOrForbidden
from app.core.timestamps import next_stamp, utcnow

ModelType = TypeVar("ModelType")


class OwnedRepository(Generic[ModelType]):
    """CRUD primitives for one owned model.

    ``writable`` names the columns an owner may change through ``update``;
    ownership, ids and timestamps are never among them.
    """

    not_found = "Not found"

    def __init__(
        self,
        model: Type[ModelType],
        session: AsyncSession,
        principal: Principal,
        *,
        writable: Iterable[str],
        id_column: str = "id",
        default_order: Optional[Sequence[Any]] = None,
    ):
        self.model = model
        self.session = session
        self.principal = principal
        self.writable = frozenset(writable)
        self.id_column = getattr(model, id_column)
        self.default_order = default_order or [model.updated_at.desc()]

    def _missing(self) -> NotFoundOrForbidden:
        return NotFoundOrForbidden(self.not_found)

    def _scope(self, own_only: bool):
        if own_only:
            return policy.owned(self.model, self.principal)
        return policy.visible(self.model, self.principal)

    async def list(
        self,
        *conditions,
        own_only: bool = False,
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[ModelType]:
        q = select(self.model).where(self._scope(own_only), *conditions).order_by(*(order_by or self.default_order))
        if limit is not None:
            q = q.limit(limit)
        if offset:
            q = q.offset(offset)
        res = await self.session.execute(q)
        return list(res.scalars().all())

    async def count(self, *conditions, own_only: bool = False) -> int:
        q = select(func.count()).select_from(self.model).where(self._scope(own_only), *conditions)
        res = await self.session.execute(q)
        return int(res.scalar_one() or 0)

    async def get(self, record_id: Any) -> ModelType:
        q = select(self.model).where(self.id_column == record_id, policy.visible(self.model, self.principal))
        res = await self.session.execute(q)
        row = res.scalar_one_or_none()
        if row is None:
            raise self._missing()
        return row

    async def get_owned(self, record_id: Any) -> ModelType:
        q = select(self.model).where(self.id_column == record_id, policy.owned(self.model, self.principal))
        res = await self.session.execute(q)
        row = res.scalar_one_or_none()
        if row is None:
            raise self._missing()
        return row

    async def create(self, values: dict[str, Any]) -> ModelType:
        now = utcnow()
        data = {k: v for k, v in values.items() if k not in ("owner_id", "created_at", "updated_at")}
        row = self.model(**data)
        row.owner_id = self.principal.id
        row.created_at = now
        row.updated_at = now
        self.session.add(row)
        await self.session.flush()
        return row

    async def update(self, record_id: Any, changes: dict[str, Any]) -> ModelType:
        row = await self.get_owned(record_id)
        for field, value in changes.items():
            if field in self.writable:
                setattr(row, field, value)
        row.updated_at = next_stamp(row.updated_at)
        await self.session.flush()
        return row

    async def delete(self, record_id: Any) -> ModelType:
        row = await self.get_owned(record_id)
        await self.session.delete(row)
        await self.session.flush()
        return row
