"""Application-level access predicates.

Read access: the row belongs to the principal, or the row is public.
Write access (update/delete): the row belongs to the principal, whatever its
public flag says. Models without ``is_public`` are always owner-private.

These predicates shape queries and 404s; the store-level row policy is a
separate check underneath them.
"""
from dataclasses import dataclass
from typing import Any

from sqlalchemy import or_, true
from sqlalchemy.sql.elements import ColumnElement


@dataclass(frozen=True)
class Principal:
    id: str


def is_shareable(model: Any) -> bool:
    return hasattr(model, "is_public")


def visible(model: Any, principal: Principal) -> ColumnElement[bool]:
    if is_shareable(model):
        return or_(model.owner_id == principal.id, model.is_public == true())
    return model.owner_id == principal.id


def owned(model: Any, principal: Principal) -> ColumnElement[bool]:
    return model.owner_id == principal.id


def can_read(row: Any, principal: Principal) -> bool:
    if str(row.owner_id) == principal.id:
        return True
    return bool(getattr(row, "is_public", False))


def can_write(row: Any, principal: Principal) -> bool:
    return str(row.owner_id) == principal.id
