"""Store-level row policy enforced inside the ORM session.

This mirrors the Postgres RLS policies from the migrations so that the
boundary also holds on databases without RLS. It is keyed on the principal
bound to the session (``app.core.db.bind_principal``) and does nothing for
sessions without one, e.g. the auth endpoints.

- every ORM SELECT only sees threads/lookbooks that are owned or public and
  wardrobe items that are owned;
- a flush that would insert, update or delete a row owned by someone else is
  refused.

Queries that reach wardrobe items through a lookbook set the execution option
``row_policy="via_lookbook"``: item rows are then also admitted when they are
linked into a lookbook the principal may see.

Links are checked through their ``lookbook``/``item`` relationships; a link
built from bare ids has its ends loaded by primary key before the check.
"""
import logging

from sqlalchemy import event, exists, or_, true
from sqlalchemy.orm import Session, with_loader_criteria

from app.core.errors import NotFoundOrForbidden
from app.models.models import Avatar, Lookbook, LookbookItem, OwnedMixin, Thread, WardrobeItem

logger = logging.getLogger("uvicorn.error")

VIA_LOOKBOOK = "via_lookbook"

SHAREABLE = (Thread, Lookbook)
PRIVATE = (Avatar,)


class RowPolicyViolation(NotFoundOrForbidden):
    code = "row_policy"


def _principal_id(session: Session):
    return session.info.get("principal_id")


def _shareable_criteria(model, uid):
    return with_loader_criteria(
        model,
        lambda cls: or_(cls.owner_id == uid, cls.is_public == true()),
        include_aliases=True,
    )


def _owned_criteria(model, uid):
    return with_loader_criteria(model, lambda cls: cls.owner_id == uid, include_aliases=True)


def _linked_item_criteria(uid):
    return with_loader_criteria(
        WardrobeItem,
        lambda cls: or_(
            cls.owner_id == uid,
            exists()
            .where(LookbookItem.wardrobe_item_id == cls.id)
            .where(Lookbook.id == LookbookItem.lookbook_id)
            .where(or_(Lookbook.owner_id == uid, Lookbook.is_public == true())),
        ),
        include_aliases=True,
    )


def _add_row_criteria(state) -> None:
    uid = _principal_id(state.session)
    if uid is None:
        return
    if not state.is_select or state.is_column_load or state.is_relationship_load:
        return
    options = [_shareable_criteria(model, uid) for model in SHAREABLE]
    options.extend(_owned_criteria(model, uid) for model in PRIVATE)
    if state.execution_options.get("row_policy") == VIA_LOOKBOOK:
        options.append(_linked_item_criteria(uid))
    else:
        options.append(_owned_criteria(WardrobeItem, uid))
    state.statement = state.statement.options(*options)


def _owner_of(obj) -> str:
    return str(obj.owner_id) if obj.owner_id is not None else ""


def _link_ends(session: Session, link: LookbookItem):
    lookbook, item = link.lookbook, link.item
    # ends the principal cannot see load as None and are refused below
    if lookbook is None and link.lookbook_id is not None:
        lookbook = session.get(Lookbook, link.lookbook_id)
    if item is None and link.wardrobe_item_id is not None:
        item = session.get(WardrobeItem, link.wardrobe_item_id)
    return lookbook, item


def _guard_flush(session: Session, flush_context, instances) -> None:
    uid = _principal_id(session)
    if uid is None:
        return
    for obj in list(session.new) + list(session.dirty) + list(session.deleted):
        if isinstance(obj, OwnedMixin) and _owner_of(obj) != uid:
            logger.warning("row policy refused %s write principal=%s", type(obj).__name__, uid)
            raise RowPolicyViolation()
        if isinstance(obj, LookbookItem) and obj in session.new:
            for end in _link_ends(session, obj):
                if end is None or _owner_of(end) != uid:
                    logger.warning("row policy refused link write principal=%s", uid)
                    raise RowPolicyViolation()


def install_row_policy() -> None:
    if not event.contains(Session, "do_orm_execute", _add_row_criteria):
        event.listen(Session, "do_orm_execute", _add_row_criteria)
    if not event.contains(Session, "before_flush", _guard_flush):
        event.listen(Session, "before_flush", _guard_flush)
