"""Keyset cursor pagination shared by every listing."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, and_, or_, select
from sqlalchemy.orm import Session, aliased
from sqlalchemy.sql.elements import ColumnElement

from townsquare.services.ranking import OrderingKeys, chronological

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of a listing; ``next_cursor`` is the id of the last item."""

    items: list[T] = field(default_factory=list)
    next_cursor: int | None = None
    has_more: bool = False


def paginate(rows: Sequence[T], limit: int) -> Page[T]:
    """Trim an L+1 fetch to ``limit`` items and derive the continuation.

    Args:
        rows: Rows fetched with ``limit + 1`` in page order.
        limit: Requested page size.

    Returns:
        Page whose ``has_more`` is True only when the extra row was present.
    """
    has_more = len(rows) > limit
    items = list(rows[:limit])
    next_cursor = getattr(items[-1], "id", None) if has_more and items else None
    return Page(items=items, next_cursor=next_cursor, has_more=has_more)


def cursor_exists(db: Session, model: Any, cursor: int) -> bool:
    """Return True if the cursor id names a row, soft-deleted rows included."""
    return db.execute(select(model.id).where(model.id == cursor)).first() is not None


def keyset_after(model: Any, ordering: OrderingKeys, cursor: int) -> ColumnElement[bool]:
    """Build the predicate selecting rows strictly after the cursor row.

    All keys sort descending. The cursor row's keys are read through scalar
    subqueries on an alias so that they are evaluated by the database with
    the same expressions used in ORDER BY.
    """
    anchor = aliased(model)
    row_keys = ordering(model)
    cursor_keys = [
        select(key).where(anchor.id == cursor).scalar_subquery()
        for key in ordering(anchor)
    ]
    clauses = []
    for index, (key, cursor_key) in enumerate(zip(row_keys, cursor_keys, strict=True)):
        equal_prefix = [row_keys[i] == cursor_keys[i] for i in range(index)]
        clauses.append(and_(*equal_prefix, key < cursor_key))
    return or_(*clauses)


def apply_cursor(
    db: Session,
    stmt: Select[Any],
    model: Any,
    ordering: OrderingKeys,
    cursor: int | None,
) -> Select[Any]:
    """Order ``stmt`` and restrict it to rows after ``cursor``.

    A cursor that names no row at all drops the cursor and falls back to
    reverse-chronological order from the beginning.
    """
    if cursor is not None and not cursor_exists(db, model, cursor):
        ordering = chronological
        cursor = None
    if cursor is not None:
        stmt = stmt.where(keyset_after(model, ordering, cursor))
    return stmt.order_by(*(key.desc() for key in ordering(model)))


def fetch_page(
    db: Session,
    stmt: Select[Any],
    model: Any,
    ordering: OrderingKeys,
    limit: int,
    cursor: int | None = None,
) -> Page[Any]:
    """Run ``stmt`` as an L+1 keyset query and return the page."""
    ordered = apply_cursor(db, stmt, model, ordering, cursor).limit(limit + 1)
    rows = db.execute(ordered).scalars().all()
    return paginate(rows, limit)
