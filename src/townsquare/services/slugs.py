"""URL slug generation."""

from __future__ import annotations

import re
import time
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

MAX_SLUG_LENGTH = 300

_STRIP = re.compile(r"[^a-z0-9\s_-]")
_SEPARATORS = re.compile(r"[\s_-]+")


def slugify(text: str) -> str:
    """Lowercase ``text`` and collapse everything but letters and digits into hyphens."""
    lowered = _STRIP.sub("", text.lower().strip())
    return _SEPARATORS.sub("-", lowered).strip("-")


def unique_slug(
    db: Session,
    model: Any,
    text: str,
    *,
    fallback: str,
    community_id: int | None = None,
    exclude_id: int | None = None,
) -> str:
    """Return a slug for ``text`` not yet used by ``model``.

    Tries the bare slug, then ``-2`` through ``-100``, then a millisecond
    timestamp suffix. When ``community_id`` is given, uniqueness is scoped to
    that community.

    Args:
        db: Active session.
        model: Mapped class with a ``slug`` column.
        text: Title or name to derive the slug from.
        fallback: Slug used when ``text`` yields nothing.
        community_id: Optional community scope.
        exclude_id: Row to ignore, used when renaming.

    Returns:
        A slug free at the time of the check.
    """
    base = (slugify(text) or fallback)[:MAX_SLUG_LENGTH]

    def taken(candidate: str) -> bool:
        stmt = select(model.id).where(model.slug == candidate)
        if community_id is not None:
            stmt = stmt.where(model.community_id == community_id)
        if exclude_id is not None:
            stmt = stmt.where(model.id != exclude_id)
        return db.execute(stmt.limit(1)).first() is not None

    if not taken(base):
        return base
    for counter in range(2, 101):
        candidate = f"{base}-{counter}"
        if not taken(candidate):
            return candidate
    return f"{base}-{int(time.time() * 1000)}"
