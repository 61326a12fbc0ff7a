"""Hot score and sort orderings for posts and comments."""

from __future__ import annotations

import enum
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy import Float
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql import expression
from sqlalchemy.sql.elements import ColumnElement

from townsquare.core.settings import settings
from townsquare.db.time import ensure_utc, utcnow

OrderingKeys = Callable[[Any], list[ColumnElement[Any]]]


class PostSort(str, enum.Enum):
    """Feed orderings."""

    HOT = "hot"
    NEW = "new"
    TOP = "top"


class CommentSort(str, enum.Enum):
    """Comment thread orderings."""

    BEST = "best"
    NEW = "new"


class epoch(expression.FunctionElement[float]):  # noqa: N801
    """Seconds since the Unix epoch of a timestamp column."""

    type = Float()
    name = "epoch"
    inherit_cache = True


@compiles(epoch)
def _compile_epoch(element: epoch, compiler: Any, **kw: Any) -> str:
    return "CAST(EXTRACT(EPOCH FROM %s) AS DOUBLE PRECISION)" % compiler.process(
        element.clauses, **kw
    )


@compiles(epoch, "sqlite")
def _compile_epoch_sqlite(element: epoch, compiler: Any, **kw: Any) -> str:
    return "((julianday(%s) - 2440587.5) * 86400.0)" % compiler.process(element.clauses, **kw)


def hot_score(vote_score: int, created_at: datetime, now: datetime | None = None) -> float:
    """Score a post by votes minus a linear age penalty.

    One point of score is worth ``HOT_DECAY_SECONDS`` of age, so with the
    default decay a post loses half a point per hour.

    Args:
        vote_score: Cached sum of the post's vote values.
        created_at: Creation time of the post.
        now: Reference instant; defaults to the current time.

    Returns:
        The hot score at ``now``.
    """
    reference = utcnow() if now is None else ensure_utc(now)
    age_seconds = (reference - ensure_utc(created_at)).total_seconds()
    return vote_score - age_seconds / settings.hot_decay_seconds


def hot_rank(entity: Any) -> ColumnElement[float]:
    """Time-invariant SQL key that orders rows exactly like ``hot_score``.

    ``hot_score`` differs from this expression only by ``epoch(now) / K``,
    which is the same for every row at a given instant.
    """
    return entity.vote_score + epoch(entity.created_at) / settings.hot_decay_seconds


def chronological(entity: Any) -> list[ColumnElement[Any]]:
    return [entity.created_at, entity.id]


def post_ordering(sort: PostSort) -> OrderingKeys:
    """Return the descending key list for a feed sort; ``id`` breaks ties."""
    if sort == PostSort.NEW:
        return chronological
    if sort == PostSort.TOP:
        return lambda entity: [entity.vote_score, entity.created_at, entity.id]
    return lambda entity: [hot_rank(entity), entity.id]


def comment_ordering(sort: CommentSort) -> OrderingKeys:
    """Return the descending key list for a comment sort."""
    if sort == CommentSort.NEW:
        return chronological
    return lambda entity: [entity.vote_score, entity.created_at, entity.id]


def sort_key(sort: CommentSort) -> Callable[[Any], tuple[Any, ...]]:
    """Python-side key matching ``comment_ordering`` for use with ``sorted(reverse=True)``."""
    if sort == CommentSort.NEW:
        return lambda row: (ensure_utc(row.created_at), row.id)
    return lambda row: (row.vote_score, ensure_utc(row.created_at), row.id)
