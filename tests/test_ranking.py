# tests/test_ranking.py
"""Tests for hot scoring and sort orderings."""

from datetime import UTC, datetime, timedelta

from townsquare.core.settings import settings
from townsquare.services.ranking import CommentSort, hot_score, sort_key

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def test_hot_score_is_votes_for_brand_new_post() -> None:
    assert hot_score(7, NOW, now=NOW) == 7


def test_hot_score_loses_one_point_per_decay_period() -> None:
    created = NOW - timedelta(seconds=settings.hot_decay_seconds)
    assert hot_score(3, created, now=NOW) == 2


def test_newer_post_outranks_older_post_with_same_votes() -> None:
    older = hot_score(5, NOW - timedelta(hours=6), now=NOW)
    newer = hot_score(5, NOW - timedelta(hours=1), now=NOW)
    assert newer > older


def test_votes_can_outweigh_age() -> None:
    popular_old = hot_score(10, NOW - timedelta(hours=4), now=NOW)
    quiet_new = hot_score(0, NOW, now=NOW)
    assert popular_old > quiet_new


def test_naive_timestamps_are_treated_as_utc() -> None:
    naive = datetime(2026, 3, 1, 10, 0)
    aware = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)
    assert hot_score(1, naive, now=NOW) == hot_score(1, aware, now=NOW)


class _Row:
    def __init__(self, row_id: int, vote_score: int, created_at: datetime) -> None:
        self.id = row_id
        self.vote_score = vote_score
        self.created_at = created_at


def test_best_sort_key_orders_by_score_then_recency_then_id() -> None:
    rows = [
        _Row(1, 2, NOW - timedelta(minutes=5)),
        _Row(2, 5, NOW - timedelta(hours=2)),
        _Row(3, 2, NOW),
        _Row(4, 2, NOW),
    ]
    ordered = sorted(rows, key=sort_key(CommentSort.BEST), reverse=True)
    assert [row.id for row in ordered] == [2, 4, 3, 1]


def test_new_sort_key_ignores_score() -> None:
    rows = [_Row(1, 50, NOW - timedelta(days=1)), _Row(2, -3, NOW)]
    ordered = sorted(rows, key=sort_key(CommentSort.NEW), reverse=True)
    assert [row.id for row in ordered] == [2, 1]
