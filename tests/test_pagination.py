# tests/test_pagination.py
"""Tests for cursor pagination of community feeds."""

from datetime import timedelta

import pytest

from townsquare.db.time import utcnow
from townsquare.services.feed import get_posts, get_public_posts
from townsquare.services.pagination import paginate
from townsquare.services.ranking import PostSort


def _ids(page) -> list[int]:
    return [item.id for item in page.items]


def _walk(db_session, community_id, sort, limit, user_id=None) -> list[int]:
    seen: list[int] = []
    cursor = None
    for _ in range(50):
        page = get_posts(db_session, community_id, sort, limit, cursor, user_id)
        seen.extend(_ids(page))
        if not page.has_more:
            assert page.next_cursor is None
            return seen
        assert page.next_cursor == page.items[-1].id
        cursor = page.next_cursor
    pytest.fail("pagination did not terminate")


def test_paginate_uses_extra_row_for_has_more() -> None:
    class Row:
        def __init__(self, row_id: int) -> None:
            self.id = row_id

    page = paginate([Row(5), Row(4), Row(3)], 2)
    assert [row.id for row in page.items] == [5, 4]
    assert page.has_more is True
    assert page.next_cursor == 4

    last = paginate([Row(2)], 2)
    assert last.has_more is False
    assert last.next_cursor is None


def test_exact_multiple_of_limit_does_not_report_more(
    db_session, community, owner, make_post
) -> None:
    for minutes in range(4):
        make_post(community, owner, age=timedelta(minutes=minutes))
    first = get_posts(db_session, community.id, PostSort.NEW, 2)
    assert first.has_more is True
    second = get_posts(db_session, community.id, PostSort.NEW, 2, first.next_cursor)
    assert len(second.items) == 2
    assert second.has_more is False
    assert second.next_cursor is None


@pytest.mark.parametrize("sort", list(PostSort))
def test_traversal_visits_every_post_once(
    db_session, community, owner, make_post, sort
) -> None:
    created = []
    for index in range(11):
        created.append(
            make_post(
                community,
                owner,
                vote_score=index % 4,
                age=timedelta(minutes=index * 7),
            ).id
        )
    # Same score and timestamp to force id tie-breaks.
    tie_time = utcnow() - timedelta(hours=3)
    created.append(make_post(community, owner, vote_score=1, created_at=tie_time).id)
    created.append(make_post(community, owner, vote_score=1, created_at=tie_time).id)

    seen = _walk(db_session, community.id, sort, 3)
    assert sorted(seen) == sorted(created)
    assert len(seen) == len(set(seen))


def test_new_sort_is_reverse_chronological(db_session, community, owner, make_post) -> None:
    old = make_post(community, owner, age=timedelta(hours=5))
    mid = make_post(community, owner, age=timedelta(hours=1))
    fresh = make_post(community, owner)
    page = get_posts(db_session, community.id, PostSort.NEW, 10)
    assert _ids(page) == [fresh.id, mid.id, old.id]


def test_top_sort_orders_by_score(db_session, community, owner, make_post) -> None:
    low = make_post(community, owner, vote_score=1)
    high = make_post(community, owner, vote_score=9, age=timedelta(days=3))
    middle = make_post(community, owner, vote_score=4, age=timedelta(hours=2))
    page = get_posts(db_session, community.id, PostSort.TOP, 10)
    assert _ids(page) == [high.id, middle.id, low.id]


def test_hot_sort_balances_votes_and_age(db_session, community, owner, make_post) -> None:
    stale = make_post(community, owner, vote_score=3, age=timedelta(days=2))
    rising = make_post(community, owner, vote_score=3, age=timedelta(hours=1))
    brand_new = make_post(community, owner, vote_score=0)
    page = get_posts(db_session, community.id, PostSort.HOT, 10)
    assert _ids(page) == [rising.id, brand_new.id, stale.id]


def test_pinned_posts_lead_first_page_only(db_session, community, owner, make_post) -> None:
    p1 = make_post(community, owner, is_pinned=True, age=timedelta(days=1))
    p2 = make_post(community, owner, is_pinned=True, age=timedelta(days=2))
    regular = [make_post(community, owner, age=timedelta(minutes=m)) for m in range(5)]

    first = get_posts(db_session, community.id, PostSort.NEW, 3)
    assert _ids(first) == [p1.id, p2.id, regular[0].id]
    assert first.has_more is True
    assert first.next_cursor == regular[0].id

    second = get_posts(db_session, community.id, PostSort.NEW, 3, first.next_cursor)
    assert _ids(second) == [regular[1].id, regular[2].id, regular[3].id]
    third = get_posts(db_session, community.id, PostSort.NEW, 3, second.next_cursor)
    assert _ids(third) == [regular[4].id]
    assert third.has_more is False


def test_pinned_post_fills_single_item_page(db_session, community, owner, make_post) -> None:
    hour_ago = utcnow() - timedelta(hours=1)
    p1 = make_post(community, owner, is_pinned=True, vote_score=2, created_at=hour_ago)
    p2 = make_post(community, owner, vote_score=10, created_at=hour_ago)

    first = get_posts(db_session, community.id, PostSort.HOT, 1)
    assert _ids(first) == [p1.id]
    assert first.has_more is True
    assert first.next_cursor == p1.id

    second = get_posts(db_session, community.id, PostSort.HOT, 1, first.next_cursor)
    assert _ids(second) == [p2.id]
    assert second.has_more is False


def test_cursor_naming_pinned_post_restarts_regular_sequence(
    db_session, community, owner, make_post
) -> None:
    pinned = make_post(community, owner, is_pinned=True)
    newest = make_post(community, owner, age=timedelta(minutes=1))
    older = make_post(community, owner, age=timedelta(minutes=2))
    page = get_posts(db_session, community.id, PostSort.NEW, 5, pinned.id)
    assert _ids(page) == [newest.id, older.id]


def test_soft_deleted_posts_are_hidden_but_still_anchor(
    db_session, community, owner, make_post
) -> None:
    posts = [make_post(community, owner, age=timedelta(minutes=m)) for m in range(4)]
    first = get_posts(db_session, community.id, PostSort.NEW, 2)
    cursor_post = posts[1]
    assert first.next_cursor == cursor_post.id

    cursor_post.deleted_at = utcnow()
    posts[2].deleted_at = utcnow()
    db_session.commit()

    second = get_posts(db_session, community.id, PostSort.NEW, 2, first.next_cursor)
    assert _ids(second) == [posts[3].id]
    assert posts[2].id not in _ids(get_posts(db_session, community.id, PostSort.NEW, 10))


def test_unknown_cursor_restarts_chronologically(
    db_session, community, owner, make_post
) -> None:
    older = make_post(community, owner, vote_score=10, age=timedelta(hours=3))
    newer = make_post(community, owner, vote_score=0)
    page = get_posts(db_session, community.id, PostSort.TOP, 5, 999999)
    assert _ids(page) == [newer.id, older.id]


def test_private_feed_is_empty_for_outsiders(
    db_session, private_community, owner, outsider, make_post
) -> None:
    post = make_post(private_community, owner)
    assert _ids(get_posts(db_session, private_community.id, PostSort.NEW, 5)) == []
    assert _ids(
        get_posts(db_session, private_community.id, PostSort.NEW, 5, None, outsider.id)
    ) == []
    assert _ids(
        get_posts(db_session, private_community.id, PostSort.NEW, 5, None, owner.id)
    ) == [post.id]


def test_public_feed_excludes_private_communities(
    db_session, community, private_community, owner, make_post
) -> None:
    visible = make_post(community, owner)
    make_post(private_community, owner)
    page = get_public_posts(db_session, PostSort.NEW, 10)
    assert _ids(page) == [visible.id]
