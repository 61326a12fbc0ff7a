# tests/test_comments.py
"""Tests for comment creation and nested thread assembly."""

from datetime import timedelta

import pytest

from townsquare.core.settings import settings
from townsquare.models import Comment, Post
from townsquare.schemas.comment import CommentCreate
from townsquare.services.comment_service import create_comment, delete_comment
from townsquare.services.comment_tree import get_comment_replies, get_post_comments
from townsquare.services.errors import InvalidInput, NotFound, PermissionDenied
from townsquare.services.ranking import CommentSort


@pytest.fixture()
def post(community, owner, make_post) -> Post:
    return make_post(community, owner)


@pytest.fixture()
def reply(db_session, post, no_limit):
    def _reply(user, parent: Comment | None = None, content: str = "Nice one") -> Comment:
        payload = CommentCreate(content=content, parent_id=parent.id if parent else None)
        return create_comment(db_session, user.id, post.id, payload, no_limit)

    return _reply


def test_depth_follows_parent(post, owner, member, reply) -> None:
    root = reply(owner)
    child = reply(member, root)
    grandchild = reply(owner, child)
    assert (root.depth, child.depth, grandchild.depth) == (0, 1, 2)
    assert grandchild.parent_id == child.id


def test_reply_below_maximum_depth_is_rejected(post, owner, reply) -> None:
    node = reply(owner)
    for _ in range(settings.max_comment_depth):
        node = reply(owner, node)
    assert node.depth == settings.max_comment_depth
    with pytest.raises(InvalidInput, match="Maximum reply depth"):
        reply(owner, node)


def test_outsider_cannot_comment(post, outsider, reply) -> None:
    with pytest.raises(PermissionDenied):
        reply(outsider)


def test_parent_must_belong_to_same_post(
    db_session, community, owner, make_post, reply, no_limit
) -> None:
    root = reply(owner)
    other_post = make_post(community, owner)
    with pytest.raises(NotFound):
        create_comment(
            db_session,
            owner.id,
            other_post.id,
            CommentCreate(content="Lost", parent_id=root.id),
            no_limit,
        )


def test_comment_count_tracks_live_comments(db_session, post, owner, reply) -> None:
    first = reply(owner)
    reply(owner, first)
    db_session.refresh(post)
    assert post.comment_count == 2

    delete_comment(db_session, owner.id, first.id)
    db_session.refresh(post)
    assert post.comment_count == 1


def test_tree_nests_replies_and_counts_direct_children(
    db_session, post, owner, member, reply
) -> None:
    root = reply(owner, content="Root")
    a = reply(member, root, "A")
    b = reply(owner, root, "B")
    a1 = reply(owner, a, "A1")

    page = get_post_comments(db_session, post.id, CommentSort.NEW)
    assert [node.id for node in page.items] == [root.id]
    tree = page.items[0]
    assert tree.reply_count == 2
    assert [node.id for node in tree.replies] == [b.id, a.id]
    a_node = tree.replies[1]
    assert a_node.reply_count == 1
    assert [node.id for node in a_node.replies] == [a1.id]
    assert a_node.replies[0].replies == []


def test_tree_stops_at_maximum_depth(db_session, post, owner, reply) -> None:
    node = reply(owner)
    for _ in range(settings.max_comment_depth):
        node = reply(owner, node)

    tree = get_post_comments(db_session, post.id).items[0]
    depth = 0
    while tree.replies:
        assert len(tree.replies) == 1
        tree = tree.replies[0]
        depth += 1
        assert tree.depth == depth
    assert depth == settings.max_comment_depth


def test_replies_of_other_pages_are_not_attached(db_session, post, owner, reply) -> None:
    older = reply(owner, content="Older root")
    reply(owner, older, "Reply to older")
    newer = reply(owner, content="Newer root")
    newer.created_at = older.created_at + timedelta(minutes=5)
    db_session.commit()

    first = get_post_comments(db_session, post.id, CommentSort.NEW, limit=1)
    assert [node.id for node in first.items] == [newer.id]
    assert first.items[0].replies == []
    assert first.has_more is True

    second = get_post_comments(
        db_session, post.id, CommentSort.NEW, limit=1, cursor=first.next_cursor
    )
    assert [node.id for node in second.items] == [older.id]
    assert len(second.items[0].replies) == 1


def test_deleted_comments_are_hidden_and_not_counted(
    db_session, post, owner, member, reply
) -> None:
    root = reply(owner)
    gone = reply(member, root)
    kept = reply(owner, root)
    delete_comment(db_session, member.id, gone.id)

    tree = get_post_comments(db_session, post.id).items[0]
    assert tree.reply_count == 1
    assert [node.id for node in tree.replies] == [kept.id]


def test_best_sort_puts_higher_scores_first(db_session, post, owner, reply) -> None:
    low = reply(owner, content="Low")
    high = reply(owner, content="High")
    high.vote_score = 4
    low.vote_score = -1
    db_session.commit()
    page = get_post_comments(db_session, post.id, CommentSort.BEST)
    assert [node.id for node in page.items] == [high.id, low.id]


def test_load_more_replies_returns_direct_children_only(
    db_session, post, owner, reply
) -> None:
    root = reply(owner)
    children = [reply(owner, root, f"Child {index}") for index in range(3)]
    reply(owner, children[0], "Grandchild")

    page = get_comment_replies(db_session, post.id, root.id, CommentSort.NEW, limit=2)
    assert len(page.items) == 2
    assert page.has_more is True
    rest = get_comment_replies(
        db_session, post.id, root.id, CommentSort.NEW, limit=2, cursor=page.next_cursor
    )
    seen = [node.id for node in page.items + rest.items]
    assert sorted(seen) == sorted(child.id for child in children)
    assert all(node.replies == [] for node in page.items + rest.items)


def test_moderator_may_delete_others_comment_but_member_may_not(
    db_session, post, owner, member, reply
) -> None:
    comment = reply(owner)
    with pytest.raises(PermissionDenied):
        delete_comment(db_session, member.id, comment.id)

    other = reply(member)
    delete_comment(db_session, owner.id, other.id)
    assert db_session.get(Comment, other.id).deleted_at is not None
