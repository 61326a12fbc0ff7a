"""Nested comment thread assembly."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from townsquare.core.settings import settings
from townsquare.models import Comment, Post
from townsquare.repositories.comment_repo import CommentRepository
from townsquare.repositories.post_repo import PostRepository
from townsquare.schemas.comment import CommentOut
from townsquare.schemas.user import UserSummary
from townsquare.services.pagination import Page, fetch_page
from townsquare.services.ranking import CommentSort, comment_ordering, sort_key


MAX_COMMENT_PAGE = 100


def _clamp(limit: int | None, default: int) -> int:
    if limit is None:
        limit = default
    return max(1, min(limit, MAX_COMMENT_PAGE))


def _to_nodes(
    db: Session,
    post: Post,
    comments: Sequence[Comment],
    user_id: int | None,
) -> dict[int, CommentOut]:
    """Build detached comment nodes with counts, authors and the caller's votes."""
    comment_repo = CommentRepository(db)
    post_repo = PostRepository(db)
    ids = [comment.id for comment in comments]
    counts = comment_repo.reply_counts(ids)
    votes = comment_repo.user_votes(user_id, ids)
    authors = post_repo.authors(comment.author_id for comment in comments)
    roles = post_repo.author_roles((post.community_id, c.author_id) for c in comments)

    nodes: dict[int, CommentOut] = {}
    for comment in comments:
        node = CommentOut.model_validate(comment)
        author = authors.get(comment.author_id)
        node.author = UserSummary.model_validate(author) if author is not None else None
        node.author_role = roles.get((post.community_id, comment.author_id))
        node.user_vote = votes.get(comment.id, 0)
        node.reply_count = counts.get(comment.id, 0)
        node.replies = []
        nodes[comment.id] = node
    return nodes


def get_post_comments(
    db: Session,
    post_id: int,
    sort: CommentSort = CommentSort.BEST,
    user_id: int | None = None,
    limit: int | None = None,
    cursor: int | None = None,
) -> Page[CommentOut]:
    """Return a page of top-level comments with their reply trees attached.

    Top-level comments are paginated. All live replies of the post down to
    ``MAX_COMMENT_DEPTH`` are then fetched in one query and attached only
    where their parent is already part of the page, walking shallow
    comments first so that each level sees its parents.

    Args:
        db: Active session.
        post_id: Post whose thread is requested.
        sort: ``best`` or ``new``; applies to every level of the tree.
        user_id: Caller, used for ``user_vote``.
        limit: Number of top-level comments per page.
        cursor: Id of the last top-level comment of the previous page.

    Returns:
        Page of root nodes; empty when the post does not exist or is deleted.
    """
    limit = _clamp(limit, settings.comments_default_limit)
    post = PostRepository(db).get_by_id(post_id)
    if post is None:
        return Page()

    roots_stmt = select(Comment).where(
        Comment.post_id == post_id,
        Comment.parent_id.is_(None),
        Comment.deleted_at.is_(None),
    )
    page = fetch_page(db, roots_stmt, Comment, comment_ordering(sort), limit, cursor)
    if not page.items:
        return Page(items=[], next_cursor=page.next_cursor, has_more=page.has_more)

    reachable = {comment.id for comment in page.items}
    kept: list[Comment] = []
    for reply in CommentRepository(db).replies_for_post(post_id, settings.max_comment_depth):
        if reply.parent_id in reachable:
            reachable.add(reply.id)
            kept.append(reply)

    nodes = _to_nodes(db, post, list(page.items) + kept, user_id)
    children: dict[int, list[Comment]] = {}
    for reply in kept:
        children.setdefault(reply.parent_id, []).append(reply)  # type: ignore[arg-type]
    key = sort_key(sort)
    for parent_id, replies in children.items():
        replies.sort(key=key, reverse=True)
        nodes[parent_id].replies = [nodes[reply.id] for reply in replies]

    return Page(
        items=[nodes[comment.id] for comment in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


def get_comment_replies(
    db: Session,
    post_id: int,
    parent_id: int,
    sort: CommentSort = CommentSort.BEST,
    user_id: int | None = None,
    limit: int | None = None,
    cursor: int | None = None,
) -> Page[CommentOut]:
    """Return a page of direct replies to one comment without deeper levels."""
    limit = _clamp(limit, settings.replies_default_limit)
    post = PostRepository(db).get_by_id(post_id)
    if post is None:
        return Page()

    stmt = select(Comment).where(
        Comment.post_id == post_id,
        Comment.parent_id == parent_id,
        Comment.deleted_at.is_(None),
    )
    page = fetch_page(db, stmt, Comment, comment_ordering(sort), limit, cursor)
    nodes = _to_nodes(db, post, page.items, user_id)
    return Page(
        items=[nodes[comment.id] for comment in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )
