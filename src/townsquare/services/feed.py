"""Post feeds and single-post reads."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from townsquare.core.settings import settings
from townsquare.models import Community, CommunityVisibility, Post
from townsquare.repositories.post_repo import PostRepository
from townsquare.schemas.post import PostOut
from townsquare.schemas.user import UserSummary
from townsquare.services.pagination import Page, apply_cursor, fetch_page, paginate
from townsquare.services.permissions import Capability, resolve_capability
from townsquare.services.ranking import PostSort, post_ordering


def clamp_limit(limit: int | None, default: int | None = None) -> int:
    """Bound a requested page size to ``1..FEED_MAX_LIMIT``."""
    if limit is None:
        limit = default if default is not None else settings.feed_default_limit
    return max(1, min(limit, settings.feed_max_limit))


def to_post_outs(db: Session, posts: Sequence[Post], user_id: int | None) -> list[PostOut]:
    """Attach author, author role and the caller's vote to each post."""
    repo = PostRepository(db)
    authors = repo.authors(post.author_id for post in posts)
    roles = repo.author_roles((post.community_id, post.author_id) for post in posts)
    votes = repo.user_votes(user_id, (post.id for post in posts))
    results = []
    for post in posts:
        author = authors.get(post.author_id)
        out = PostOut.model_validate(post)
        out.author = UserSummary.model_validate(author) if author is not None else None
        out.author_role = roles.get((post.community_id, post.author_id))
        out.user_vote = votes.get(post.id, 0)
        results.append(out)
    return results


def _as_outs(db: Session, page: Page[Post], user_id: int | None) -> Page[PostOut]:
    return Page(
        items=to_post_outs(db, page.items, user_id),
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


def can_view_community(db: Session, community: Community, user_id: int | None) -> bool:
    """Private communities are visible to members only."""
    if community.visibility == CommunityVisibility.PUBLIC:
        return True
    return resolve_capability(db, user_id, community.id) >= Capability.MEMBER


def get_posts(
    db: Session,
    community_id: int,
    sort: PostSort = PostSort.HOT,
    limit: int | None = None,
    cursor: int | None = None,
    user_id: int | None = None,
) -> Page[PostOut]:
    """Return one page of a community feed.

    The first page lists every pinned post ahead of the regular posts; later
    pages contain regular posts only. A cursor naming a pinned post resumes at
    the start of the regular sequence.

    Args:
        db: Active session.
        community_id: Community whose feed is requested.
        sort: ``hot``, ``new`` or ``top``.
        limit: Page size, clamped to the configured maximum.
        cursor: Id of the last post of the previous page.
        user_id: Caller, used for private communities and ``user_vote``.

    Returns:
        The page; empty for unknown communities and for private communities
        the caller does not belong to.
    """
    limit = clamp_limit(limit)
    community = db.get(Community, community_id)
    if community is None or not can_view_community(db, community, user_id):
        return Page()

    ordering = post_ordering(sort)
    live = select(Post).where(Post.community_id == community_id, Post.deleted_at.is_(None))
    regular = live.where(Post.is_pinned.is_(False))

    if cursor is None:
        pinned_stmt = apply_cursor(db, live.where(Post.is_pinned.is_(True)), Post, ordering, None)
        pinned = list(db.execute(pinned_stmt).scalars())
        regular_stmt = apply_cursor(db, regular, Post, ordering, None).limit(limit + 1)
        rows = pinned + list(db.execute(regular_stmt).scalars())
        return _as_outs(db, paginate(rows, limit), user_id)

    anchor = db.get(Post, cursor)
    if anchor is not None and anchor.is_pinned:
        cursor = None
    page = fetch_page(db, regular, Post, ordering, limit, cursor)
    return _as_outs(db, page, user_id)


def get_public_posts(
    db: Session,
    sort: PostSort = PostSort.HOT,
    limit: int | None = None,
    cursor: int | None = None,
    user_id: int | None = None,
) -> Page[PostOut]:
    """Return posts from every public community without pinned interleave."""
    limit = clamp_limit(limit)
    stmt = (
        select(Post)
        .join(Community, Community.id == Post.community_id)
        .where(
            Community.visibility == CommunityVisibility.PUBLIC,
            Post.deleted_at.is_(None),
        )
    )
    page = fetch_page(db, stmt, Post, post_ordering(sort), limit, cursor)
    return _as_outs(db, page, user_id)


def get_post_by_id(db: Session, post_id: int, user_id: int | None = None) -> PostOut | None:
    """Return a live post, or None when it is missing, deleted or not visible."""
    post = PostRepository(db).get_by_id(post_id)
    return _visible_post(db, post, user_id)


def get_post_by_slug(
    db: Session, community_slug: str, post_slug: str, user_id: int | None = None
) -> PostOut | None:
    """Return a live post addressed by community slug and post slug."""
    post = PostRepository(db).get_by_slug(community_slug, post_slug)
    return _visible_post(db, post, user_id)


def _visible_post(db: Session, post: Post | None, user_id: int | None) -> PostOut | None:
    if post is None:
        return None
    community = db.get(Community, post.community_id)
    if community is None or not can_view_community(db, community, user_id):
        return None
    return to_post_outs(db, [post], user_id)[0]
