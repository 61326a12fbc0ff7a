"""Service-level helpers for creating and moderating posts."""
from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from townsquare.db.time import utcnow
from townsquare.models import Community, Post
from townsquare.repositories.post_repo import PostRepository
from townsquare.schemas.post import PostCreate, PostUpdate
from townsquare.services.errors import NotFound, PermissionDenied
from townsquare.services.permissions import Capability, require_capability, resolve_capability
from townsquare.services.rate_limit import RateLimiter, get_rate_limiter
from townsquare.services.slugs import unique_slug

logger = logging.getLogger(__name__)


def touch_community(db: Session, community_id: int) -> None:
    """Record activity on a community."""
    db.execute(
        update(Community)
        .where(Community.id == community_id)
        .values(last_activity_at=utcnow())
    )


def _live_post(db: Session, post_id: int) -> Post:
    post = PostRepository(db).get_by_id(post_id)
    if post is None:
        raise NotFound("Post not found")
    return post


def create_post(
    db: Session,
    user_id: int,
    payload: PostCreate,
    limiter: RateLimiter | None = None,
) -> Post:
    """Create a post in a community the caller belongs to.

    Args:
        db: Active session.
        user_id: Author.
        payload: Validated title, content and community.
        limiter: Rate limiter; defaults to the configured one.

    Returns:
        The committed post.

    Raises:
        RateLimited: If the author posted within the last minute.
        PermissionDenied: If the author is not a member.
        NotFound: If the community does not exist.
    """
    (limiter or get_rate_limiter()).check("post", user_id)
    if db.get(Community, payload.community_id) is None:
        raise NotFound("Community not found")
    require_capability(
        db, user_id, payload.community_id, Capability.MEMBER,
        "You must be a member to create posts",
    )

    post = Post(
        community_id=payload.community_id,
        author_id=user_id,
        title=payload.title,
        slug=unique_slug(
            db, Post, payload.title, fallback="post", community_id=payload.community_id
        ),
        content=payload.content,
    )
    db.add(post)
    touch_community(db, payload.community_id)
    db.commit()
    db.refresh(post)
    logger.info("Post %s created in community %s", post.id, post.community_id)
    return post


def update_post(db: Session, user_id: int, post_id: int, payload: PostUpdate) -> Post:
    """Edit a post; only its author may do so."""
    post = _live_post(db, post_id)
    if post.author_id != user_id:
        raise PermissionDenied("You can only edit your own posts")
    if payload.title is not None:
        post.title = payload.title.strip()
    if payload.content is not None:
        post.content = payload.content
    post.updated_at = utcnow()
    db.commit()
    db.refresh(post)
    return post


def delete_post(db: Session, user_id: int, post_id: int) -> None:
    """Soft-delete a post as its author or as a community moderator."""
    post = _live_post(db, post_id)
    is_author = post.author_id == user_id
    if not is_author and resolve_capability(db, user_id, post.community_id) < Capability.MODERATOR:
        raise PermissionDenied("You can only delete your own posts")
    post.deleted_at = utcnow()
    post.deleted_by_id = user_id
    db.commit()
    if not is_author:
        logger.info("Moderator %s deleted post %s", user_id, post_id)


def pin_post(db: Session, user_id: int, post_id: int, is_pinned: bool) -> Post:
    """Pin or unpin a post; moderators and owners only."""
    post = _live_post(db, post_id)
    require_capability(
        db, user_id, post.community_id, Capability.MODERATOR,
        "Only moderators and owners can pin posts",
    )
    post.is_pinned = is_pinned
    db.commit()
    db.refresh(post)
    logger.info("Post %s %s by %s", post_id, "pinned" if is_pinned else "unpinned", user_id)
    return post
