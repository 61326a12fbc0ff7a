"""Service-level helpers for writing comments."""
from __future__ import annotations

from sqlalchemy.orm import Session

from townsquare.core.settings import settings
from townsquare.db.time import utcnow
from townsquare.models import Comment
from townsquare.repositories.comment_repo import CommentRepository
from townsquare.repositories.post_repo import PostRepository
from townsquare.schemas.comment import CommentCreate
from townsquare.services.errors import InvalidInput, NotFound, PermissionDenied
from townsquare.services.permissions import Capability, require_capability, resolve_capability
from townsquare.services.post_service import touch_community
from townsquare.services.rate_limit import RateLimiter, get_rate_limiter


def create_comment(
    db: Session,
    user_id: int,
    post_id: int,
    payload: CommentCreate,
    limiter: RateLimiter | None = None,
) -> Comment:
    """Add a comment to a post, optionally as a reply.

    The new comment sits one level below its parent. The post's
    ``comment_count`` and the community's activity timestamp are updated
    in the same transaction as the insert.

    Raises:
        RateLimited: If the caller is commenting too quickly.
        NotFound: If the post or the parent comment is missing.
        PermissionDenied: If the caller is not a member.
        InvalidInput: If the reply would exceed the maximum depth.
    """
    (limiter or get_rate_limiter()).check("comment", user_id)
    posts = PostRepository(db)
    post = posts.get_by_id(post_id)
    if post is None:
        raise NotFound("Post not found")
    require_capability(
        db, user_id, post.community_id, Capability.MEMBER, "You must be a member to comment"
    )

    depth = 0
    if payload.parent_id is not None:
        parent = CommentRepository(db).get_live(payload.parent_id)
        if parent is None or parent.post_id != post_id:
            raise NotFound("Parent comment not found")
        depth = parent.depth + 1
        if depth > settings.max_comment_depth:
            raise InvalidInput("Maximum reply depth reached. Please reply to a higher comment.")

    comment = Comment(
        post_id=post_id,
        author_id=user_id,
        parent_id=payload.parent_id,
        content=payload.content,
        depth=depth,
    )
    db.add(comment)
    posts.adjust_comment_count(post_id, 1)
    touch_community(db, post.community_id)
    db.commit()
    db.refresh(comment)
    return comment


def update_comment(db: Session, user_id: int, comment_id: int, content: str) -> Comment:
    """Edit a comment; only its author may do so."""
    comment = CommentRepository(db).get_live(comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    if comment.author_id != user_id:
        raise PermissionDenied("You can only edit your own comments")
    comment.content = content
    comment.updated_at = utcnow()
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, user_id: int, comment_id: int) -> None:
    """Soft-delete a comment as its author or as a moderator."""
    comment = CommentRepository(db).get_live(comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    posts = PostRepository(db)
    post = posts.get_by_id(comment.post_id, include_deleted=True)
    community_id = post.community_id if post is not None else None
    if comment.author_id != user_id and (
        community_id is None
        or resolve_capability(db, user_id, community_id) < Capability.MODERATOR
    ):
        raise PermissionDenied("You can only delete your own comments")
    comment.deleted_at = utcnow()
    posts.adjust_comment_count(comment.post_id, -1)
    db.commit()
