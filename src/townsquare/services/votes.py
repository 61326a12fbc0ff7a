"""Vote upserts that keep cached scores in step with vote rows."""
from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from townsquare.models import CommentVote, PostVote
from townsquare.repositories.comment_repo import CommentRepository
from townsquare.repositories.post_repo import PostRepository
from townsquare.schemas.vote import VoteResult
from townsquare.services.errors import InvalidInput, NotFound
from townsquare.services.permissions import Capability, require_capability
from townsquare.services.rate_limit import RateLimiter, get_rate_limiter

_VALID_VALUES = (-1, 0, 1)


def _apply_vote(
    db: Session,
    existing: PostVote | CommentVote | None,
    value: int,
    create: Callable[[], PostVote | CommentVote],
) -> int:
    """Write the vote row and return ``new - old`` for the cached score."""
    old = existing.value if existing is not None else 0
    if value == 0:
        if existing is not None:
            db.delete(existing)
    elif existing is None:
        db.add(create())
    else:
        existing.value = value
    return value - old


def vote_post(
    db: Session,
    user_id: int,
    post_id: int,
    value: int,
    limiter: RateLimiter | None = None,
) -> VoteResult:
    """Set the caller's vote on a post to ``value``.

    Re-sending the same value leaves the score unchanged; 0 removes the vote.
    The vote row and the score delta are committed together.

    Raises:
        InvalidInput: If ``value`` is not -1, 0 or 1.
        RateLimited: If the caller is voting too quickly.
        NotFound: If the post is missing or deleted.
        PermissionDenied: If the caller is not a member of the post's community.
    """
    if value not in _VALID_VALUES:
        raise InvalidInput("Vote value must be -1, 0 or 1")
    (limiter or get_rate_limiter()).check("vote", user_id)
    posts = PostRepository(db)
    post = posts.get_by_id(post_id)
    if post is None:
        raise NotFound("Post not found")
    require_capability(
        db, user_id, post.community_id, Capability.MEMBER, "You must be a member to vote"
    )

    existing = db.execute(
        select(PostVote).where(PostVote.user_id == user_id, PostVote.post_id == post_id)
    ).scalar_one_or_none()
    delta = _apply_vote(
        db, existing, value, lambda: PostVote(user_id=user_id, post_id=post_id, value=value)
    )
    posts.adjust_vote_score(post_id, delta)
    db.commit()
    return VoteResult(vote_score=posts.current_score(post_id), user_vote=value)


def vote_comment(
    db: Session,
    user_id: int,
    comment_id: int,
    value: int,
    limiter: RateLimiter | None = None,
) -> VoteResult:
    """Set the caller's vote on a comment to ``value``."""
    if value not in _VALID_VALUES:
        raise InvalidInput("Vote value must be -1, 0 or 1")
    (limiter or get_rate_limiter()).check("vote", user_id)
    comments = CommentRepository(db)
    comment = comments.get_live(comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    post = PostRepository(db).get_by_id(comment.post_id)
    if post is None:
        raise NotFound("Post not found")
    require_capability(
        db, user_id, post.community_id, Capability.MEMBER, "You must be a member to vote"
    )

    existing = db.execute(
        select(CommentVote).where(
            CommentVote.user_id == user_id, CommentVote.comment_id == comment_id
        )
    ).scalar_one_or_none()
    delta = _apply_vote(
        db,
        existing,
        value,
        lambda: CommentVote(user_id=user_id, comment_id=comment_id, value=value),
    )
    comments.adjust_vote_score(comment_id, delta)
    db.commit()
    return VoteResult(vote_score=comments.current_score(comment_id), user_vote=value)
