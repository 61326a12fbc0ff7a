# src/townsquare/api/v1/endpoints/votes.py
"""Voting endpoints for the Townsquare API."""

from fastapi import APIRouter

from townsquare.schemas.common import ActionSuccess
from townsquare.schemas.vote import VoteRequest, VoteResult
from townsquare.services.votes import vote_comment, vote_post

from ..actions import action
from ..dependencies import CurrentUserDep, RateLimiterDep, SessionDep

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/posts/{post_id}", response_model=ActionSuccess)
@action("Failed to vote")
def cast_post_vote(
    post_id: int,
    payload: VoteRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> VoteResult:
    """Upvote, downvote or clear the caller's vote on a post.

    Args:
        post_id: Post being voted on.
        payload: ``1``, ``-1`` or ``0`` to clear.
        current_user: Voter.
        db: Database session.
        limiter: Vote rate limiter.

    Returns:
        The post's score after the vote and the caller's resulting vote.
    """
    return vote_post(db, current_user.id, post_id, payload.value, limiter)


@router.post("/comments/{comment_id}", response_model=ActionSuccess)
@action("Failed to vote")
def cast_comment_vote(
    comment_id: int,
    payload: VoteRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> VoteResult:
    return vote_comment(db, current_user.id, comment_id, payload.value, limiter)
