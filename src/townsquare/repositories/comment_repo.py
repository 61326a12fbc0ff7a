"""Data access helpers for working with comments."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from townsquare.models import Comment, CommentVote

__all__ = ["CommentRepository"]


class CommentRepository:
    """Query helpers for comment threads."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_live(self, comment_id: int) -> Comment | None:
        """Return a comment unless it was soft-deleted."""
        return self.session.execute(
            select(Comment).where(Comment.id == comment_id, Comment.deleted_at.is_(None))
        ).scalar_one_or_none()

    def replies_for_post(self, post_id: int, max_depth: int) -> list[Comment]:
        """Return every live reply of a post up to ``max_depth``, shallowest first."""
        stmt = (
            select(Comment)
            .where(
                Comment.post_id == post_id,
                Comment.parent_id.is_not(None),
                Comment.deleted_at.is_(None),
                Comment.depth <= max_depth,
            )
            .order_by(Comment.depth.asc(), Comment.id.asc())
        )
        return list(self.session.execute(stmt).scalars())

    def reply_counts(self, parent_ids: Iterable[int]) -> dict[int, int]:
        """Count live direct children per parent comment."""
        ids = list(parent_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            select(Comment.parent_id, func.count(Comment.id))
            .where(Comment.parent_id.in_(ids), Comment.deleted_at.is_(None))
            .group_by(Comment.parent_id)
        )
        return {parent_id: int(count) for parent_id, count in rows}

    def user_votes(self, user_id: int | None, comment_ids: Iterable[int]) -> dict[int, int]:
        """Return the caller's vote value per comment id."""
        ids = list(comment_ids)
        if user_id is None or not ids:
            return {}
        rows = self.session.execute(
            select(CommentVote.comment_id, CommentVote.value).where(
                CommentVote.user_id == user_id, CommentVote.comment_id.in_(ids)
            )
        )
        return {comment_id: value for comment_id, value in rows}

    def adjust_vote_score(self, comment_id: int, delta: int) -> None:
        """Atomically add ``delta`` to the cached score."""
        if delta:
            self.session.execute(
                update(Comment)
                .where(Comment.id == comment_id)
                .values(vote_score=Comment.vote_score + delta)
            )

    def current_score(self, comment_id: int) -> int:
        return int(
            self.session.execute(
                select(Comment.vote_score).where(Comment.id == comment_id)
            ).scalar_one()
        )
