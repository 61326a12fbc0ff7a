"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from townsquare.models import Community, Member, MemberRole, Post, PostVote, User

__all__ = ["PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: int, *, include_deleted: bool = False) -> Post | None:
        """Return a post by identifier, hiding soft-deleted rows unless asked."""
        stmt = select(Post).where(Post.id == post_id)
        if not include_deleted:
            stmt = stmt.where(Post.deleted_at.is_(None))
        return self.session.execute(stmt).scalar_one_or_none()

    def get_by_slug(self, community_slug: str, post_slug: str) -> Post | None:
        """Return a live post addressed by community and post slug."""
        stmt = (
            select(Post)
            .join(Community, Community.id == Post.community_id)
            .where(
                Community.slug == community_slug,
                Post.slug == post_slug,
                Post.deleted_at.is_(None),
            )
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def user_votes(self, user_id: int | None, post_ids: Iterable[int]) -> dict[int, int]:
        """Return the caller's vote value per post id."""
        ids = list(post_ids)
        if user_id is None or not ids:
            return {}
        rows = self.session.execute(
            select(PostVote.post_id, PostVote.value).where(
                PostVote.user_id == user_id, PostVote.post_id.in_(ids)
            )
        )
        return {post_id: value for post_id, value in rows}

    def authors(self, author_ids: Iterable[int]) -> dict[int, User]:
        """Return users keyed by id."""
        ids = set(author_ids)
        if not ids:
            return {}
        users = self.session.execute(select(User).where(User.id.in_(ids))).scalars()
        return {user.id: user for user in users}

    def author_roles(
        self, pairs: Iterable[tuple[int, int]]
    ) -> dict[tuple[int, int], MemberRole]:
        """Return membership roles keyed by ``(community_id, user_id)``."""
        wanted = set(pairs)
        if not wanted:
            return {}
        community_ids = {community_id for community_id, _ in wanted}
        user_ids = {user_id for _, user_id in wanted}
        rows = self.session.execute(
            select(Member.community_id, Member.user_id, Member.role).where(
                Member.community_id.in_(community_ids), Member.user_id.in_(user_ids)
            )
        )
        return {
            (community_id, user_id): role
            for community_id, user_id, role in rows
            if (community_id, user_id) in wanted
        }

    def adjust_vote_score(self, post_id: int, delta: int) -> None:
        """Atomically add ``delta`` to the cached score."""
        if delta:
            self.session.execute(
                update(Post).where(Post.id == post_id).values(vote_score=Post.vote_score + delta)
            )

    def adjust_comment_count(self, post_id: int, delta: int) -> None:
        """Atomically add ``delta`` to the cached comment count."""
        self.session.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(comment_count=Post.comment_count + delta)
        )

    def current_score(self, post_id: int) -> int:
        return int(
            self.session.execute(select(Post.vote_score).where(Post.id == post_id)).scalar_one()
        )
