# src/townsquare/schemas/comment.py
"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from townsquare.models import MemberRole
from townsquare.schemas.user import UserSummary


class CommentCreate(BaseModel):
    """Schema for replying to a post or a comment."""

    content: str = Field(..., min_length=1, max_length=10000)
    parent_id: int | None = Field(None, description="Comment being replied to")


class CommentUpdate(BaseModel):
    """Schema for editing a comment."""

    content: str = Field(..., min_length=1, max_length=10000)


class CommentOut(BaseModel):
    """Comment node; ``replies`` holds fetched direct children only."""

    id: int
    post_id: int
    parent_id: int | None
    content: str
    depth: int
    vote_score: int
    created_at: datetime
    updated_at: datetime
    author: UserSummary | None = None
    author_role: MemberRole | None = None
    user_vote: int = 0
    reply_count: int = 0
    replies: list[CommentOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)
