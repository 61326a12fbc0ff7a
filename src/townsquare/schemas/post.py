# src/townsquare/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from townsquare.models import MemberRole
from townsquare.schemas.user import UserSummary


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    community_id: int
    title: str = Field(..., min_length=5, max_length=300)
    content: str = Field(..., min_length=10, max_length=40000)

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        return value.strip()


class PostUpdate(BaseModel):
    """Schema for editing a post; omitted fields stay unchanged."""

    title: str | None = Field(None, min_length=5, max_length=300)
    content: str | None = Field(None, min_length=10, max_length=40000)


class PinRequest(BaseModel):
    """Toggle for pinning posts and documents."""

    is_pinned: bool


class PostOut(BaseModel):
    """Post as returned by feeds and detail reads."""

    id: int
    community_id: int
    title: str
    slug: str
    content: str
    vote_score: int
    comment_count: int
    is_pinned: bool
    created_at: datetime
    updated_at: datetime
    author: UserSummary | None = None
    author_role: MemberRole | None = None
    user_vote: int = 0

    model_config = ConfigDict(from_attributes=True)
