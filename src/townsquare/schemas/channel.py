# src/townsquare/schemas/channel.py
"""Chat channel Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from townsquare.schemas.user import UserSummary


class ChannelCreate(BaseModel):
    """Schema for creating a chat channel."""

    community_id: int
    name: str = Field(..., min_length=2, max_length=50)
    description: str | None = Field(None, max_length=500)


class ChannelOut(BaseModel):
    """Chat channel summary."""

    id: int
    community_id: int
    name: str
    description: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageCreate(BaseModel):
    """Schema for posting a chat message."""

    content: str = Field(..., min_length=1, max_length=2000)


class MessageOut(BaseModel):
    """Chat message with its author."""

    id: int
    channel_id: int
    author_id: int
    content: str
    created_at: datetime
    author: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)
