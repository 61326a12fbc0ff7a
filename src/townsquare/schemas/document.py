# src/townsquare/schemas/document.py
"""Document-related Pydantic schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from townsquare.models import DocumentStatus


class DocumentCreate(BaseModel):
    """Schema for creating a draft document."""

    community_id: int
    title: str = Field(..., min_length=3, max_length=300)
    content: dict[str, Any] = Field(default_factory=dict)
    content_html: str | None = Field(None, max_length=1000000)


class DocumentUpdate(BaseModel):
    """Schema for editing a document; omitted fields stay unchanged."""

    title: str | None = Field(None, min_length=3, max_length=300)
    content: dict[str, Any] | None = None
    content_html: str | None = Field(None, max_length=1000000)


class PublishRequest(BaseModel):
    """Optional note stored with the published snapshot."""

    change_note: str | None = Field(None, max_length=500)


class DocumentOut(BaseModel):
    """Document with lease state."""

    id: int
    community_id: int
    author_id: int
    title: str
    slug: str
    content: dict[str, Any]
    content_html: str | None
    status: DocumentStatus
    version: int
    is_pinned: bool
    locked_by_id: int | None
    locked_at: datetime | None
    created_at: datetime
    updated_at: datetime
    published_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class DocumentVersionOut(BaseModel):
    """Published snapshot of a document."""

    id: int
    document_id: int
    version: int
    title: str
    content: dict[str, Any]
    content_html: str | None
    author_id: int
    change_note: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LockStatus(BaseModel):
    """Lease holder after a lock operation."""

    document_id: int
    locked_by_id: int | None
    locked_at: datetime | None
    expires_at: datetime | None = None
