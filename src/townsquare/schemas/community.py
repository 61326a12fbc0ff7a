# src/townsquare/schemas/community.py
"""Community-related Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from townsquare.models import CommunityVisibility, MemberRole
from townsquare.schemas.user import UserSummary


class CommunityCreate(BaseModel):
    """Schema for creating a community."""

    name: str = Field(..., min_length=3, max_length=100)
    slug: str | None = Field(None, min_length=3, max_length=50, pattern=r"^[a-z0-9-]+$")
    description: str | None = Field(None, max_length=2000)
    visibility: CommunityVisibility = CommunityVisibility.PUBLIC


class CommunityOut(BaseModel):
    """Community summary."""

    id: int
    slug: str
    name: str
    description: str | None
    visibility: CommunityVisibility
    owner_id: int
    created_at: datetime
    last_activity_at: datetime
    member_count: int = 0
    viewer_role: MemberRole | None = None

    model_config = ConfigDict(from_attributes=True)


class MemberOut(BaseModel):
    """Membership row with the member's public identity."""

    id: int
    user_id: int
    community_id: int
    role: MemberRole
    joined_at: datetime
    user: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class RoleUpdate(BaseModel):
    """Owner promotion or demotion of a member."""

    role: Literal[MemberRole.MEMBER, MemberRole.MODERATOR]


class RemoveMemberResult(BaseModel):
    """Outcome of removing a member."""

    removed_user_id: int
    transferred_events: int


class InviteCreate(BaseModel):
    """Email address to invite into a community."""

    email: EmailStr


class InviteAccept(BaseModel):
    """Token from an invitation link."""

    token: str = Field(..., min_length=1, max_length=200)


class InviteOut(BaseModel):
    """Pending invitation as shown to community moderators."""

    id: int
    community_id: int
    email: str
    created_by_id: int
    created_at: datetime
    expires_at: datetime
    created_by: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class InvitePreview(BaseModel):
    """Public view of an invitation for its accept page."""

    email: str
    expires_at: datetime
    expired: bool
    community: CommunityOut


class AcceptInviteResult(BaseModel):
    """Community joined by accepting an invitation."""

    community_id: int
    community_slug: str
