# src/townsquare/schemas/__init__.py
"""Pydantic schemas for the Townsquare API."""

from .channel import ChannelCreate, ChannelOut, MessageCreate, MessageOut
from .comment import CommentCreate, CommentOut, CommentUpdate
from .common import ActionFailure, ActionSuccess, HealthResponse, PageResponse
from .community import (
    AcceptInviteResult,
    CommunityCreate,
    CommunityOut,
    InviteAccept,
    InviteCreate,
    InviteOut,
    InvitePreview,
    MemberOut,
    RemoveMemberResult,
    RoleUpdate,
)
from .document import (
    DocumentCreate,
    DocumentOut,
    DocumentUpdate,
    DocumentVersionOut,
    LockStatus,
    PublishRequest,
)
from .event import (
    CoOrganizerRequest,
    EventCreate,
    EventOut,
    EventUpdate,
    RSVPOut,
    RsvpAllResult,
    SessionCreate,
    SessionOut,
)
from .post import PinRequest, PostCreate, PostOut, PostUpdate
from .user import DevLoginRequest, TokenResponse, UserSummary
from .vote import VoteRequest, VoteResult

__all__ = [
    "ActionFailure", "ActionSuccess", "HealthResponse", "PageResponse",
    "ChannelCreate", "ChannelOut", "MessageCreate", "MessageOut",
    "CommentCreate", "CommentOut", "CommentUpdate",
    "AcceptInviteResult", "CommunityCreate", "CommunityOut", "InviteAccept", "InviteCreate",
    "InviteOut", "InvitePreview", "MemberOut", "RemoveMemberResult", "RoleUpdate",
    "DocumentCreate", "DocumentOut", "DocumentUpdate", "DocumentVersionOut",
    "LockStatus", "PublishRequest",
    "CoOrganizerRequest", "EventCreate", "EventOut", "EventUpdate",
    "RSVPOut", "RsvpAllResult", "SessionCreate", "SessionOut",
    "PinRequest", "PostCreate", "PostOut", "PostUpdate",
    "DevLoginRequest", "TokenResponse", "UserSummary",
    "VoteRequest", "VoteResult",
]
