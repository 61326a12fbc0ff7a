# src/townsquare/models/__init__.py
"""SQLAlchemy models for the Townsquare application."""

from .channel import ChatChannel, ChatMessage
from .comment import Comment, CommentVote
from .community import Community, CommunityVisibility, Member, MemberRole
from .document import Document, DocumentStatus, DocumentVersion
from .event import RSVP, Event, EventSession, RSVPStatus, event_co_organizer
from .invite import CommunityInvite
from .post import Post, PostVote
from .user import User

__all__ = [
    "ChatChannel", "ChatMessage",
    "Comment", "CommentVote",
    "Community", "CommunityVisibility", "Member", "MemberRole",
    "Document", "DocumentStatus", "DocumentVersion",
    "Event", "EventSession", "RSVP", "RSVPStatus", "event_co_organizer",
    "CommunityInvite",
    "Post", "PostVote",
    "User",
]
