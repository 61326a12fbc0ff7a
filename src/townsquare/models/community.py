# src/townsquare/models/community.py
"""SQLAlchemy models for communities and their membership."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from townsquare.db.session import Base
from townsquare.db.time import utcnow


class CommunityVisibility(str, enum.Enum):
    """Whether non-members can see and join a community."""

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class MemberRole(str, enum.Enum):
    """Role a user holds inside a single community."""

    OWNER = "OWNER"
    MODERATOR = "MODERATOR"
    MEMBER = "MEMBER"


class Community(Base):
    """A group with its own forum, events, documents and chat channels."""

    __tablename__ = "community"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    visibility: Mapped[CommunityVisibility] = mapped_column(
        Enum(CommunityVisibility, name="community_visibility"),
        nullable=False,
        default=CommunityVisibility.PUBLIC,
    )
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("user.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    # Bumped by posts and comments; drives "recently active" listings.
    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class Member(Base):
    """Membership of a user in a community."""

    __tablename__ = "member"
    __table_args__ = (UniqueConstraint("user_id", "community_id", name="uq_member_user_community"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    community_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("community.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[MemberRole] = mapped_column(
        Enum(MemberRole, name="member_role"), nullable=False, default=MemberRole.MEMBER
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
