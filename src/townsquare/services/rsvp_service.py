"""Session RSVPs with capacity enforcement."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from townsquare.core.settings import settings
from townsquare.db.time import ensure_utc, utcnow
from townsquare.models import (
    RSVP,
    Community,
    CommunityVisibility,
    Event,
    EventSession,
    Member,
    MemberRole,
    RSVPStatus,
    User,
)
from townsquare.services.email import RsvpConfirmation
from townsquare.services.errors import Conflict, InvalidInput, NotFound, PermissionDenied
from townsquare.services.event_service import event_or_404
from townsquare.services.permissions import get_membership
from townsquare.services.rate_limit import RateLimiter, get_rate_limiter

logger = logging.getLogger(__name__)


@dataclass
class RsvpOutcome:
    """Committed RSVP plus the confirmation to send afterwards."""

    rsvp: RSVP
    auto_joined: bool
    confirmation: RsvpConfirmation | None


def _ensure_membership(db: Session, user_id: int, community: Community) -> bool:
    """Auto-join public communities; return True when a membership was added."""
    if get_membership(db, user_id, community.id) is not None:
        return False
    if community.visibility == CommunityVisibility.PRIVATE:
        raise PermissionDenied("You must be a member of this community to RSVP")
    db.add(Member(user_id=user_id, community_id=community.id, role=MemberRole.MEMBER))
    db.flush()
    return True


def _going_count(db: Session, session_id: int) -> int:
    return int(
        db.execute(
            select(func.count(RSVP.id)).where(
                RSVP.session_id == session_id, RSVP.status == RSVPStatus.GOING
            )
        ).scalar_one()
    )


def _has_room(db: Session, session: EventSession, event: Event) -> bool:
    capacity = session.capacity if session.capacity is not None else event.capacity
    return capacity is None or _going_count(db, session.id) < capacity


def _confirmation(
    db: Session, user_id: int, session: EventSession, event: Event, community: Community
) -> RsvpConfirmation | None:
    user = db.get(User, user_id)
    if user is None or not user.email:
        return None
    return RsvpConfirmation(
        to=user.email,
        user_name=user.name,
        event_title=event.title,
        community_name=community.name,
        start_time=ensure_utc(session.start_time),
        location=session.location or event.location,
        event_url=f"{settings.public_base_url}/communities/{community.slug}/events/{event.id}",
    )


def rsvp_to_session(
    db: Session,
    user_id: int,
    session_id: int,
    limiter: RateLimiter | None = None,
) -> RsvpOutcome:
    """Mark the caller as GOING to one session.

    Non-members of a public community are joined as members first. The
    session's capacity (or the event's when the session has none) is
    checked in the same transaction that writes the RSVP.

    Args:
        db: Active session.
        user_id: Attendee.
        session_id: Session to attend.
        limiter: Rate limiter; defaults to the configured one.

    Returns:
        The RSVP and the confirmation email to send once committed.

    Raises:
        RateLimited: If the caller RSVPs too quickly.
        NotFound: If the session does not exist.
        InvalidInput: If the session already started.
        PermissionDenied: If the community is private and the caller is not a member.
        Conflict: If the caller is already going or the session is full.
    """
    (limiter or get_rate_limiter()).check("rsvp", user_id)
    session = db.get(EventSession, session_id)
    if session is None:
        raise NotFound("Session not found")
    if ensure_utc(session.start_time) <= utcnow():
        raise InvalidInput("Cannot RSVP to past sessions")
    event = event_or_404(db, session.event_id)
    community = db.get(Community, event.community_id)
    if community is None:
        raise NotFound("Community not found")

    auto_joined = _ensure_membership(db, user_id, community)
    existing = db.execute(
        select(RSVP).where(RSVP.user_id == user_id, RSVP.session_id == session_id)
    ).scalar_one_or_none()
    if existing is not None and existing.status == RSVPStatus.GOING:
        raise Conflict("You have already RSVP'd to this session")
    if not _has_room(db, session, event):
        raise Conflict("This session is full")

    if existing is not None:
        existing.status = RSVPStatus.GOING
        rsvp = existing
    else:
        rsvp = RSVP(user_id=user_id, session_id=session_id, status=RSVPStatus.GOING)
        db.add(rsvp)
    db.commit()
    db.refresh(rsvp)
    if auto_joined:
        logger.info("User %s auto-joined community %s via RSVP", user_id, community.id)
    return RsvpOutcome(
        rsvp=rsvp,
        auto_joined=auto_joined,
        confirmation=_confirmation(db, user_id, session, event, community),
    )


def cancel_rsvp(
    db: Session,
    user_id: int,
    session_id: int,
    limiter: RateLimiter | None = None,
) -> None:
    """Withdraw the caller's RSVP for a session."""
    (limiter or get_rate_limiter()).check("rsvp", user_id)
    if db.get(EventSession, session_id) is None:
        raise NotFound("Session not found")
    existing = db.execute(
        select(RSVP).where(RSVP.user_id == user_id, RSVP.session_id == session_id)
    ).scalar_one_or_none()
    if existing is None:
        raise InvalidInput("You have not RSVP'd to this session")
    db.delete(existing)
    db.commit()


def rsvp_all_sessions(
    db: Session,
    user_id: int,
    event_id: int,
    limiter: RateLimiter | None = None,
) -> int:
    """RSVP to every upcoming session of an event that still has room.

    Full sessions are skipped rather than failing the request.

    Returns:
        Number of sessions the caller is newly going to.
    """
    (limiter or get_rate_limiter()).check("rsvp", user_id)
    event = event_or_404(db, event_id)
    sessions = list(
        db.execute(
            select(EventSession)
            .where(EventSession.event_id == event_id, EventSession.start_time > utcnow())
            .order_by(EventSession.start_time.asc(), EventSession.id.asc())
        ).scalars()
    )
    if not sessions:
        raise InvalidInput("No upcoming sessions available")
    community = db.get(Community, event.community_id)
    if community is None:
        raise NotFound("Community not found")
    _ensure_membership(db, user_id, community)

    existing = {
        rsvp.session_id: rsvp
        for rsvp in db.execute(
            select(RSVP).where(
                RSVP.user_id == user_id,
                RSVP.session_id.in_([session.id for session in sessions]),
            )
        ).scalars()
    }
    joined = 0
    for session in sessions:
        current = existing.get(session.id)
        if current is not None and current.status == RSVPStatus.GOING:
            continue
        if not _has_room(db, session, event):
            continue
        if current is not None:
            current.status = RSVPStatus.GOING
        else:
            db.add(RSVP(user_id=user_id, session_id=session.id, status=RSVPStatus.GOING))
        db.flush()
        joined += 1
    db.commit()
    return joined
