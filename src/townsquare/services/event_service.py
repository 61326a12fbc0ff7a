"""Event creation, editing and organizer management."""
from __future__ import annotations

import logging

from sqlalchemy import delete, func, insert, select
from sqlalchemy.orm import Session

from townsquare.db.time import ensure_utc, utcnow
from townsquare.models import (
    RSVP,
    ChatChannel,
    Community,
    Event,
    EventSession,
    RSVPStatus,
    event_co_organizer,
)
from townsquare.schemas.event import EventCreate, EventOut, EventUpdate, SessionOut
from townsquare.services.errors import Conflict, InvalidInput, NotFound, PermissionDenied
from townsquare.services.feed import can_view_community
from townsquare.services.permissions import Capability, require_capability, resolve_capability
from townsquare.services.rate_limit import RateLimiter, get_rate_limiter
from townsquare.services.slugs import slugify

logger = logging.getLogger(__name__)

MAX_CHANNEL_NAME = 50


def event_or_404(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFound("Event not found")
    return event


def co_organizer_ids(db: Session, event_id: int) -> list[int]:
    rows = db.execute(
        select(event_co_organizer.c.user_id)
        .where(event_co_organizer.c.event_id == event_id)
        .order_by(event_co_organizer.c.user_id)
    )
    return [user_id for (user_id,) in rows]


def going_counts(db: Session, session_ids: list[int]) -> dict[int, int]:
    """Count GOING RSVPs per session."""
    if not session_ids:
        return {}
    rows = db.execute(
        select(RSVP.session_id, func.count(RSVP.id))
        .where(RSVP.session_id.in_(session_ids), RSVP.status == RSVPStatus.GOING)
        .group_by(RSVP.session_id)
    )
    return {session_id: int(count) for session_id, count in rows}


def to_event_out(db: Session, event: Event) -> EventOut:
    sessions = list(
        db.execute(
            select(EventSession)
            .where(EventSession.event_id == event.id)
            .order_by(EventSession.start_time.asc(), EventSession.id.asc())
        ).scalars()
    )
    counts = going_counts(db, [session.id for session in sessions])
    out = EventOut.model_validate(event)
    out.co_organizer_ids = co_organizer_ids(db, event.id)
    out.sessions = []
    for session in sessions:
        item = SessionOut.model_validate(session)
        item.going_count = counts.get(session.id, 0)
        out.sessions.append(item)
    return out


def is_organizer(db: Session, event: Event, user_id: int) -> bool:
    """Return True for the event's creator and its co-organizers."""
    return event.organizer_id == user_id or user_id in co_organizer_ids(db, event.id)


def _event_channel_name(db: Session, community_id: int, title: str) -> str:
    base = (slugify(title) or "event")[:MAX_CHANNEL_NAME]
    existing = set(
        db.execute(
            select(ChatChannel.name).where(ChatChannel.community_id == community_id)
        ).scalars()
    )
    if base not in existing:
        return base
    for counter in range(2, 101):
        suffix = f"-{counter}"
        candidate = base[: MAX_CHANNEL_NAME - len(suffix)] + suffix
        if candidate not in existing:
            return candidate
    raise Conflict("Could not find a free channel name for this event")


def create_event(
    db: Session,
    user_id: int,
    payload: EventCreate,
    limiter: RateLimiter | None = None,
) -> Event:
    """Create an event with its sessions and, optionally, its chat channel.

    Every session must start in the future and end after it starts. The
    event, sessions and channel are committed in one transaction.

    Raises:
        RateLimited: If the caller created events too quickly.
        NotFound: If the community does not exist.
        PermissionDenied: If the caller is not a member.
        InvalidInput: If a session is in the past or ends before it starts.
    """
    (limiter or get_rate_limiter()).check("event", user_id)
    if db.get(Community, payload.community_id) is None:
        raise NotFound("Community not found")
    require_capability(
        db, user_id, payload.community_id, Capability.MEMBER,
        "You must be a member of this community to create events",
    )
    now = utcnow()
    for session in payload.sessions:
        start = ensure_utc(session.start_time)
        if start <= now:
            raise InvalidInput("Event sessions must start in the future")
        if session.end_time is not None and ensure_utc(session.end_time) <= start:
            raise InvalidInput("Session end time must be after its start time")

    event = Event(
        community_id=payload.community_id,
        organizer_id=user_id,
        title=payload.title.strip(),
        description=payload.description,
        location=payload.location,
        capacity=payload.capacity,
    )
    if payload.create_channel:
        channel = ChatChannel(
            community_id=payload.community_id,
            name=_event_channel_name(db, payload.community_id, payload.title),
            description=f"Chat for {payload.title.strip()}",
        )
        db.add(channel)
        db.flush()
        event.channel_id = channel.id
    db.add(event)
    db.flush()
    for session in payload.sessions:
        db.add(
            EventSession(
                event_id=event.id,
                title=session.title,
                start_time=ensure_utc(session.start_time),
                end_time=ensure_utc(session.end_time) if session.end_time else None,
                capacity=session.capacity,
                location=session.location,
            )
        )
    db.commit()
    db.refresh(event)
    logger.info("Event %s created in community %s", event.id, event.community_id)
    return event


def update_event(db: Session, user_id: int, event_id: int, payload: EventUpdate) -> Event:
    """Edit event details as its creator or a co-organizer."""
    event = event_or_404(db, event_id)
    if not is_organizer(db, event, user_id):
        raise PermissionDenied("Only event organizers can edit this event")
    changes = payload.model_dump(exclude_unset=True)
    for field_name, value in changes.items():
        if field_name == "title":
            if value is None:
                continue
            value = value.strip()
        setattr(event, field_name, value)
    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, user_id: int, event_id: int) -> None:
    """Delete an event, its sessions and RSVPs; creator only."""
    event = event_or_404(db, event_id)
    if event.organizer_id != user_id:
        raise PermissionDenied("Only the event creator can delete this event")
    session_ids = select(EventSession.id).where(EventSession.event_id == event_id)
    db.execute(delete(RSVP).where(RSVP.session_id.in_(session_ids)))
    db.execute(delete(EventSession).where(EventSession.event_id == event_id))
    db.execute(delete(event_co_organizer).where(event_co_organizer.c.event_id == event_id))
    db.delete(event)
    db.commit()


def add_co_organizer(db: Session, user_id: int, event_id: int, target_user_id: int) -> list[int]:
    """Add a community member as co-organizer; creator only.

    Returns:
        The event's co-organizer ids after the change.
    """
    event = event_or_404(db, event_id)
    if event.organizer_id != user_id:
        raise PermissionDenied("Only the event creator can add co-organizers")
    if target_user_id == event.organizer_id or target_user_id in co_organizer_ids(db, event_id):
        raise Conflict("User is already an organizer")
    if resolve_capability(db, target_user_id, event.community_id) < Capability.MEMBER:
        raise InvalidInput("User must be a community member to be a co-organizer")
    db.execute(insert(event_co_organizer).values(event_id=event_id, user_id=target_user_id))
    db.commit()
    return co_organizer_ids(db, event_id)


def remove_co_organizer(
    db: Session, user_id: int, event_id: int, target_user_id: int
) -> list[int]:
    """Remove a co-organizer; creator only."""
    event = event_or_404(db, event_id)
    if event.organizer_id != user_id:
        raise PermissionDenied("Only the event creator can remove co-organizers")
    result = db.execute(
        delete(event_co_organizer).where(
            event_co_organizer.c.event_id == event_id,
            event_co_organizer.c.user_id == target_user_id,
        )
    )
    if not result.rowcount:
        raise NotFound("User is not a co-organizer of this event")
    db.commit()
    return co_organizer_ids(db, event_id)


def get_event(db: Session, event_id: int, user_id: int | None = None) -> EventOut | None:
    """Return an event with sessions, or None when missing or not visible."""
    event = db.get(Event, event_id)
    if event is None:
        return None
    community = db.get(Community, event.community_id)
    if community is None or not can_view_community(db, community, user_id):
        return None
    return to_event_out(db, event)


def list_events(
    db: Session,
    community_id: int,
    user_id: int | None = None,
    upcoming_only: bool = True,
) -> list[EventOut]:
    """List a community's events ordered by their first session."""
    community = db.get(Community, community_id)
    if community is None or not can_view_community(db, community, user_id):
        return []
    first_start = (
        select(
            EventSession.event_id,
            func.min(EventSession.start_time).label("first_start"),
            func.max(EventSession.start_time).label("last_start"),
        )
        .group_by(EventSession.event_id)
        .subquery()
    )
    stmt = (
        select(Event)
        .join(first_start, first_start.c.event_id == Event.id)
        .where(Event.community_id == community_id)
        .order_by(first_start.c.first_start.asc(), Event.id.asc())
    )
    if upcoming_only:
        stmt = stmt.where(first_start.c.last_start > utcnow())
    return [to_event_out(db, event) for event in db.execute(stmt).scalars()]
