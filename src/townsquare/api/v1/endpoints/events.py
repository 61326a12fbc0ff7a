# src/townsquare/api/v1/endpoints/events.py
"""Event and RSVP endpoints for the Townsquare API."""

import logging

from fastapi import APIRouter, BackgroundTasks, HTTPException, status

from townsquare.schemas.common import ActionSuccess
from townsquare.schemas.event import (
    CoOrganizerRequest,
    EventCreate,
    EventOut,
    EventUpdate,
    RSVPOut,
    RsvpAllResult,
)
from townsquare.services import event_service, rsvp_service

from ..actions import action
from ..dependencies import (
    CurrentUserDep,
    EmailClientDep,
    OptionalUserDep,
    RateLimiterDep,
    SessionDep,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ActionSuccess)
@action("Failed to create event")
def create_event(
    payload: EventCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> EventOut:
    """Create an event with its sessions and optional chat channel."""
    event = event_service.create_event(db, current_user.id, payload, limiter)
    return event_service.to_event_out(db, event)


@router.get("/{event_id}", response_model=EventOut)
def read_event(event_id: int, db: SessionDep, current_user: OptionalUserDep) -> EventOut:
    event = event_service.get_event(db, event_id, getattr(current_user, "id", None))
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


@router.patch("/{event_id}", response_model=ActionSuccess)
@action("Failed to update event")
def update_event(
    event_id: int, payload: EventUpdate, current_user: CurrentUserDep, db: SessionDep
) -> EventOut:
    event = event_service.update_event(db, current_user.id, event_id, payload)
    return event_service.to_event_out(db, event)


@router.delete("/{event_id}", response_model=ActionSuccess)
@action("Failed to delete event")
def delete_event(event_id: int, current_user: CurrentUserDep, db: SessionDep) -> None:
    event_service.delete_event(db, current_user.id, event_id)


@router.post("/{event_id}/co-organizers", response_model=ActionSuccess)
@action("Failed to add co-organizer")
def add_co_organizer(
    event_id: int, payload: CoOrganizerRequest, current_user: CurrentUserDep, db: SessionDep
) -> list[int]:
    return event_service.add_co_organizer(db, current_user.id, event_id, payload.user_id)


@router.delete("/{event_id}/co-organizers/{user_id}", response_model=ActionSuccess)
@action("Failed to remove co-organizer")
def remove_co_organizer(
    event_id: int, user_id: int, current_user: CurrentUserDep, db: SessionDep
) -> list[int]:
    return event_service.remove_co_organizer(db, current_user.id, event_id, user_id)


@router.post("/{event_id}/rsvp-all", response_model=ActionSuccess)
@action("Failed to RSVP")
def rsvp_all(
    event_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> RsvpAllResult:
    """RSVP to every upcoming session that still has room."""
    joined = rsvp_service.rsvp_all_sessions(db, current_user.id, event_id, limiter)
    return RsvpAllResult(joined=joined)


@router.post("/sessions/{session_id}/rsvp", response_model=ActionSuccess)
@action("Failed to RSVP")
def rsvp(
    session_id: int,
    background_tasks: BackgroundTasks,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
    email_client: EmailClientDep,
) -> RSVPOut:
    """RSVP to a session and queue the confirmation email.

    The email is sent after the response; a delivery failure is logged and
    never undoes the RSVP.
    """
    outcome = rsvp_service.rsvp_to_session(db, current_user.id, session_id, limiter)
    if outcome.confirmation is not None and email_client.enabled:
        background_tasks.add_task(email_client.send_rsvp_confirmation, outcome.confirmation)
    return RSVPOut.model_validate(outcome.rsvp)


@router.delete("/sessions/{session_id}/rsvp", response_model=ActionSuccess)
@action("Failed to cancel RSVP")
def cancel_rsvp(
    session_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> None:
    rsvp_service.cancel_rsvp(db, current_user.id, session_id, limiter)
