# src/townsquare/schemas/event.py
"""Event and RSVP Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from townsquare.models import RSVPStatus


class SessionCreate(BaseModel):
    """One session of a new event."""

    title: str | None = Field(None, max_length=200)
    start_time: datetime
    end_time: datetime | None = None
    capacity: int | None = Field(None, ge=1, le=10000)
    location: str | None = Field(None, max_length=500)


class EventCreate(BaseModel):
    """Schema for creating an event with its sessions."""

    community_id: int
    title: str = Field(..., min_length=3, max_length=200)
    description: str | None = Field(None, max_length=5000)
    location: str | None = Field(None, max_length=500)
    capacity: int | None = Field(None, ge=1, le=10000)
    sessions: list[SessionCreate] = Field(..., min_length=1)
    create_channel: bool = False


class EventUpdate(BaseModel):
    """Schema for editing event details; omitted fields stay unchanged."""

    title: str | None = Field(None, min_length=3, max_length=200)
    description: str | None = Field(None, max_length=5000)
    location: str | None = Field(None, max_length=500)
    capacity: int | None = Field(None, ge=1, le=10000)


class CoOrganizerRequest(BaseModel):
    """Target of a co-organizer change."""

    user_id: int


class SessionOut(BaseModel):
    """Event session with attendance figures."""

    id: int
    event_id: int
    title: str | None
    start_time: datetime
    end_time: datetime | None
    capacity: int | None
    location: str | None
    going_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class EventOut(BaseModel):
    """Event with its sessions."""

    id: int
    community_id: int
    organizer_id: int
    title: str
    description: str | None
    location: str | None
    capacity: int | None
    channel_id: int | None
    created_at: datetime
    co_organizer_ids: list[int] = Field(default_factory=list)
    sessions: list[SessionOut] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class RSVPOut(BaseModel):
    """A user's RSVP for a session."""

    id: int
    user_id: int
    session_id: int
    status: RSVPStatus
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RsvpAllResult(BaseModel):
    """How many sessions an all-sessions RSVP joined."""

    joined: int
