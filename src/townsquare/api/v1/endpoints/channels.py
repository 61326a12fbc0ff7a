# src/townsquare/api/v1/endpoints/channels.py
"""Chat channel endpoints for the Townsquare API."""

from fastapi import APIRouter, Query, status

from townsquare.schemas.channel import ChannelCreate, ChannelOut, MessageCreate, MessageOut
from townsquare.schemas.common import ActionSuccess, PageResponse
from townsquare.services import channel_service

from ..actions import action
from ..dependencies import CurrentUserDep, RateLimiterDep, SessionDep

router = APIRouter(prefix="/channels", tags=["channels"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ActionSuccess)
@action("Failed to create channel")
def create_channel(
    payload: ChannelCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> ChannelOut:
    """Create a chat channel; community owners only."""
    channel = channel_service.create_channel(db, current_user.id, payload, limiter)
    return ChannelOut.model_validate(channel)


@router.get("/{channel_id}/messages", response_model=ActionSuccess)
@action("Failed to load messages")
def list_messages(
    channel_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(50, ge=1, le=100),
    cursor: int | None = None,
) -> PageResponse[MessageOut]:
    page = channel_service.list_messages(db, current_user.id, channel_id, limit, cursor)
    return PageResponse[MessageOut].from_page(page)


@router.post(
    "/{channel_id}/messages", status_code=status.HTTP_201_CREATED, response_model=ActionSuccess
)
@action("Failed to send message")
def send_message(
    channel_id: int,
    payload: MessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> MessageOut:
    return channel_service.send_message(db, current_user.id, channel_id, payload.content, limiter)
