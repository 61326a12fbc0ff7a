"""Community chat channels and messages."""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from townsquare.models import ChatChannel, ChatMessage, Community, User
from townsquare.schemas.channel import ChannelCreate, MessageOut
from townsquare.schemas.user import UserSummary
from townsquare.services.errors import Conflict, InvalidInput, NotFound
from townsquare.services.pagination import Page, fetch_page
from townsquare.services.permissions import Capability, require_capability
from townsquare.services.ranking import chronological
from townsquare.services.rate_limit import RateLimiter, get_rate_limiter

MAX_MESSAGE_LENGTH = 2000


def _channel_or_404(db: Session, channel_id: int) -> ChatChannel:
    channel = db.get(ChatChannel, channel_id)
    if channel is None:
        raise NotFound("Channel not found")
    return channel


def create_channel(
    db: Session,
    user_id: int,
    payload: ChannelCreate,
    limiter: RateLimiter | None = None,
) -> ChatChannel:
    """Create a channel; owner only, names unique within the community."""
    (limiter or get_rate_limiter()).check("channel", user_id)
    if db.get(Community, payload.community_id) is None:
        raise NotFound("Community not found")
    require_capability(
        db, user_id, payload.community_id, Capability.OWNER,
        "Only the community owner can create channels",
    )
    name = payload.name.strip().lower()
    taken = db.execute(
        select(ChatChannel.id).where(
            ChatChannel.community_id == payload.community_id, ChatChannel.name == name
        )
    ).first()
    if taken is not None:
        raise Conflict("A channel with this name already exists")
    channel = ChatChannel(
        community_id=payload.community_id, name=name, description=payload.description
    )
    db.add(channel)
    db.commit()
    db.refresh(channel)
    return channel


def list_channels(db: Session, user_id: int, community_id: int) -> list[ChatChannel]:
    """List a community's channels by name; members only."""
    require_capability(
        db, user_id, community_id, Capability.MEMBER,
        "You must be a member to view channels",
    )
    return list(
        db.execute(
            select(ChatChannel)
            .where(ChatChannel.community_id == community_id)
            .order_by(ChatChannel.name.asc())
        ).scalars()
    )


def _to_message_out(message: ChatMessage, author: User | None) -> MessageOut:
    out = MessageOut.model_validate(message)
    out.author = UserSummary.model_validate(author) if author is not None else None
    return out


def send_message(
    db: Session,
    user_id: int,
    channel_id: int,
    content: str,
    limiter: RateLimiter | None = None,
) -> MessageOut:
    """Post a message to a channel; one per second per user."""
    (limiter or get_rate_limiter()).check("chat", user_id)
    text = content.strip()
    if not text:
        raise InvalidInput("Message cannot be empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise InvalidInput("Message must be at most 2000 characters")
    channel = _channel_or_404(db, channel_id)
    require_capability(
        db, user_id, channel.community_id, Capability.MEMBER,
        "You must be a member to send messages",
    )
    message = ChatMessage(channel_id=channel_id, author_id=user_id, content=text)
    db.add(message)
    db.commit()
    db.refresh(message)
    return _to_message_out(message, db.get(User, user_id))


def list_messages(
    db: Session,
    user_id: int,
    channel_id: int,
    limit: int = 50,
    cursor: int | None = None,
) -> Page[MessageOut]:
    """Return live messages newest first; members only."""
    channel = _channel_or_404(db, channel_id)
    require_capability(
        db, user_id, channel.community_id, Capability.MEMBER,
        "You must be a member to read messages",
    )
    stmt = select(ChatMessage).where(
        ChatMessage.channel_id == channel_id, ChatMessage.deleted_at.is_(None)
    )
    page = fetch_page(db, stmt, ChatMessage, chronological, max(1, min(limit, 100)), cursor)
    author_ids = {message.author_id for message in page.items}
    authors: dict[int, User] = {}
    if author_ids:
        rows = db.execute(select(User).where(User.id.in_(author_ids))).scalars()
        authors = {user.id: user for user in rows}
    return Page(
        items=[_to_message_out(message, authors.get(message.author_id)) for message in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )
