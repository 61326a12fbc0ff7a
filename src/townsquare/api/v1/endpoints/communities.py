# src/townsquare/api/v1/endpoints/communities.py
"""Community-related endpoints for the Townsquare API."""

from fastapi import APIRouter, HTTPException, Query, status

from townsquare.models import DocumentStatus
from townsquare.schemas.channel import ChannelOut
from townsquare.schemas.common import ActionSuccess, PageResponse
from townsquare.schemas.community import (
    CommunityCreate,
    CommunityOut,
    MemberOut,
    RemoveMemberResult,
    RoleUpdate,
)
from townsquare.schemas.document import DocumentOut
from townsquare.schemas.event import EventOut
from townsquare.schemas.post import PostOut
from townsquare.services import channel_service, community_service, document_service, event_service
from townsquare.services.feed import get_posts
from townsquare.services.ranking import PostSort

from ..actions import action
from ..dependencies import CurrentUserDep, OptionalUserDep, RateLimiterDep, SessionDep

router = APIRouter(prefix="/communities", tags=["communities"])


def _user_id(user: object | None) -> int | None:
    return getattr(user, "id", None)


@router.get("", response_model=PageResponse[CommunityOut])
def list_communities(
    db: SessionDep,
    current_user: OptionalUserDep,
    limit: int = Query(20, ge=1, le=50),
    cursor: int | None = None,
) -> PageResponse[CommunityOut]:
    """List public communities and private ones the caller belongs to."""
    page = community_service.list_communities(db, _user_id(current_user), limit, cursor)
    return PageResponse[CommunityOut].from_page(page)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ActionSuccess)
@action("Failed to create community")
def create_community(
    payload: CommunityCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> CommunityOut:
    """Create a community owned by the caller."""
    community = community_service.create_community(db, current_user.id, payload, limiter)
    return community_service.to_community_out(db, community, current_user.id)


@router.get("/{slug}", response_model=CommunityOut)
def get_community(slug: str, db: SessionDep, current_user: OptionalUserDep) -> CommunityOut:
    """Get a community by slug."""
    community = community_service.get_community_by_slug(db, slug, _user_id(current_user))
    if community is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Community not found")
    return community


@router.get("/{community_id}/posts", response_model=PageResponse[PostOut])
def community_feed(
    community_id: int,
    db: SessionDep,
    current_user: OptionalUserDep,
    sort: PostSort = PostSort.HOT,
    limit: int = Query(20, ge=1, le=50),
    cursor: int | None = None,
) -> PageResponse[PostOut]:
    """Return a page of the community's forum feed, pinned posts first on page one."""
    page = get_posts(db, community_id, sort, limit, cursor, _user_id(current_user))
    return PageResponse[PostOut].from_page(page)


@router.get("/{community_id}/members", response_model=ActionSuccess)
@action("Failed to load members")
def list_members(
    community_id: int, db: SessionDep, current_user: OptionalUserDep
) -> list[MemberOut]:
    return community_service.list_members(db, community_id, _user_id(current_user))


@router.post("/{community_id}/join", response_model=ActionSuccess)
@action("Failed to join community")
def join_community(
    community_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> MemberOut:
    member = community_service.join_community(db, current_user.id, community_id, limiter)
    return MemberOut.model_validate(member)


@router.post("/{community_id}/leave", response_model=ActionSuccess)
@action("Failed to leave community")
def leave_community(community_id: int, current_user: CurrentUserDep, db: SessionDep) -> None:
    community_service.leave_community(db, current_user.id, community_id)


@router.delete("/{community_id}/members/{member_id}", response_model=ActionSuccess)
@action("Failed to remove member")
def remove_member(
    community_id: int, member_id: int, current_user: CurrentUserDep, db: SessionDep
) -> RemoveMemberResult:
    """Remove a member; their events are handed to the owner."""
    return community_service.remove_member(db, current_user.id, community_id, member_id)


@router.patch("/{community_id}/members/{member_id}", response_model=ActionSuccess)
@action("Failed to change member role")
def set_member_role(
    community_id: int,
    member_id: int,
    payload: RoleUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MemberOut:
    member = community_service.set_member_role(
        db, current_user.id, community_id, member_id, payload.role
    )
    return MemberOut.model_validate(member)


@router.get("/{community_id}/events", response_model=list[EventOut])
def list_events(
    community_id: int,
    db: SessionDep,
    current_user: OptionalUserDep,
    include_past: bool = False,
) -> list[EventOut]:
    """List community events ordered by their first session."""
    return event_service.list_events(
        db, community_id, _user_id(current_user), upcoming_only=not include_past
    )


@router.get("/{community_id}/documents", response_model=list[DocumentOut])
def list_documents(
    community_id: int,
    db: SessionDep,
    current_user: OptionalUserDep,
    status_filter: DocumentStatus | None = Query(None, alias="status"),
) -> list[DocumentOut]:
    documents = document_service.list_documents(
        db, community_id, _user_id(current_user), status_filter
    )
    return [DocumentOut.model_validate(document) for document in documents]


@router.get("/{community_id}/documents/{slug}", response_model=DocumentOut)
def get_document(
    community_id: int, slug: str, db: SessionDep, current_user: OptionalUserDep
) -> DocumentOut:
    document = document_service.get_document_by_slug(
        db, community_id, slug, _user_id(current_user)
    )
    if document is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")
    return DocumentOut.model_validate(document)


@router.get("/{community_id}/channels", response_model=ActionSuccess)
@action("Failed to load channels")
def list_channels(
    community_id: int, current_user: CurrentUserDep, db: SessionDep
) -> list[ChannelOut]:
    channels = channel_service.list_channels(db, current_user.id, community_id)
    return [ChannelOut.model_validate(channel) for channel in channels]
