"""Community lifecycle and membership management."""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from townsquare.core.settings import settings
from townsquare.db.time import ensure_utc, utcnow
from townsquare.models import (
    ChatChannel,
    Community,
    CommunityInvite,
    CommunityVisibility,
    Event,
    Member,
    MemberRole,
    User,
    event_co_organizer,
)
from townsquare.schemas.community import (
    AcceptInviteResult,
    CommunityCreate,
    CommunityOut,
    InviteOut,
    InvitePreview,
    MemberOut,
    RemoveMemberResult,
)
from townsquare.schemas.user import UserSummary
from townsquare.services.email import CommunityInviteMessage
from townsquare.services.errors import Conflict, InvalidInput, NotFound, PermissionDenied
from townsquare.services.pagination import Page, fetch_page
from townsquare.services.permissions import (
    Capability,
    get_membership,
    require_capability,
    resolve_capability,
)
from townsquare.services.ranking import chronological
from townsquare.services.rate_limit import RateLimiter, get_rate_limiter
from townsquare.services.slugs import unique_slug

logger = logging.getLogger(__name__)

DEFAULT_CHANNEL_NAME = "general"


def _community_or_404(db: Session, community_id: int) -> Community:
    community = db.get(Community, community_id)
    if community is None:
        raise NotFound("Community not found")
    return community


def member_counts(db: Session, community_ids: list[int]) -> dict[int, int]:
    if not community_ids:
        return {}
    rows = db.execute(
        select(Member.community_id, func.count(Member.id))
        .where(Member.community_id.in_(community_ids))
        .group_by(Member.community_id)
    )
    return {community_id: int(count) for community_id, count in rows}


def to_community_out(
    db: Session, community: Community, user_id: int | None, count: int | None = None
) -> CommunityOut:
    out = CommunityOut.model_validate(community)
    out.member_count = (
        count if count is not None else member_counts(db, [community.id]).get(community.id, 0)
    )
    membership = get_membership(db, user_id, community.id)
    out.viewer_role = membership.role if membership is not None else None
    return out


def create_community(
    db: Session,
    user_id: int,
    payload: CommunityCreate,
    limiter: RateLimiter | None = None,
) -> Community:
    """Create a community owned by the caller.

    The community, the owner's membership and the default ``general`` chat
    channel are committed together.

    Raises:
        RateLimited: If the caller created communities too quickly.
        Conflict: If an explicitly requested slug is taken.
    """
    (limiter or get_rate_limiter()).check("community", user_id)
    if payload.slug is not None:
        taken = db.execute(select(Community.id).where(Community.slug == payload.slug)).first()
        if taken is not None:
            raise Conflict("This URL slug is already taken")
        slug = payload.slug
    else:
        slug = unique_slug(db, Community, payload.name, fallback="community")

    community = Community(
        slug=slug,
        name=payload.name.strip(),
        description=payload.description,
        visibility=payload.visibility,
        owner_id=user_id,
    )
    db.add(community)
    db.flush()
    db.add(Member(user_id=user_id, community_id=community.id, role=MemberRole.OWNER))
    db.add(
        ChatChannel(
            community_id=community.id,
            name=DEFAULT_CHANNEL_NAME,
            description="General discussion",
        )
    )
    db.commit()
    db.refresh(community)
    logger.info("Community %s created by user %s", community.slug, user_id)
    return community


def get_community_by_slug(
    db: Session, slug: str, user_id: int | None = None
) -> CommunityOut | None:
    """Return a community by slug with the caller's role attached."""
    community = db.execute(select(Community).where(Community.slug == slug)).scalar_one_or_none()
    if community is None:
        return None
    return to_community_out(db, community, user_id)


def list_communities(
    db: Session,
    user_id: int | None = None,
    limit: int = 20,
    cursor: int | None = None,
) -> Page[CommunityOut]:
    """List public communities plus private ones the caller belongs to, newest first."""
    visible = Community.visibility == CommunityVisibility.PUBLIC
    if user_id is not None:
        member_of = select(Member.community_id).where(Member.user_id == user_id)
        visible = visible | Community.id.in_(member_of)
    page = fetch_page(db, select(Community).where(visible), Community, chronological, limit, cursor)
    counts = member_counts(db, [community.id for community in page.items])
    return Page(
        items=[
            to_community_out(db, community, user_id, counts.get(community.id, 0))
            for community in page.items
        ],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


def list_members(db: Session, community_id: int, user_id: int | None) -> list[MemberOut]:
    """Return the member list; private communities show it to members only."""
    community = _community_or_404(db, community_id)
    if community.visibility == CommunityVisibility.PRIVATE:
        require_capability(
            db, user_id, community_id, Capability.MEMBER,
            "You must be a member to view this community",
        )
    rows = db.execute(
        select(Member, User)
        .join(User, User.id == Member.user_id)
        .where(Member.community_id == community_id)
        .order_by(Member.joined_at.asc(), Member.id.asc())
    ).all()
    results = []
    for member, user in rows:
        out = MemberOut.model_validate(member)
        out.user = UserSummary.model_validate(user)
        results.append(out)
    return results


def join_community(
    db: Session,
    user_id: int,
    community_id: int,
    limiter: RateLimiter | None = None,
) -> Member:
    """Join a public community as a regular member."""
    (limiter or get_rate_limiter()).check("membership", user_id)
    community = _community_or_404(db, community_id)
    if community.visibility != CommunityVisibility.PUBLIC:
        raise PermissionDenied("This is a private community. You need an invitation to join.")
    if get_membership(db, user_id, community_id) is not None:
        raise Conflict("You are already a member of this community")
    member = Member(user_id=user_id, community_id=community_id, role=MemberRole.MEMBER)
    db.add(member)
    db.commit()
    db.refresh(member)
    return member


def leave_community(db: Session, user_id: int, community_id: int) -> None:
    """Leave a community; owners must transfer or delete it instead."""
    _community_or_404(db, community_id)
    membership = get_membership(db, user_id, community_id)
    if membership is None:
        raise InvalidInput("You are not a member of this community")
    if membership.role == MemberRole.OWNER:
        raise PermissionDenied(
            "As the owner, you cannot leave the community. "
            "You must transfer ownership or delete the community."
        )
    db.delete(membership)
    db.commit()


def remove_member(
    db: Session, user_id: int, community_id: int, member_id: int
) -> RemoveMemberResult:
    """Remove a member and hand their events to the owner.

    Events organized by the removed user are reassigned to the acting owner,
    the user is dropped from every co-organizer list in the community and the
    membership is deleted, all in one transaction.

    Args:
        db: Active session.
        user_id: Acting owner.
        community_id: Community to remove the member from.
        member_id: Membership row id.

    Returns:
        The removed user and the number of events reassigned to the owner.

    Raises:
        PermissionDenied: If the caller is not the owner.
        NotFound: If the membership does not exist.
        InvalidInput: If the target is the owner or belongs elsewhere.
    """
    _community_or_404(db, community_id)
    require_capability(
        db, user_id, community_id, Capability.OWNER, "Only the community owner can remove members"
    )
    member = db.get(Member, member_id)
    if member is None:
        raise NotFound("Member not found")
    if member.community_id != community_id:
        raise InvalidInput("Member does not belong to this community")
    if member.role == MemberRole.OWNER:
        raise InvalidInput("Cannot remove the community owner")

    removed_user_id = member.user_id
    transferred_ids = list(
        db.execute(
            select(Event.id).where(
                Event.community_id == community_id, Event.organizer_id == removed_user_id
            )
        ).scalars()
    )
    if transferred_ids:
        db.execute(
            update(Event)
            .where(Event.id.in_(transferred_ids))
            .values(organizer_id=user_id)
            .execution_options(synchronize_session=False)
        )
        # The new organizer is no longer also a co-organizer.
        db.execute(
            delete(event_co_organizer).where(
                event_co_organizer.c.user_id == user_id,
                event_co_organizer.c.event_id.in_(transferred_ids),
            )
        )
    transferred = len(transferred_ids)
    community_events = select(Event.id).where(Event.community_id == community_id)
    db.execute(
        delete(event_co_organizer).where(
            event_co_organizer.c.user_id == removed_user_id,
            event_co_organizer.c.event_id.in_(community_events),
        )
    )
    db.delete(member)
    db.commit()
    logger.info(
        "User %s removed from community %s; %s events transferred",
        removed_user_id, community_id, transferred,
    )
    return RemoveMemberResult(
        removed_user_id=removed_user_id, transferred_events=transferred
    )


def set_member_role(
    db: Session, user_id: int, community_id: int, member_id: int, role: MemberRole
) -> Member:
    """Promote a member to moderator or demote a moderator; owner only."""
    _community_or_404(db, community_id)
    require_capability(
        db, user_id, community_id, Capability.OWNER,
        "Only the community owner can change member roles",
    )
    if role == MemberRole.OWNER:
        raise InvalidInput("Ownership cannot be granted through a role change")
    member = db.get(Member, member_id)
    if member is None:
        raise NotFound("Member not found")
    if member.community_id != community_id:
        raise InvalidInput("Member does not belong to this community")
    if member.user_id == user_id:
        raise InvalidInput("Cannot change your own role")
    if member.role == MemberRole.OWNER:
        raise InvalidInput("Cannot change the owner's role")
    if member.role == role:
        raise Conflict(
            "Member is already a moderator"
            if role == MemberRole.MODERATOR
            else "User is not a moderator"
        )
    member.role = role
    db.commit()
    db.refresh(member)
    return member


@dataclass(frozen=True)
class InviteDispatch:
    """A stored invitation and the email that delivers it."""

    invite: CommunityInvite
    message: CommunityInviteMessage


def _invite_message(
    db: Session, invite: CommunityInvite, community: Community, *, reminder: bool = False
) -> CommunityInviteMessage:
    inviter = db.get(User, invite.created_by_id)
    return CommunityInviteMessage(
        to=invite.email,
        community_name=community.name,
        community_description=community.description,
        inviter_name=inviter.name if inviter is not None and inviter.name else "A community owner",
        accept_url=f"{settings.public_base_url}/invite/{invite.token}",
        expires_in_days=settings.invite_expiry_days,
        reminder=reminder,
    )


def _invite_or_404(db: Session, invite_id: int) -> CommunityInvite:
    invite = db.get(CommunityInvite, invite_id)
    if invite is None:
        raise NotFound("Invite not found")
    return invite


def _is_expired(invite: CommunityInvite) -> bool:
    return ensure_utc(invite.expires_at) <= utcnow()


def send_invite(
    db: Session,
    user_id: int,
    community_id: int,
    email: str,
    limiter: RateLimiter | None = None,
) -> InviteDispatch:
    """Invite an email address into a community.

    An expired invitation for the same address is reissued with a fresh
    token instead of creating a second row.

    Args:
        db: Active session.
        user_id: Inviting moderator or owner.
        community_id: Community to invite into.
        email: Address to invite; compared case-insensitively.
        limiter: Rate limiter; defaults to the configured one.

    Returns:
        The stored invite and the email to deliver once committed.

    Raises:
        RateLimited: If the caller invites too quickly.
        NotFound: If the community does not exist.
        PermissionDenied: If the caller is not a moderator or owner.
        Conflict: If the address already belongs to a member or has a live invite.
    """
    (limiter or get_rate_limiter()).check("invite", user_id)
    address = email.strip().lower()
    community = _community_or_404(db, community_id)
    require_capability(
        db, user_id, community_id, Capability.MODERATOR,
        "Only moderators and owners can send invites",
    )
    already_member = db.execute(
        select(Member.id)
        .join(User, User.id == Member.user_id)
        .where(Member.community_id == community_id, func.lower(User.email) == address)
    ).first()
    if already_member is not None:
        raise Conflict("This person is already a member of the community")

    expires_at = utcnow() + timedelta(days=settings.invite_expiry_days)
    invite = db.execute(
        select(CommunityInvite).where(
            CommunityInvite.community_id == community_id, CommunityInvite.email == address
        )
    ).scalar_one_or_none()
    if invite is not None:
        if not _is_expired(invite):
            raise Conflict("An invite has already been sent to this email")
        invite.token = secrets.token_urlsafe(32)
        invite.expires_at = expires_at
        invite.created_by_id = user_id
        invite.created_at = utcnow()
    else:
        invite = CommunityInvite(
            community_id=community_id,
            email=address,
            token=secrets.token_urlsafe(32),
            created_by_id=user_id,
            expires_at=expires_at,
        )
        db.add(invite)
    db.commit()
    db.refresh(invite)
    logger.info("Invite %s sent for community %s by user %s", invite.id, community_id, user_id)
    return InviteDispatch(invite=invite, message=_invite_message(db, invite, community))


def resend_invite(
    db: Session,
    user_id: int,
    invite_id: int,
    limiter: RateLimiter | None = None,
) -> InviteDispatch:
    """Regenerate an invite's token, extend its expiry and send a reminder."""
    (limiter or get_rate_limiter()).check("invite", user_id)
    invite = _invite_or_404(db, invite_id)
    community = _community_or_404(db, invite.community_id)
    require_capability(
        db, user_id, community.id, Capability.MODERATOR,
        "Only moderators and owners can resend invites",
    )
    invite.token = secrets.token_urlsafe(32)
    invite.expires_at = utcnow() + timedelta(days=settings.invite_expiry_days)
    db.commit()
    db.refresh(invite)
    return InviteDispatch(
        invite=invite, message=_invite_message(db, invite, community, reminder=True)
    )


def cancel_invite(db: Session, user_id: int, invite_id: int) -> None:
    invite = _invite_or_404(db, invite_id)
    require_capability(
        db, user_id, invite.community_id, Capability.MODERATOR,
        "Only moderators and owners can cancel invites",
    )
    db.delete(invite)
    db.commit()


def list_invites(db: Session, user_id: int | None, community_id: int) -> list[InviteOut]:
    """Return pending invites newest first; empty for anyone below moderator."""
    if resolve_capability(db, user_id, community_id) < Capability.MODERATOR:
        return []
    rows = db.execute(
        select(CommunityInvite, User)
        .join(User, User.id == CommunityInvite.created_by_id)
        .where(CommunityInvite.community_id == community_id)
        .order_by(CommunityInvite.created_at.desc(), CommunityInvite.id.desc())
    ).all()
    results = []
    for invite, creator in rows:
        out = InviteOut.model_validate(invite)
        out.created_by = UserSummary.model_validate(creator)
        results.append(out)
    return results


def get_invite_by_token(db: Session, token: str) -> InvitePreview | None:
    """Describe an invitation for its accept page, or None for an unknown token."""
    invite = db.execute(
        select(CommunityInvite).where(CommunityInvite.token == token)
    ).scalar_one_or_none()
    if invite is None:
        return None
    community = db.get(Community, invite.community_id)
    if community is None:
        return None
    return InvitePreview(
        email=invite.email,
        expires_at=ensure_utc(invite.expires_at),
        expired=_is_expired(invite),
        community=to_community_out(db, community, None),
    )


def accept_invite(db: Session, user_id: int, token: str) -> AcceptInviteResult:
    """Redeem an invitation as the invited user.

    The membership is created and the invite consumed in one transaction.
    Accepting while already a member only consumes the invite.

    Raises:
        NotFound: If no invite carries the token.
        InvalidInput: If the invite has expired.
        PermissionDenied: If the caller's email differs from the invited address.
    """
    invite = db.execute(
        select(CommunityInvite).where(CommunityInvite.token == token)
    ).scalar_one_or_none()
    if invite is None:
        raise NotFound("Invite not found")
    if _is_expired(invite):
        raise InvalidInput("This invite has expired")
    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    if user.email.lower() != invite.email.lower():
        raise PermissionDenied("This invite was sent to a different email address")
    community = _community_or_404(db, invite.community_id)

    if get_membership(db, user_id, community.id) is None:
        db.add(Member(user_id=user_id, community_id=community.id, role=MemberRole.MEMBER))
    db.delete(invite)
    db.commit()
    logger.info("User %s joined community %s by invite", user_id, community.id)
    return AcceptInviteResult(community_id=community.id, community_slug=community.slug)
