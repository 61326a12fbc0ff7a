# tests/test_invites.py
"""Tests for community invitations."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from townsquare.core.settings import settings
from townsquare.db.time import utcnow
from townsquare.models import CommunityInvite, MemberRole
from townsquare.services.community_service import (
    accept_invite,
    cancel_invite,
    get_invite_by_token,
    list_invites,
    resend_invite,
    send_invite,
)
from townsquare.services.errors import (
    Conflict,
    InvalidInput,
    NotFound,
    PermissionDenied,
    RateLimited,
)
from townsquare.services.permissions import get_membership
from townsquare.services.rate_limit import BUDGETS, RateLimiter


def test_owner_invites_by_normalized_email(
    db_session, private_community, owner, outsider, no_limit
) -> None:
    dispatch = send_invite(
        db_session, owner.id, private_community.id, f"  {outsider.email.upper()} ", no_limit
    )
    invite = dispatch.invite
    assert invite.email == outsider.email
    assert invite.created_by_id == owner.id
    assert dispatch.message.to == outsider.email
    assert dispatch.message.accept_url == f"{settings.public_base_url}/invite/{invite.token}"
    assert dispatch.message.inviter_name == "Olive Owner"
    assert dispatch.message.community_name == "Board Room"


def test_members_cannot_invite(db_session, community, member, outsider, no_limit) -> None:
    with pytest.raises(PermissionDenied, match="Only moderators and owners"):
        send_invite(db_session, member.id, community.id, outsider.email, no_limit)


def test_moderators_can_invite(
    db_session, community, make_user, join, outsider, no_limit
) -> None:
    moderator = make_user("Mona Moderator")
    join(community, moderator, MemberRole.MODERATOR)
    dispatch = send_invite(db_session, moderator.id, community.id, outsider.email, no_limit)
    assert dispatch.invite.community_id == community.id


def test_existing_member_and_live_invite_conflict(
    db_session, community, owner, member, outsider, no_limit
) -> None:
    with pytest.raises(Conflict, match="already a member"):
        send_invite(db_session, owner.id, community.id, member.email, no_limit)
    send_invite(db_session, owner.id, community.id, outsider.email, no_limit)
    with pytest.raises(Conflict, match="already been sent"):
        send_invite(db_session, owner.id, community.id, outsider.email, no_limit)


def test_expired_invite_is_reissued(
    db_session, private_community, owner, outsider, no_limit
) -> None:
    first = send_invite(db_session, owner.id, private_community.id, outsider.email, no_limit)
    old_token = first.invite.token
    first.invite.expires_at = utcnow() - timedelta(minutes=1)
    db_session.commit()

    second = send_invite(db_session, owner.id, private_community.id, outsider.email, no_limit)

    assert second.invite.id == first.invite.id
    assert second.invite.token != old_token
    rows = db_session.execute(select(CommunityInvite)).scalars().all()
    assert len(rows) == 1


def test_accept_joins_private_community(
    db_session, private_community, owner, outsider, no_limit
) -> None:
    token = send_invite(
        db_session, owner.id, private_community.id, outsider.email, no_limit
    ).invite.token

    result = accept_invite(db_session, outsider.id, token)

    assert result.community_slug == private_community.slug
    membership = get_membership(db_session, outsider.id, private_community.id)
    assert membership is not None
    assert membership.role == MemberRole.MEMBER
    assert db_session.execute(select(CommunityInvite)).first() is None
    assert get_invite_by_token(db_session, token) is None


def test_accept_rejects_other_users_and_expired_tokens(
    db_session, private_community, owner, outsider, member, no_limit
) -> None:
    dispatch = send_invite(db_session, owner.id, private_community.id, outsider.email, no_limit)
    with pytest.raises(PermissionDenied, match="different email address"):
        accept_invite(db_session, member.id, dispatch.invite.token)
    with pytest.raises(NotFound):
        accept_invite(db_session, outsider.id, "no-such-token")

    dispatch.invite.expires_at = utcnow() - timedelta(seconds=1)
    db_session.commit()
    with pytest.raises(InvalidInput, match="expired"):
        accept_invite(db_session, outsider.id, dispatch.invite.token)
    assert get_membership(db_session, outsider.id, private_community.id) is None


def test_accept_as_existing_member_consumes_invite(
    db_session, community, owner, outsider, join, no_limit
) -> None:
    token = send_invite(db_session, owner.id, community.id, outsider.email, no_limit).invite.token
    join(community, outsider)
    result = accept_invite(db_session, outsider.id, token)
    assert result.community_id == community.id
    assert db_session.execute(select(CommunityInvite)).first() is None


def test_listing_resend_and_cancel(
    db_session, community, owner, member, outsider, no_limit
) -> None:
    dispatch = send_invite(db_session, owner.id, community.id, outsider.email, no_limit)
    old_token = dispatch.invite.token

    listed = list_invites(db_session, owner.id, community.id)
    assert [item.email for item in listed] == [outsider.email]
    assert listed[0].created_by.id == owner.id
    assert list_invites(db_session, member.id, community.id) == []
    assert list_invites(db_session, None, community.id) == []

    resent = resend_invite(db_session, owner.id, dispatch.invite.id, no_limit)
    assert resent.invite.token != old_token
    assert resent.message.reminder is True

    with pytest.raises(PermissionDenied):
        cancel_invite(db_session, member.id, dispatch.invite.id)
    cancel_invite(db_session, owner.id, dispatch.invite.id)
    assert list_invites(db_session, owner.id, community.id) == []


def test_invites_are_rate_limited(db_session, community, owner, make_user) -> None:
    limiter = RateLimiter(redis_url="", enabled=True)
    for _ in range(BUDGETS["invite"].limit):
        limiter.check("invite", owner.id)
    with pytest.raises(RateLimited, match="sending invites too quickly"):
        send_invite(db_session, owner.id, community.id, make_user().email, limiter)
