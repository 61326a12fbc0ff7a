"""Community capability resolution."""

from __future__ import annotations

import enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from townsquare.models import Member, MemberRole
from townsquare.services.errors import PermissionDenied


class Capability(enum.IntEnum):
    """What a user may do inside one community; higher values include lower ones."""

    NONE = 0
    MEMBER = 1
    MODERATOR = 2
    OWNER = 3


_ROLE_CAPABILITY = {
    MemberRole.MEMBER: Capability.MEMBER,
    MemberRole.MODERATOR: Capability.MODERATOR,
    MemberRole.OWNER: Capability.OWNER,
}


def get_membership(db: Session, user_id: int | None, community_id: int) -> Member | None:
    """Return the membership row for the user, if any."""
    if user_id is None:
        return None
    return db.execute(
        select(Member).where(Member.user_id == user_id, Member.community_id == community_id)
    ).scalar_one_or_none()


def resolve_capability(db: Session, user_id: int | None, community_id: int) -> Capability:
    """Map the caller's membership role onto a capability level.

    Anonymous callers and non-members resolve to ``Capability.NONE``.
    """
    membership = get_membership(db, user_id, community_id)
    if membership is None:
        return Capability.NONE
    return _ROLE_CAPABILITY[membership.role]


def require_capability(
    db: Session,
    user_id: int | None,
    community_id: int,
    minimum: Capability,
    message: str,
) -> Capability:
    """Resolve the caller's capability and fail unless it reaches ``minimum``.

    Args:
        db: Active session.
        user_id: Acting user.
        community_id: Community the operation targets.
        minimum: Lowest capability allowed to proceed.
        message: Error text reported when the check fails.

    Returns:
        The caller's resolved capability.

    Raises:
        PermissionDenied: If the caller's capability is below ``minimum``.
    """
    capability = resolve_capability(db, user_id, community_id)
    if capability < minimum:
        raise PermissionDenied(message)
    return capability
