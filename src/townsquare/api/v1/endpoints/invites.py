# src/townsquare/api/v1/endpoints/invites.py
"""Community invitation endpoints for the Townsquare API."""

from fastapi import APIRouter, BackgroundTasks, HTTPException, status

from townsquare.schemas.common import ActionSuccess
from townsquare.schemas.community import (
    AcceptInviteResult,
    InviteAccept,
    InviteCreate,
    InviteOut,
    InvitePreview,
)
from townsquare.services import community_service
from townsquare.services.email import EmailClient

from ..actions import action
from ..dependencies import (
    CurrentUserDep,
    EmailClientDep,
    OptionalUserDep,
    RateLimiterDep,
    SessionDep,
)

router = APIRouter(tags=["invites"])


def _queue_email(
    background_tasks: BackgroundTasks,
    email_client: EmailClient,
    dispatch: community_service.InviteDispatch,
) -> None:
    if email_client.enabled:
        background_tasks.add_task(email_client.send_community_invite, dispatch.message)


@router.get("/communities/{community_id}/invites", response_model=list[InviteOut])
def list_invites(
    community_id: int, db: SessionDep, current_user: OptionalUserDep
) -> list[InviteOut]:
    """List pending invites; moderators and owners only, empty otherwise."""
    return community_service.list_invites(db, getattr(current_user, "id", None), community_id)


@router.post(
    "/communities/{community_id}/invites",
    status_code=status.HTTP_201_CREATED,
    response_model=ActionSuccess,
)
@action("Failed to send invite")
def send_invite(
    community_id: int,
    payload: InviteCreate,
    background_tasks: BackgroundTasks,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
    email_client: EmailClientDep,
) -> InviteOut:
    """Invite an email address and queue the invitation email."""
    dispatch = community_service.send_invite(
        db, current_user.id, community_id, payload.email, limiter
    )
    _queue_email(background_tasks, email_client, dispatch)
    return InviteOut.model_validate(dispatch.invite)


@router.get("/invites/{token}", response_model=InvitePreview)
def read_invite(token: str, db: SessionDep) -> InvitePreview:
    preview = community_service.get_invite_by_token(db, token)
    if preview is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invite not found")
    return preview


@router.post("/invites/accept", response_model=ActionSuccess)
@action("Failed to accept invite")
def accept_invite(
    payload: InviteAccept, current_user: CurrentUserDep, db: SessionDep
) -> AcceptInviteResult:
    return community_service.accept_invite(db, current_user.id, payload.token)


@router.post("/invites/{invite_id}/resend", response_model=ActionSuccess)
@action("Failed to resend invite")
def resend_invite(
    invite_id: int,
    background_tasks: BackgroundTasks,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
    email_client: EmailClientDep,
) -> InviteOut:
    dispatch = community_service.resend_invite(db, current_user.id, invite_id, limiter)
    _queue_email(background_tasks, email_client, dispatch)
    return InviteOut.model_validate(dispatch.invite)


@router.delete("/invites/{invite_id}", response_model=ActionSuccess)
@action("Failed to cancel invite")
def cancel_invite(invite_id: int, current_user: CurrentUserDep, db: SessionDep) -> None:
    community_service.cancel_invite(db, current_user.id, invite_id)
