# src/townsquare/api/v1/endpoints/comments.py
"""Comment editing endpoints for the Townsquare API."""

from fastapi import APIRouter

from townsquare.schemas.comment import CommentOut, CommentUpdate
from townsquare.schemas.common import ActionSuccess
from townsquare.services import comment_service

from ..actions import action
from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/comments", tags=["comments"])


@router.patch("/{comment_id}", response_model=ActionSuccess)
@action("Failed to update comment")
def update_comment(
    comment_id: int, payload: CommentUpdate, current_user: CurrentUserDep, db: SessionDep
) -> CommentOut:
    """Edit a comment; authors only."""
    comment = comment_service.update_comment(db, current_user.id, comment_id, payload.content)
    return CommentOut.model_validate(comment)


@router.delete("/{comment_id}", response_model=ActionSuccess)
@action("Failed to delete comment")
def delete_comment(comment_id: int, current_user: CurrentUserDep, db: SessionDep) -> None:
    """Soft-delete a comment as its author or a moderator."""
    comment_service.delete_comment(db, current_user.id, comment_id)
