# src/townsquare/api/v1/endpoints/documents.py
"""Document endpoints for the Townsquare API."""

from fastapi import APIRouter, Query, status

from townsquare.schemas.common import ActionSuccess, PageResponse
from townsquare.schemas.document import (
    DocumentCreate,
    DocumentOut,
    DocumentUpdate,
    DocumentVersionOut,
    LockStatus,
    PublishRequest,
)
from townsquare.schemas.post import PinRequest
from townsquare.services import document_service

from ..actions import action
from ..dependencies import CurrentUserDep, RateLimiterDep, SessionDep

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ActionSuccess)
@action("Failed to create document")
def create_document(
    payload: DocumentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> DocumentOut:
    document = document_service.create_document(db, current_user.id, payload, limiter)
    return DocumentOut.model_validate(document)


@router.patch("/{document_id}", response_model=ActionSuccess)
@action("Failed to update document")
def update_document(
    document_id: int, payload: DocumentUpdate, current_user: CurrentUserDep, db: SessionDep
) -> DocumentOut:
    """Edit a document; rejected while another user holds the edit lock."""
    document = document_service.update_document(db, current_user.id, document_id, payload)
    return DocumentOut.model_validate(document)


@router.post("/{document_id}/publish", response_model=ActionSuccess)
@action("Failed to publish document")
def publish_document(
    document_id: int, payload: PublishRequest, current_user: CurrentUserDep, db: SessionDep
) -> DocumentOut:
    document = document_service.publish_document(
        db, current_user.id, document_id, payload.change_note
    )
    return DocumentOut.model_validate(document)


@router.post("/{document_id}/archive", response_model=ActionSuccess)
@action("Failed to archive document")
def archive_document(document_id: int, current_user: CurrentUserDep, db: SessionDep) -> DocumentOut:
    document = document_service.archive_document(db, current_user.id, document_id)
    return DocumentOut.model_validate(document)


@router.post("/{document_id}/restore", response_model=ActionSuccess)
@action("Failed to restore document")
def restore_document(document_id: int, current_user: CurrentUserDep, db: SessionDep) -> DocumentOut:
    document = document_service.restore_document(db, current_user.id, document_id)
    return DocumentOut.model_validate(document)


@router.delete("/{document_id}", response_model=ActionSuccess)
@action("Failed to delete document")
def delete_document(document_id: int, current_user: CurrentUserDep, db: SessionDep) -> None:
    document_service.delete_document(db, current_user.id, document_id)


@router.post("/{document_id}/pin", response_model=ActionSuccess)
@action("Failed to pin document")
def pin_document(
    document_id: int, payload: PinRequest, current_user: CurrentUserDep, db: SessionDep
) -> DocumentOut:
    document = document_service.pin_document(
        db, current_user.id, document_id, payload.is_pinned
    )
    return DocumentOut.model_validate(document)


@router.post("/{document_id}/lock", response_model=ActionSuccess)
@action("Failed to lock document")
def lock_document(document_id: int, current_user: CurrentUserDep, db: SessionDep) -> LockStatus:
    """Acquire the edit lock; it lapses unless refreshed."""
    return document_service.lock_document(db, current_user.id, document_id)


@router.post("/{document_id}/lock/refresh", response_model=ActionSuccess)
@action("Failed to refresh document lock")
def refresh_lock(document_id: int, current_user: CurrentUserDep, db: SessionDep) -> LockStatus:
    return document_service.refresh_document_lock(db, current_user.id, document_id)


@router.delete("/{document_id}/lock", response_model=ActionSuccess)
@action("Failed to unlock document")
def unlock_document(document_id: int, current_user: CurrentUserDep, db: SessionDep) -> LockStatus:
    return document_service.unlock_document(db, current_user.id, document_id)


@router.get("/{document_id}/versions", response_model=ActionSuccess)
@action("Failed to load version history")
def list_versions(
    document_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(20, ge=1, le=50),
    cursor: int | None = None,
) -> PageResponse[DocumentVersionOut]:
    page = document_service.list_versions(db, current_user.id, document_id, limit, cursor)
    return PageResponse[DocumentVersionOut](
        items=[DocumentVersionOut.model_validate(version) for version in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.post("/{document_id}/versions/{version_id}/restore", response_model=ActionSuccess)
@action("Failed to restore version")
def restore_version(
    document_id: int, version_id: int, current_user: CurrentUserDep, db: SessionDep
) -> DocumentOut:
    """Copy an earlier published version back into the document."""
    document = document_service.restore_version(db, current_user.id, document_id, version_id)
    return DocumentOut.model_validate(document)
