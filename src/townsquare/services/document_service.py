"""Community documents: drafting, publishing and version history."""
from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from townsquare.core.settings import settings
from townsquare.db.time import utcnow
from townsquare.models import Community, Document, DocumentStatus, DocumentVersion, User
from townsquare.schemas.document import DocumentCreate, DocumentUpdate, LockStatus
from townsquare.services.errors import Conflict, NotFound, PermissionDenied
from townsquare.services.feed import can_view_community
from townsquare.services.lease import Lease
from townsquare.services.pagination import Page, fetch_page
from townsquare.services.permissions import Capability, require_capability, resolve_capability
from townsquare.services.rate_limit import RateLimiter, get_rate_limiter
from townsquare.services.slugs import unique_slug

logger = logging.getLogger(__name__)


def document_lease(document: Document) -> Lease:
    """Return the edit lease of a document."""
    return Lease(document, timedelta(seconds=settings.document_lease_seconds))


def lock_status(document: Document) -> LockStatus:
    lease = document_lease(document)
    holder = lease.holder()
    return LockStatus(
        document_id=document.id,
        locked_by_id=holder,
        locked_at=document.locked_at if holder is not None else None,
        expires_at=lease.expires_at() if holder is not None else None,
    )


def _live_document(db: Session, document_id: int) -> Document:
    document = db.execute(
        select(Document).where(Document.id == document_id, Document.deleted_at.is_(None))
    ).scalar_one_or_none()
    if document is None:
        raise NotFound("Document not found")
    return document


def _require_moderator(db: Session, user_id: int, document: Document, action: str) -> None:
    require_capability(
        db, user_id, document.community_id, Capability.MODERATOR,
        f"Only moderators and owners can {action}",
    )


def _reject_if_leased(db: Session, document: Document, user_id: int) -> None:
    lease = document_lease(document)
    holder = lease.holder()
    if holder is not None and holder != user_id:
        editor = db.get(User, holder)
        name = editor.name if editor is not None and editor.name else "another user"
        raise Conflict(f"Document is being edited by {name}")


def create_document(
    db: Session,
    user_id: int,
    payload: DocumentCreate,
    limiter: RateLimiter | None = None,
) -> Document:
    """Create a draft document; moderators and owners only."""
    (limiter or get_rate_limiter()).check("document", user_id)
    require_capability(
        db, user_id, payload.community_id, Capability.MODERATOR,
        "Only moderators and owners can create documents",
    )
    if db.get(Community, payload.community_id) is None:
        raise NotFound("Community not found")
    title = payload.title.strip()
    document = Document(
        community_id=payload.community_id,
        author_id=user_id,
        title=title,
        slug=unique_slug(
            db, Document, title, fallback="document", community_id=payload.community_id
        ),
        content=payload.content,
        content_html=payload.content_html,
        status=DocumentStatus.DRAFT,
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


def update_document(
    db: Session, user_id: int, document_id: int, payload: DocumentUpdate
) -> Document:
    """Edit a document unless someone else holds its edit lease.

    A new title regenerates the slug.

    Raises:
        NotFound: If the document is missing or deleted.
        PermissionDenied: If the caller is not a moderator.
        Conflict: If another user holds a live lease.
    """
    document = _live_document(db, document_id)
    _require_moderator(db, user_id, document, "edit documents")
    _reject_if_leased(db, document, user_id)

    if payload.title:
        document.title = payload.title.strip()
        document.slug = unique_slug(
            db,
            Document,
            document.title,
            fallback="document",
            community_id=document.community_id,
            exclude_id=document.id,
        )
    if payload.content is not None:
        document.content = payload.content
    if payload.content_html is not None:
        document.content_html = payload.content_html
    document.updated_at = utcnow()
    db.commit()
    db.refresh(document)
    return document


def publish_document(
    db: Session, user_id: int, document_id: int, change_note: str | None = None
) -> Document:
    """Snapshot the document as a new version and mark it published.

    The snapshot, the version bump, the status change and the lease release
    happen in one transaction.
    """
    document = _live_document(db, document_id)
    _require_moderator(db, user_id, document, "publish documents")
    _reject_if_leased(db, document, user_id)

    new_version = document.version + 1
    db.add(
        DocumentVersion(
            document_id=document.id,
            version=new_version,
            title=document.title,
            content=document.content,
            content_html=document.content_html,
            author_id=user_id,
            change_note=change_note,
        )
    )
    document.version = new_version
    document.status = DocumentStatus.PUBLISHED
    document.published_at = utcnow()
    document.locked_by_id = None
    document.locked_at = None
    db.commit()
    db.refresh(document)
    logger.info("Document %s published as version %s", document.id, new_version)
    return document


def archive_document(db: Session, user_id: int, document_id: int) -> Document:
    document = _live_document(db, document_id)
    _require_moderator(db, user_id, document, "archive documents")
    document.status = DocumentStatus.ARCHIVED
    document.locked_by_id = None
    document.locked_at = None
    db.commit()
    db.refresh(document)
    return document


def restore_document(db: Session, user_id: int, document_id: int) -> Document:
    """Bring an archived document back as a draft."""
    document = _live_document(db, document_id)
    _require_moderator(db, user_id, document, "restore documents")
    document.status = DocumentStatus.DRAFT
    db.commit()
    db.refresh(document)
    return document


def delete_document(db: Session, user_id: int, document_id: int) -> None:
    """Soft-delete a document and drop any lease on it."""
    document = _live_document(db, document_id)
    _require_moderator(db, user_id, document, "delete documents")
    document.deleted_at = utcnow()
    document.locked_by_id = None
    document.locked_at = None
    db.commit()


def pin_document(db: Session, user_id: int, document_id: int, is_pinned: bool) -> Document:
    document = _live_document(db, document_id)
    _require_moderator(db, user_id, document, "pin documents")
    document.is_pinned = is_pinned
    db.commit()
    db.refresh(document)
    return document


def lock_document(db: Session, user_id: int, document_id: int) -> LockStatus:
    """Acquire the edit lease for the caller.

    Raises:
        Conflict: If another user holds a live lease.
    """
    document = _live_document(db, document_id)
    _require_moderator(db, user_id, document, "edit documents")
    if not document_lease(document).acquire(db, user_id):
        _reject_if_leased(db, document, user_id)
        raise Conflict("Document is being edited by another user")
    db.commit()
    db.refresh(document)
    return lock_status(document)


def unlock_document(db: Session, user_id: int, document_id: int) -> LockStatus:
    """Release the lease as its holder, or force it as a moderator."""
    document = _live_document(db, document_id)
    is_moderator = resolve_capability(db, user_id, document.community_id) >= Capability.MODERATOR
    if not is_moderator and document.locked_by_id != user_id:
        raise PermissionDenied("You cannot unlock this document")
    document_lease(document).release(db, user_id, force=is_moderator)
    db.commit()
    db.refresh(document)
    return lock_status(document)


def refresh_document_lock(db: Session, user_id: int, document_id: int) -> LockStatus:
    """Heartbeat that keeps the caller's lease alive."""
    document = _live_document(db, document_id)
    if not document_lease(document).renew(db, user_id):
        raise PermissionDenied("You do not hold the lock on this document")
    db.commit()
    db.refresh(document)
    return lock_status(document)


def restore_version(db: Session, user_id: int, document_id: int, version_id: int) -> Document:
    """Copy a published snapshot back into the working document."""
    document = _live_document(db, document_id)
    _require_moderator(db, user_id, document, "restore versions")
    _reject_if_leased(db, document, user_id)
    version = db.get(DocumentVersion, version_id)
    if version is None or version.document_id != document_id:
        raise NotFound("Version not found")
    document.title = version.title
    document.content = version.content
    document.content_html = version.content_html
    document.updated_at = utcnow()
    db.commit()
    db.refresh(document)
    return document


def list_versions(
    db: Session,
    user_id: int,
    document_id: int,
    limit: int = 20,
    cursor: int | None = None,
) -> Page[DocumentVersion]:
    """Return version history newest first; moderators and owners only."""
    document = _live_document(db, document_id)
    _require_moderator(db, user_id, document, "view version history")
    stmt = select(DocumentVersion).where(DocumentVersion.document_id == document_id)
    return fetch_page(
        db,
        stmt,
        DocumentVersion,
        lambda entity: [entity.version, entity.id],
        max(1, min(limit, settings.feed_max_limit)),
        cursor,
    )


def _visible_statuses(
    db: Session, user_id: int | None, community_id: int
) -> list[DocumentStatus]:
    if resolve_capability(db, user_id, community_id) >= Capability.MODERATOR:
        return list(DocumentStatus)
    return [DocumentStatus.PUBLISHED]


def list_documents(
    db: Session,
    community_id: int,
    user_id: int | None = None,
    status: DocumentStatus | None = None,
) -> list[Document]:
    """List live documents, pinned first then most recently updated.

    Drafts and archived documents are listed for moderators only.
    """
    community = db.get(Community, community_id)
    if community is None or not can_view_community(db, community, user_id):
        return []
    statuses = _visible_statuses(db, user_id, community_id)
    if status is not None:
        statuses = [s for s in statuses if s == status]
    if not statuses:
        return []
    stmt = (
        select(Document)
        .where(
            Document.community_id == community_id,
            Document.deleted_at.is_(None),
            Document.status.in_(statuses),
        )
        .order_by(Document.is_pinned.desc(), Document.updated_at.desc(), Document.id.desc())
    )
    return list(db.execute(stmt).scalars())


def get_document_by_slug(
    db: Session, community_id: int, slug: str, user_id: int | None = None
) -> Document | None:
    """Return a live document; non-published ones are visible to moderators only."""
    community = db.get(Community, community_id)
    if community is None or not can_view_community(db, community, user_id):
        return None
    document = db.execute(
        select(Document).where(
            Document.community_id == community_id,
            Document.slug == slug,
            Document.deleted_at.is_(None),
        )
    ).scalar_one_or_none()
    if document is None or document.status not in _visible_statuses(db, user_id, community_id):
        return None
    return document
