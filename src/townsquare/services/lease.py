"""Short exclusive edit leases stored on the leased row itself."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from townsquare.db.time import ensure_utc, utcnow


class Lease:
    """Edit lease over a row exposing ``locked_by_id`` and ``locked_at``.

    A lease whose ``locked_at`` is older than ``ttl`` is expired and counts
    as free. Acquisition is a single conditional UPDATE, so two users racing
    for a free lease cannot both win.
    """

    def __init__(self, resource: Any, ttl: timedelta) -> None:
        self.resource = resource
        self.ttl = ttl

    def holder(self, now: datetime | None = None) -> int | None:
        """Return the user holding a live lease, or None when free or expired."""
        locked_by = self.resource.locked_by_id
        locked_at = self.resource.locked_at
        if locked_by is None or locked_at is None:
            return None
        moment = utcnow() if now is None else ensure_utc(now)
        if moment - ensure_utc(locked_at) >= self.ttl:
            return None
        return locked_by

    def is_held_by_other(self, user_id: int, now: datetime | None = None) -> bool:
        holder = self.holder(now)
        return holder is not None and holder != user_id

    def expires_at(self) -> datetime | None:
        if self.resource.locked_at is None or self.resource.locked_by_id is None:
            return None
        return ensure_utc(self.resource.locked_at) + self.ttl

    def _update(self, db: Session, *criteria: Any, **values: Any) -> bool:
        model = type(self.resource)
        result = db.execute(
            update(model)
            .where(model.id == self.resource.id, *criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        db.refresh(self.resource)
        return result.rowcount == 1

    def acquire(self, db: Session, user_id: int, now: datetime | None = None) -> bool:
        """Take the lease if it is free, expired or already ours.

        Returns:
            True if the caller holds the lease afterwards.
        """
        moment = utcnow() if now is None else ensure_utc(now)
        model = type(self.resource)
        return self._update(
            db,
            or_(
                model.locked_by_id.is_(None),
                model.locked_by_id == user_id,
                model.locked_at.is_(None),
                model.locked_at <= moment - self.ttl,
            ),
            locked_by_id=user_id,
            locked_at=moment,
        )

    def renew(self, db: Session, user_id: int, now: datetime | None = None) -> bool:
        """Extend the lease; only its current holder may."""
        moment = utcnow() if now is None else ensure_utc(now)
        model = type(self.resource)
        return self._update(db, model.locked_by_id == user_id, locked_at=moment)

    def release(self, db: Session, user_id: int | None = None, *, force: bool = False) -> bool:
        """Drop the lease; ``force`` releases it regardless of the holder."""
        model = type(self.resource)
        criteria = [] if force else [model.locked_by_id == user_id]
        return self._update(db, *criteria, locked_by_id=None, locked_at=None)
