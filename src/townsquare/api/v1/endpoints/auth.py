# src/townsquare/api/v1/endpoints/auth.py
"""Authentication endpoints for the Townsquare API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select

from townsquare.core.security import create_access_token
from townsquare.core.settings import settings
from townsquare.models import User
from townsquare.schemas.user import DevLoginRequest, TokenResponse, UserSummary

from ..dependencies import CurrentUserDep, SessionDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/dev-login", response_model=TokenResponse)
def dev_login(payload: DevLoginRequest, db: SessionDep) -> TokenResponse:
    """Sign in by email without verification; development environments only.

    Creates the account on first use.

    Raises:
        HTTPException: 404 when development sign-in is disabled.
    """
    if not settings.dev_login_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    email = payload.email.lower()
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is None:
        user = User(email=email, name=payload.name or email.split("@", 1)[0])
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Created development account %s", user.id)
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=UserSummary.model_validate(user),
    )


@router.get("/me", response_model=UserSummary)
def read_me(current_user: CurrentUserDep) -> UserSummary:
    """Return the authenticated user."""
    return UserSummary.model_validate(current_user)
