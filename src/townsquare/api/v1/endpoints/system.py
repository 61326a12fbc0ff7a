"""System and configuration endpoints for the Townsquare API."""

from __future__ import annotations

from fastapi import APIRouter

from townsquare.core.settings import settings
from townsquare.services.rate_limit import BUDGETS

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings.

    Returns:
        Application identity, feed and comment limits, the document lock
        lifetime, invitation expiry and the per-action rate limits.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "access_token_expire_minutes": settings.access_token_expire_minutes,
            "dev_login_enabled": settings.dev_login_enabled,
        },
        "feed": {
            "default_limit": settings.feed_default_limit,
            "max_limit": settings.feed_max_limit,
            "hot_decay_seconds": settings.hot_decay_seconds,
        },
        "comments": {
            "default_limit": settings.comments_default_limit,
            "replies_default_limit": settings.replies_default_limit,
            "max_depth": settings.max_comment_depth,
        },
        "documents": {"lock_seconds": settings.document_lease_seconds},
        "invites": {"expiry_days": settings.invite_expiry_days},
        "rate_limits": {
            "enabled": settings.rate_limit_enabled,
            "budgets": {
                name: {"limit": budget.limit, "window_seconds": budget.window_seconds}
                for name, budget in BUDGETS.items()
            },
        },
    }
