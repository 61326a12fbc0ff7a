# src/townsquare/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    channels_router,
    comments_router,
    communities_router,
    documents_router,
    events_router,
    invites_router,
    posts_router,
    system_router,
    votes_router,
)

__all__ = [
    "auth_router",
    "communities_router",
    "posts_router",
    "comments_router",
    "votes_router",
    "events_router",
    "invites_router",
    "documents_router",
    "channels_router",
    "system_router",
]
