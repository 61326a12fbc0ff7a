# src/townsquare/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .auth import router as auth_router
from .channels import router as channels_router
from .comments import router as comments_router
from .communities import router as communities_router
from .documents import router as documents_router
from .events import router as events_router
from .invites import router as invites_router
from .posts import router as posts_router
from .system import router as system_router
from .votes import router as votes_router

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
