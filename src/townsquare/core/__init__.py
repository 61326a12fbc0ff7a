"""Core configuration and security helpers."""

from .settings import settings

__all__ = ["settings"]
