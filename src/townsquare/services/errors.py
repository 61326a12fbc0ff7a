# src/townsquare/services/errors.py
"""Domain errors raised by services and translated at the API boundary."""

from __future__ import annotations

from fastapi import status


class ActionError(Exception):
    """Base class for failures reported to callers as ``{"success": false}``.

    Attributes:
        message: Human readable reason surfaced verbatim to the client.
        status_code: HTTP status used when the error crosses the API boundary.
    """

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(ActionError):
    """Input failed a business validation rule."""

    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDenied(ActionError):
    """Caller lacks the capability required for the operation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ActionError):
    """Target of a mutation does not exist or is no longer live."""

    status_code = status.HTTP_404_NOT_FOUND


class Conflict(ActionError):
    """Operation collides with current state (duplicates, held leases, full sessions)."""

    status_code = status.HTTP_409_CONFLICT


class RateLimited(ActionError):
    """Caller exceeded the action's fixed-window budget."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS


__all__ = [
    "ActionError",
    "Conflict",
    "InvalidInput",
    "NotFound",
    "PermissionDenied",
    "RateLimited",
]
