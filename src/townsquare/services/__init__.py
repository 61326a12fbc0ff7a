# src/townsquare/services/__init__.py
"""Business logic services for the Townsquare application."""

from .email import EmailClient
from .errors import ActionError, Conflict, InvalidInput, NotFound, PermissionDenied, RateLimited
from .lease import Lease
from .permissions import Capability
from .rate_limit import RateLimiter

__all__ = [
    "ActionError",
    "Capability",
    "Conflict",
    "EmailClient",
    "InvalidInput",
    "Lease",
    "NotFound",
    "PermissionDenied",
    "RateLimited",
    "RateLimiter",
]
