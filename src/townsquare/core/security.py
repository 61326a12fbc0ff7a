"""Access token helpers built on python-jose."""
from __future__ import annotations

from datetime import timedelta

from jose import JWTError, jwt

from townsquare.core.settings import settings
from townsquare.db.time import utcnow


def create_access_token(user_id: int, expires_minutes: int | None = None) -> str:
    """Issue a signed JWT whose subject is the user identifier.

    Args:
        user_id: Identifier of the authenticated user.
        expires_minutes: Optional override of the configured token lifetime.

    Returns:
        The encoded token string.
    """
    lifetime = expires_minutes or settings.access_token_expire_minutes
    payload = {
        "sub": str(user_id),
        "exp": utcnow() + timedelta(minutes=lifetime),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int | None:
    """Return the user id carried by a token, or None when it is invalid."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    if subject is None:
        return None
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None
