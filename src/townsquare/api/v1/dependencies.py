"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from townsquare.core.security import decode_access_token
from townsquare.db.session import get_db
from townsquare.models import User
from townsquare.services.email import EmailClient, get_email_client
from townsquare.services.rate_limit import RateLimiter, get_rate_limiter

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _user_from_token(db: Session, token: str) -> User | None:
    user_id = decode_access_token(token)
    if user_id is None:
        return None
    return db.get(User, user_id)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    user = _user_from_token(db, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return user


def get_optional_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)
    ],
    db: SessionDep,
) -> User | None:
    """Return the caller when a valid token is presented, otherwise None."""
    if credentials is None:
        return None
    return _user_from_token(db, credentials.credentials)


def get_rate_limiter_dep() -> RateLimiter:
    """Return the configured rate limiter."""
    return get_rate_limiter()


def get_email_client_dep() -> EmailClient:
    """Return the shared email client."""
    return get_email_client()


# Type aliases for common dependencies
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
RateLimiterDep = Annotated[RateLimiter, Depends(get_rate_limiter_dep)]
EmailClientDep = Annotated[EmailClient, Depends(get_email_client_dep)]
