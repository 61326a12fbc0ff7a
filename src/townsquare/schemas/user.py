# src/townsquare/schemas/user.py
"""User-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserSummary(BaseModel):
    """Public identity attached to authored content."""

    id: int
    name: str | None = None
    username: str | None = None

    model_config = ConfigDict(from_attributes=True)


class DevLoginRequest(BaseModel):
    """Payload for the development sign-in shortcut."""

    email: EmailStr
    name: str | None = Field(None, max_length=100)


class TokenResponse(BaseModel):
    """Bearer token issued to a signed-in user."""

    access_token: str
    token_type: str = "bearer"
    user: UserSummary
