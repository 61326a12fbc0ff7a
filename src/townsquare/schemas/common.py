# src/townsquare/schemas/common.py
"""Common Pydantic schemas shared across the API."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class PageResponse(BaseModel, Generic[T]):
    """One page of a cursor-paginated listing."""

    items: list[T]
    next_cursor: int | None = None
    has_more: bool = False

    @classmethod
    def from_page(cls, page: Any) -> "PageResponse[T]":
        """Build the response from a service-layer page."""
        return cls(items=page.items, next_cursor=page.next_cursor, has_more=page.has_more)


class ActionSuccess(BaseModel):
    """Successful mutation result."""

    success: bool = True
    data: Any = None


class ActionFailure(BaseModel):
    """Failed mutation result carrying a human readable reason."""

    success: bool = False
    error: str


class HealthResponse(BaseModel):
    """Response schema for health check endpoint."""

    status: str
    service: str
    version: str

    model_config = ConfigDict(from_attributes=True)
