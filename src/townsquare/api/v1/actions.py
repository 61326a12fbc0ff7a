"""Translate service outcomes into the ``{"success": ...}`` result shape.

Mutating endpoints are wrapped with :func:`action`. Domain errors raised by
services become ``{"success": false, "error": message}`` with the error's
HTTP status; anything unexpected is rolled back, logged and reported with a
generic message.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from townsquare.schemas.common import ActionFailure
from townsquare.services.errors import ActionError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def success(data: Any = None) -> dict[str, Any]:
    return {"success": True, "data": jsonable_encoder(data)}


def failure(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ActionFailure(error=message).model_dump()
    )


def _rollback(kwargs: dict[str, Any]) -> None:
    db = kwargs.get("db")
    if isinstance(db, Session):
        db.rollback()


def action(failure_message: str) -> Callable[[F], F]:
    """Wrap a sync endpoint so it always answers with the result shape.

    Args:
        failure_message: Generic text reported for unexpected failures.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                data = func(*args, **kwargs)
            except HTTPException:
                raise
            except ActionError as exc:
                _rollback(kwargs)
                return failure(exc.message, exc.status_code)
            except Exception:
                _rollback(kwargs)
                logger.exception("Unhandled failure in %s", func.__name__)
                return failure(failure_message, status.HTTP_500_INTERNAL_SERVER_ERROR)
            return success(data)

        return wrapper  # type: ignore[return-value]

    return decorator
