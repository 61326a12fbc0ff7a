# tests/test_actions.py
"""Tests for the result-shape wrapper around mutating endpoints."""

import json
import logging

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from townsquare.api.v1.actions import action
from townsquare.models import User
from townsquare.schemas.common import ActionFailure
from townsquare.services.errors import Conflict


def _body(response) -> dict:
    return json.loads(response.body)


def test_success_wraps_data() -> None:
    @action("Failed")
    def endpoint() -> dict:
        return {"value": 1}

    assert endpoint() == {"success": True, "data": {"value": 1}}


def test_domain_error_keeps_message_and_status(db_session) -> None:
    @action("Failed")
    def endpoint(db) -> None:
        raise Conflict("Already taken")

    response = endpoint(db=db_session)
    assert response.status_code == 409
    assert _body(response) == {"success": False, "error": "Already taken"}


def test_unexpected_error_rolls_back_and_hides_details(db_session, caplog) -> None:
    @action("Failed to save")
    def endpoint(db) -> None:
        db.add(User(email="ghost@example.com", name="Ghost"))
        db.flush()
        raise RuntimeError("database exploded")

    with caplog.at_level(logging.ERROR, logger="townsquare.api.v1.actions"):
        response = endpoint(db=db_session)

    assert response.status_code == 500
    assert _body(response) == {"success": False, "error": "Failed to save"}
    assert "database exploded" not in response.body.decode()
    assert any("Unhandled failure" in record.message for record in caplog.records)
    assert db_session.execute(select(User).where(User.email == "ghost@example.com")).first() is None


def test_http_exceptions_pass_through() -> None:
    @action("Failed")
    def endpoint() -> None:
        raise HTTPException(status_code=401, detail="nope")

    with pytest.raises(HTTPException):
        endpoint()


def test_failure_body_matches_failure_schema() -> None:
    @action("Failed")
    def endpoint() -> None:
        raise Conflict("Already taken")

    body = _body(endpoint())
    assert ActionFailure.model_validate(body) == ActionFailure(error="Already taken")
