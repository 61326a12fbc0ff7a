# tests/api/test_events_api.py
"""Tests for event and RSVP endpoints."""

from datetime import timedelta

import pytest
from fastapi import status

from townsquare.api.v1.dependencies import get_email_client_dep
from townsquare.db.time import utcnow


class FakeEmailClient:
    """Records confirmations instead of calling the email API."""

    enabled = True

    def __init__(self) -> None:
        self.sent: list = []

    async def send_rsvp_confirmation(self, message) -> bool:
        self.sent.append(message)
        return True


@pytest.fixture()
def email_client(app):
    fake = FakeEmailClient()
    app.dependency_overrides[get_email_client_dep] = lambda: fake
    try:
        yield fake
    finally:
        app.dependency_overrides.pop(get_email_client_dep, None)


def _create_event(client, community, user, headers, capacity=None) -> dict:
    start = utcnow() + timedelta(days=4)
    response = client.post(
        "/api/v1/events",
        json={
            "community_id": community.id,
            "title": "Compost workshop",
            "capacity": capacity,
            "sessions": [{"start_time": start.isoformat()}],
            "create_channel": True,
        },
        headers=headers(user),
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


def test_create_event_with_channel(client, community, member, auth_headers) -> None:
    event = _create_event(client, community, member, auth_headers)
    assert event["organizer_id"] == member.id
    assert event["channel_id"] is not None
    assert len(event["sessions"]) == 1

    listing = client.get(f"/api/v1/communities/{community.id}/events").json()
    assert [item["id"] for item in listing] == [event["id"]]


def test_rsvp_queues_confirmation(
    client, community, member, outsider, auth_headers, email_client
) -> None:
    event = _create_event(client, community, member, auth_headers)
    session_id = event["sessions"][0]["id"]
    response = client.post(
        f"/api/v1/events/sessions/{session_id}/rsvp", headers=auth_headers(outsider)
    )
    assert response.json()["success"] is True
    assert response.json()["data"]["status"] == "GOING"
    assert len(email_client.sent) == 1
    message = email_client.sent[0]
    assert message.to == outsider.email
    assert message.event_title == "Compost workshop"


def test_full_session_reports_conflict(
    client, community, member, owner, outsider, auth_headers, email_client
) -> None:
    event = _create_event(client, community, member, auth_headers, capacity=1)
    session_id = event["sessions"][0]["id"]
    client.post(f"/api/v1/events/sessions/{session_id}/rsvp", headers=auth_headers(owner))
    response = client.post(
        f"/api/v1/events/sessions/{session_id}/rsvp", headers=auth_headers(outsider)
    )
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json() == {"success": False, "error": "This session is full"}


def test_event_detail_counts_attendees(
    client, community, member, owner, auth_headers, email_client
) -> None:
    event = _create_event(client, community, member, auth_headers)
    client.post(f"/api/v1/events/{event['id']}/rsvp-all", headers=auth_headers(owner))
    detail = client.get(f"/api/v1/events/{event['id']}").json()
    assert detail["sessions"][0]["going_count"] == 1
