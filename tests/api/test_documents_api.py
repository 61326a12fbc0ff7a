# tests/api/test_documents_api.py
"""Tests for document endpoints."""

from fastapi import status

from townsquare.models import MemberRole


def _create(client, community, owner, auth_headers) -> dict:
    response = client.post(
        "/api/v1/documents",
        json={"community_id": community.id, "title": "Tool Library"},
        headers=auth_headers(owner),
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["data"]


def test_lock_conflict_names_the_editor(
    client, community, owner, make_user, join, auth_headers
) -> None:
    moderator = make_user("Mona Moderator")
    join(community, moderator, MemberRole.MODERATOR)
    document = _create(client, community, owner, auth_headers)

    locked = client.post(f"/api/v1/documents/{document['id']}/lock", headers=auth_headers(owner))
    assert locked.json()["data"]["locked_by_id"] == owner.id

    denied = client.patch(
        f"/api/v1/documents/{document['id']}",
        json={"content_html": "<p>mine now</p>"},
        headers=auth_headers(moderator),
    )
    assert denied.status_code == status.HTTP_409_CONFLICT
    assert denied.json() == {
        "success": False,
        "error": "Document is being edited by Olive Owner",
    }

    released = client.delete(
        f"/api/v1/documents/{document['id']}/lock", headers=auth_headers(owner)
    )
    assert released.json()["data"]["locked_by_id"] is None


def test_members_cannot_create_documents(client, community, member, auth_headers) -> None:
    response = client.post(
        "/api/v1/documents",
        json={"community_id": community.id, "title": "Member Notes"},
        headers=auth_headers(member),
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["success"] is False


def test_publish_then_read_by_slug(client, community, owner, member, auth_headers) -> None:
    document = _create(client, community, owner, auth_headers)
    hidden = client.get(
        f"/api/v1/communities/{community.id}/documents/{document['slug']}",
        headers=auth_headers(member),
    )
    assert hidden.status_code == status.HTTP_404_NOT_FOUND

    published = client.post(
        f"/api/v1/documents/{document['id']}/publish",
        json={"change_note": "Initial"},
        headers=auth_headers(owner),
    ).json()["data"]
    assert published["version"] == 1
    assert published["status"] == "PUBLISHED"

    visible = client.get(
        f"/api/v1/communities/{community.id}/documents/{document['slug']}",
        headers=auth_headers(member),
    )
    assert visible.status_code == status.HTTP_200_OK
    versions = client.get(
        f"/api/v1/documents/{document['id']}/versions", headers=auth_headers(owner)
    ).json()["data"]
    assert [item["change_note"] for item in versions["items"]] == ["Initial"]
