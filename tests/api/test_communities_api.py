# tests/api/test_communities_api.py
"""Tests for community, membership and channel endpoints."""

from fastapi import status
from sqlalchemy import select

from townsquare.models import Member


def test_create_and_fetch_community(client, member, auth_headers) -> None:
    response = client.post(
        "/api/v1/communities",
        json={"name": "Night Owls", "slug": "night-owls", "visibility": "PRIVATE"},
        headers=auth_headers(member),
    )
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()["data"]
    assert data["slug"] == "night-owls"
    assert data["member_count"] == 1
    assert data["viewer_role"] == "OWNER"

    fetched = client.get("/api/v1/communities/night-owls", headers=auth_headers(member))
    assert fetched.json()["viewer_role"] == "OWNER"


def test_invalid_slug_is_rejected(client, member, auth_headers) -> None:
    response = client.post(
        "/api/v1/communities",
        json={"name": "Bad Slug", "slug": "Not Valid!"},
        headers=auth_headers(member),
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_unknown_community_is_not_found(client) -> None:
    assert client.get("/api/v1/communities/nope").status_code == status.HTTP_404_NOT_FOUND


def test_join_and_leave(client, community, outsider, auth_headers) -> None:
    joined = client.post(
        f"/api/v1/communities/{community.id}/join", headers=auth_headers(outsider)
    )
    assert joined.json()["data"]["role"] == "MEMBER"
    again = client.post(
        f"/api/v1/communities/{community.id}/join", headers=auth_headers(outsider)
    )
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json() == {
        "success": False,
        "error": "You are already a member of this community",
    }
    left = client.post(
        f"/api/v1/communities/{community.id}/leave", headers=auth_headers(outsider)
    )
    assert left.json() == {"success": True, "data": None}


def test_members_listing_includes_users(client, community, owner, member) -> None:
    response = client.get(f"/api/v1/communities/{community.id}/members")
    data = response.json()["data"]
    assert [item["user"]["id"] for item in data] == [owner.id, member.id]
    assert [item["role"] for item in data] == ["OWNER", "MEMBER"]


def test_private_members_listing_is_forbidden_to_outsiders(
    client, private_community, outsider, auth_headers
) -> None:
    response = client.get(
        f"/api/v1/communities/{private_community.id}/members", headers=auth_headers(outsider)
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_owner_removes_member(client, db_session, community, owner, member, auth_headers) -> None:
    membership_id = db_session.execute(
        select(Member.id).where(Member.user_id == member.id, Member.community_id == community.id)
    ).scalar_one()
    response = client.delete(
        f"/api/v1/communities/{community.id}/members/{membership_id}",
        headers=auth_headers(owner),
    )
    assert response.json() == {
        "success": True,
        "data": {"removed_user_id": member.id, "transferred_events": 0},
    }


def test_channel_endpoints(client, community, owner, member, auth_headers) -> None:
    created = client.post(
        "/api/v1/channels",
        json={"community_id": community.id, "name": "Swaps"},
        headers=auth_headers(owner),
    ).json()["data"]
    assert created["name"] == "swaps"

    sent = client.post(
        f"/api/v1/channels/{created['id']}/messages",
        json={"content": "Anyone have spare courgettes?"},
        headers=auth_headers(member),
    )
    assert sent.status_code == status.HTTP_201_CREATED
    listing = client.get(
        f"/api/v1/channels/{created['id']}/messages", headers=auth_headers(member)
    ).json()["data"]
    assert [item["content"] for item in listing["items"]] == ["Anyone have spare courgettes?"]

    channels = client.get(
        f"/api/v1/communities/{community.id}/channels", headers=auth_headers(member)
    ).json()["data"]
    assert [item["name"] for item in channels] == ["general", "swaps"]
