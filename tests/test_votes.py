# tests/test_votes.py
"""Tests for vote upserts on posts and comments."""

import pytest
from fastapi import status

from townsquare.models import Comment, Post, PostVote
from townsquare.services.errors import InvalidInput, NotFound, PermissionDenied
from townsquare.services.votes import vote_comment, vote_post


@pytest.fixture()
def post(community, owner, make_post) -> Post:
    return make_post(community, owner)


def test_repeated_upvote_is_not_double_counted(db_session, post, member, no_limit) -> None:
    first = vote_post(db_session, member.id, post.id, 1, no_limit)
    second = vote_post(db_session, member.id, post.id, 1, no_limit)
    assert first.vote_score == 1
    assert second.vote_score == 1
    assert db_session.query(PostVote).filter_by(post_id=post.id).count() == 1


def test_switching_vote_moves_score_by_two(db_session, post, member, no_limit) -> None:
    vote_post(db_session, member.id, post.id, 1, no_limit)
    result = vote_post(db_session, member.id, post.id, -1, no_limit)
    assert result.vote_score == -1
    assert result.user_vote == -1


def test_zero_clears_vote(db_session, post, member, owner, no_limit) -> None:
    vote_post(db_session, member.id, post.id, 1, no_limit)
    vote_post(db_session, owner.id, post.id, 1, no_limit)
    result = vote_post(db_session, member.id, post.id, 0, no_limit)
    assert result.vote_score == 1
    assert db_session.query(PostVote).filter_by(post_id=post.id).count() == 1
    db_session.refresh(post)
    assert post.vote_score == 1


def test_vote_value_is_validated(db_session, post, member, no_limit) -> None:
    with pytest.raises(InvalidInput):
        vote_post(db_session, member.id, post.id, 2, no_limit)


def test_outsider_cannot_vote(db_session, post, outsider, no_limit) -> None:
    with pytest.raises(PermissionDenied):
        vote_post(db_session, outsider.id, post.id, 1, no_limit)


def test_deleted_post_cannot_be_voted(db_session, post, member, no_limit) -> None:
    from townsquare.db.time import utcnow

    post.deleted_at = utcnow()
    db_session.commit()
    with pytest.raises(NotFound):
        vote_post(db_session, member.id, post.id, 1, no_limit)


def test_comment_vote_updates_cached_score(db_session, post, owner, member, no_limit) -> None:
    comment = Comment(post_id=post.id, author_id=owner.id, content="Hi", depth=0)
    db_session.add(comment)
    db_session.commit()

    vote_comment(db_session, member.id, comment.id, -1, no_limit)
    result = vote_comment(db_session, owner.id, comment.id, 1, no_limit)
    assert result.vote_score == 0
    result = vote_comment(db_session, member.id, comment.id, 1, no_limit)
    assert result.vote_score == 2


def test_vote_endpoint_returns_result_shape(client, post, member, auth_headers) -> None:
    response = client.post(
        f"/api/v1/votes/posts/{post.id}", json={"value": 1}, headers=auth_headers(member)
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "data": {"vote_score": 1, "user_vote": 1}}


def test_vote_endpoint_rejects_invalid_value(client, post, member, auth_headers) -> None:
    response = client.post(
        f"/api/v1/votes/posts/{post.id}", json={"value": 3}, headers=auth_headers(member)
    )
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_vote_endpoint_reports_missing_post(client, member, auth_headers) -> None:
    response = client.post(
        "/api/v1/votes/posts/99999", json={"value": 1}, headers=auth_headers(member)
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"success": False, "error": "Post not found"}
