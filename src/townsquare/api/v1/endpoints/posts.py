# src/townsquare/api/v1/endpoints/posts.py
"""Post-related endpoints for the Townsquare API."""

from fastapi import APIRouter, HTTPException, Query, status

from townsquare.schemas.comment import CommentCreate, CommentOut
from townsquare.schemas.common import ActionSuccess, PageResponse
from townsquare.schemas.post import PinRequest, PostCreate, PostOut, PostUpdate
from townsquare.services import comment_service, post_service
from townsquare.services.comment_tree import get_comment_replies, get_post_comments
from townsquare.services.feed import get_post_by_id, get_post_by_slug, get_public_posts
from townsquare.services.ranking import CommentSort, PostSort

from ..actions import action
from ..dependencies import CurrentUserDep, OptionalUserDep, RateLimiterDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


def _user_id(user: object | None) -> int | None:
    return getattr(user, "id", None)


@router.get("/public", response_model=PageResponse[PostOut])
def list_public_posts(
    db: SessionDep,
    current_user: OptionalUserDep,
    sort: PostSort = PostSort.HOT,
    limit: int = Query(20, ge=1, le=50),
    cursor: int | None = None,
) -> PageResponse[PostOut]:
    """Cross-community feed of posts from public communities."""
    page = get_public_posts(db, sort, limit, cursor, _user_id(current_user))
    return PageResponse[PostOut].from_page(page)


@router.get("/by-slug/{community_slug}/{post_slug}", response_model=PostOut)
def read_post_by_slug(
    community_slug: str, post_slug: str, db: SessionDep, current_user: OptionalUserDep
) -> PostOut:
    post = get_post_by_slug(db, community_slug, post_slug, _user_id(current_user))
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ActionSuccess)
@action("Failed to create post")
def create_post(
    payload: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> PostOut | None:
    """Create a post in a community the caller belongs to."""
    post = post_service.create_post(db, current_user.id, payload, limiter)
    return get_post_by_id(db, post.id, current_user.id)


@router.get("/{post_id}", response_model=PostOut)
def read_post(post_id: int, db: SessionDep, current_user: OptionalUserDep) -> PostOut:
    """Get a specific post by ID."""
    post = get_post_by_id(db, post_id, _user_id(current_user))
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.patch("/{post_id}", response_model=ActionSuccess)
@action("Failed to update post")
def update_post(
    post_id: int, payload: PostUpdate, current_user: CurrentUserDep, db: SessionDep
) -> PostOut | None:
    post_service.update_post(db, current_user.id, post_id, payload)
    return get_post_by_id(db, post_id, current_user.id)


@router.delete("/{post_id}", response_model=ActionSuccess)
@action("Failed to delete post")
def delete_post(post_id: int, current_user: CurrentUserDep, db: SessionDep) -> None:
    """Soft-delete a post as its author or a moderator."""
    post_service.delete_post(db, current_user.id, post_id)


@router.post("/{post_id}/pin", response_model=ActionSuccess)
@action("Failed to pin post")
def pin_post(
    post_id: int, payload: PinRequest, current_user: CurrentUserDep, db: SessionDep
) -> PostOut | None:
    post_service.pin_post(db, current_user.id, post_id, payload.is_pinned)
    return get_post_by_id(db, post_id, current_user.id)


@router.get("/{post_id}/comments", response_model=PageResponse[CommentOut])
def list_comments(
    post_id: int,
    db: SessionDep,
    current_user: OptionalUserDep,
    sort: CommentSort = CommentSort.BEST,
    limit: int = Query(50, ge=1, le=100),
    cursor: int | None = None,
) -> PageResponse[CommentOut]:
    """Return top-level comments with their reply trees."""
    if get_post_by_id(db, post_id, _user_id(current_user)) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    page = get_post_comments(db, post_id, sort, _user_id(current_user), limit, cursor)
    return PageResponse[CommentOut].from_page(page)


@router.get("/{post_id}/comments/{comment_id}/replies", response_model=PageResponse[CommentOut])
def list_replies(
    post_id: int,
    comment_id: int,
    db: SessionDep,
    current_user: OptionalUserDep,
    sort: CommentSort = CommentSort.BEST,
    limit: int = Query(20, ge=1, le=100),
    cursor: int | None = None,
) -> PageResponse[CommentOut]:
    """Load more direct replies of one comment."""
    if get_post_by_id(db, post_id, _user_id(current_user)) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    page = get_comment_replies(
        db, post_id, comment_id, sort, _user_id(current_user), limit, cursor
    )
    return PageResponse[CommentOut].from_page(page)


@router.post(
    "/{post_id}/comments", status_code=status.HTTP_201_CREATED, response_model=ActionSuccess
)
@action("Failed to create comment")
def create_comment(
    post_id: int,
    payload: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    limiter: RateLimiterDep,
) -> CommentOut:
    comment = comment_service.create_comment(db, current_user.id, post_id, payload, limiter)
    return CommentOut.model_validate(comment)
