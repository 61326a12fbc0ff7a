# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import datetime, timedelta
from itertools import count

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("REDIS_URL", "")
os.environ.setdefault("EMAIL_API_KEY", "")

from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from townsquare.api.v1.dependencies import get_rate_limiter_dep  # noqa: E402
from townsquare.core.security import create_access_token  # noqa: E402
from townsquare.db.session import Base  # noqa: E402
from townsquare.db.session import get_db as app_get_session  # noqa: E402
from townsquare.db.time import utcnow  # noqa: E402
from townsquare.main import app as fastapi_app  # noqa: E402
from townsquare.models import (  # noqa: E402
    Community,
    CommunityVisibility,
    Member,
    MemberRole,
    Post,
    User,
)
from townsquare.schemas.community import CommunityCreate  # noqa: E402
from townsquare.services.community_service import create_community  # noqa: E402
from townsquare.services.rate_limit import RateLimiter, reset_local_counters  # noqa: E402

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)
_POST_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session shared by the test body and the app; services commit for real."""
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def no_limit() -> RateLimiter:
    """Rate limiter that admits everything."""
    return RateLimiter(redis_url="", enabled=False)


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI, db_session: Session, no_limit: RateLimiter
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_rate_limiter_dep] = lambda: no_limit
    reset_local_counters()
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_rate_limiter_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory persisting users with unique emails."""

    def _make(name: str = "User") -> User:
        number = next(_USER_COUNTER)
        user = User(email=f"user{number}@example.com", name=name)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def owner(make_user: Callable[..., User]) -> User:
    return make_user("Olive Owner")


@pytest.fixture()
def member(make_user: Callable[..., User]) -> User:
    return make_user("Max Member")


@pytest.fixture()
def outsider(make_user: Callable[..., User]) -> User:
    return make_user("Otto Outsider")


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building authorization headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture()
def join(db_session: Session) -> Callable[..., Member]:
    """Factory adding a user to a community with a given role."""

    def _join(community: Community, user: User, role: MemberRole = MemberRole.MEMBER) -> Member:
        membership = Member(user_id=user.id, community_id=community.id, role=role)
        db_session.add(membership)
        db_session.commit()
        db_session.refresh(membership)
        return membership

    return _join


@pytest.fixture()
def community(
    db_session: Session,
    owner: User,
    member: User,
    join: Callable[..., Member],
    no_limit: RateLimiter,
) -> Community:
    """Public community owned by ``owner`` with ``member`` as a regular member."""
    created = create_community(
        db_session,
        owner.id,
        CommunityCreate(name="Riverside Gardeners", description="Allotment talk"),
        no_limit,
    )
    join(created, member)
    return created


@pytest.fixture()
def private_community(
    db_session: Session, owner: User, no_limit: RateLimiter
) -> Community:
    return create_community(
        db_session,
        owner.id,
        CommunityCreate(name="Board Room", visibility=CommunityVisibility.PRIVATE),
        no_limit,
    )


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Factory inserting posts with explicit scores and ages."""

    def _make(
        community: Community,
        author: User,
        *,
        title: str | None = None,
        vote_score: int = 0,
        created_at: datetime | None = None,
        age: timedelta | None = None,
        is_pinned: bool = False,
    ) -> Post:
        number = next(_POST_COUNTER)
        if created_at is None:
            created_at = utcnow() - (age or timedelta(0))
        post = Post(
            community_id=community.id,
            author_id=author.id,
            title=title or f"Post number {number}",
            slug=f"post-number-{number}",
            content="Body text long enough to be valid.",
            vote_score=vote_score,
            is_pinned=is_pinned,
            created_at=created_at,
            updated_at=created_at,
        )
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make
