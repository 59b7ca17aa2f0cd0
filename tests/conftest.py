# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "rally-feed-test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from rally_feed.api.v1.dependencies import get_feed_sessions
from rally_feed.core.security import create_access_token
from rally_feed.db.session import Base
from rally_feed.main import app as fastapi_app
from rally_feed.models import Follower, Post, PostComment, PostLike, Profile
from rally_feed.services.feed_types import AuthorSnapshot, FeedPost
from rally_feed.services.policy import FeedPolicy
from rally_feed.services.privacy_levels import PrivacyLevel
from rally_feed.services.sessions import FeedServices, FeedSessionRegistry

BASE_TIME = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)

_POST_COUNTER = count(1)


def make_post(
    user_id: str = "author",
    privacy_level: PrivacyLevel | str = PrivacyLevel.PUBLIC,
    *,
    post_id: str | None = None,
    minutes_ago: int = 0,
    engagement_score: float = 0.0,
    likes_count: int = 0,
    user_type: str | None = None,
    **overrides: Any,
) -> FeedPost:
    """Build an in-memory feed post; newer posts have a smaller ``minutes_ago``."""
    author = AuthorSnapshot(full_name=user_id.title(), user_type=user_type, avatar_url=None)
    return FeedPost(
        id=post_id or f"post-{next(_POST_COUNTER)}",
        user_id=user_id,
        content=f"rally update from {user_id}",
        privacy_level=privacy_level,
        created_at=BASE_TIME - timedelta(minutes=minutes_ago),
        engagement_score=engagement_score,
        likes_count=likes_count,
        author=author if user_type is not None else None,
        **overrides,
    )


class Seeder:
    """Insert profiles, posts and graph edges for SQL-backed tests."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def profile(self, user_id: str, user_type: str | None = "player", full_name: str | None = None) -> Profile:
        profile = Profile(id=user_id, user_type=user_type, full_name=full_name or user_id.title())
        self.session.add(profile)
        self.session.commit()
        return profile

    def post(
        self,
        user_id: str,
        privacy_level: str = "public",
        *,
        post_id: str | None = None,
        minutes_ago: int = 0,
        engagement_score: float = 0.0,
        is_ambassador_content: bool = False,
        is_auto_generated: bool = False,
    ) -> Post:
        post = Post(
            id=post_id or f"db-post-{next(_POST_COUNTER)}",
            user_id=user_id,
            content=f"match notes by {user_id}",
            privacy_level=privacy_level,
            engagement_score=engagement_score,
            is_ambassador_content=is_ambassador_content,
            is_auto_generated=is_auto_generated,
            created_at=BASE_TIME - timedelta(minutes=minutes_ago),
        )
        self.session.add(post)
        self.session.commit()
        return post

    def follow(self, follower_id: str, following_id: str) -> None:
        self.session.add(Follower(follower_id=follower_id, following_id=following_id))
        self.session.commit()

    def like(self, post_id: str, user_id: str) -> None:
        self.session.add(PostLike(post_id=post_id, user_id=user_id))
        self.session.commit()

    def comment(self, post_id: str, user_id: str, content: str = "nice shot") -> None:
        self.session.add(PostComment(post_id=post_id, user_id=user_id, content=content))
        self.session.commit()


@pytest.fixture(scope="session")
def engine(tmp_path_factory: pytest.TempPathFactory) -> Generator[Engine, None, None]:
    # File-backed so store calls running on worker threads get their own connections.
    db_path = tmp_path_factory.mktemp("db") / "rally_feed_test.sqlite3"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> Iterator[sessionmaker[Session]]:
    factory = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    try:
        yield factory
    finally:
        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def seed(db_session: Session) -> Seeder:
    return Seeder(db_session)


@pytest.fixture()
def policy() -> FeedPolicy:
    return FeedPolicy()


@pytest.fixture()
def feed_services(session_factory: sessionmaker[Session], policy: FeedPolicy) -> FeedServices:
    return FeedServices.from_session_factory(session_factory, policy)


@pytest.fixture()
def feed_sessions(feed_services: FeedServices) -> Iterator[FeedSessionRegistry]:
    registry = FeedSessionRegistry(feed_services)
    try:
        yield registry
    finally:
        registry.close()


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, feed_sessions: FeedSessionRegistry) -> Iterator[TestClient]:
    app.dependency_overrides[get_feed_sessions] = lambda: feed_sessions
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(get_feed_sessions, None)


@pytest.fixture()
def viewer(seed: Seeder) -> Profile:
    """Create and return the primary test viewer."""
    return seed.profile("viewer", user_type="player", full_name="Test Viewer")


@pytest.fixture()
def auth_token(viewer: Profile) -> dict[str, str]:
    """Return authorization headers for the primary test viewer."""
    token = create_access_token(viewer.id)
    return {"Authorization": f"Bearer {token}"}
