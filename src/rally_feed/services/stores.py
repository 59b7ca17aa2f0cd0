"""Collaborator contracts consumed by the feed core, plus SQL-backed adapters.

The feed pipeline only talks to the backend through these narrow protocols.
The ``Sql*`` adapters open one session per call from a session factory so the
stores can be shared by long-lived per-viewer controllers. The synchronous
SQLAlchemy work runs in ``asyncio.to_thread`` to keep the event loop free.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from typing import Protocol, TypeVar

from sqlalchemy.orm import Session

from rally_feed.models.post import Post
from rally_feed.repositories.engagement_repo import EngagementRepository
from rally_feed.repositories.post_repo import PostRepository
from rally_feed.repositories.profile_repo import FollowRepository, ProfileRepository
from rally_feed.services.feed_types import AuthorSnapshot, FeedPost, PostDraft
from rally_feed.services.privacy_levels import normalize_privacy_level

SessionFactory = Callable[[], Session]
T = TypeVar("T")


class PostStore(Protocol):
    """Backend queries used by the query cascade and post creation."""

    async def list_ambassador_ids(self, limit: int) -> list[str]: ...

    async def list_ambassador_posts(self, ambassador_ids: Sequence[str], limit: int) -> list[FeedPost]: ...

    async def list_posts_by_authors(
        self, author_ids: Sequence[str], offset: int, limit: int
    ) -> list[FeedPost]: ...

    async def list_public_posts(
        self, offset: int, limit: int, exclude_author_ids: Sequence[str] = ()
    ) -> list[FeedPost]: ...

    async def create_post(self, draft: PostDraft) -> FeedPost: ...


class ProfileStore(Protocol):
    """Author profile lookups; unknown ids yield no entry."""

    async def get_profiles(self, user_ids: Sequence[str]) -> dict[str, AuthorSnapshot]: ...


class EngagementStore(Protocol):
    """Like and comment counters for a single post."""

    async def get_counts(self, post_id: str) -> tuple[int, int]: ...


class SocialGraphStore(Protocol):
    """Following graph of a viewer."""

    async def list_followings(self, user_id: str) -> list[str]: ...


def feed_post_from_row(row: Post, author: AuthorSnapshot | None = None) -> FeedPost:
    """Convert a ``posts`` row into the pipeline's domain type."""
    return FeedPost(
        id=row.id,
        user_id=row.user_id,
        content=row.content,
        privacy_level=normalize_privacy_level(row.privacy_level),
        created_at=row.created_at,
        media_url=row.media_url,
        media_type=row.media_type,
        is_auto_generated=bool(row.is_auto_generated),
        is_ambassador_content=bool(row.is_ambassador_content),
        engagement_score=float(row.engagement_score or 0.0),
        author=author,
    )


class _SqlStore:
    """Run repository work on a worker thread with a short-lived session."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    async def _run(self, work: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._in_session, work)

    def _in_session(self, work: Callable[[Session], T]) -> T:
        with self._session_factory() as db:
            return work(db)


class SqlPostStore(_SqlStore):
    """:class:`PostStore` backed by SQLAlchemy repositories."""

    async def list_ambassador_ids(self, limit: int) -> list[str]:
        return await self._run(lambda db: PostRepository(db).list_ambassador_ids(limit))

    async def list_ambassador_posts(self, ambassador_ids: Sequence[str], limit: int) -> list[FeedPost]:
        def work(db: Session) -> list[FeedPost]:
            rows = PostRepository(db).list_ambassador_posts(ambassador_ids, limit)
            return [feed_post_from_row(row) for row in rows]

        return await self._run(work)

    async def list_posts_by_authors(
        self, author_ids: Sequence[str], offset: int, limit: int
    ) -> list[FeedPost]:
        def work(db: Session) -> list[FeedPost]:
            rows = PostRepository(db).list_by_authors(author_ids, offset, limit)
            return [feed_post_from_row(row) for row in rows]

        return await self._run(work)

    async def list_public_posts(
        self, offset: int, limit: int, exclude_author_ids: Sequence[str] = ()
    ) -> list[FeedPost]:
        def work(db: Session) -> list[FeedPost]:
            rows = PostRepository(db).list_public(offset, limit, exclude_author_ids)
            return [feed_post_from_row(row) for row in rows]

        return await self._run(work)

    async def create_post(self, draft: PostDraft) -> FeedPost:
        def work(db: Session) -> FeedPost:
            row = PostRepository(db).create(
                user_id=draft.user_id,
                content=draft.content,
                privacy_level=draft.privacy_level.value,
                media_url=draft.media_url,
                media_type=draft.media_type,
            )
            post = feed_post_from_row(row)
            db.commit()
            return post

        return await self._run(work)


class SqlProfileStore(_SqlStore):
    """:class:`ProfileStore` backed by the ``profiles`` table."""

    async def get_profiles(self, user_ids: Sequence[str]) -> dict[str, AuthorSnapshot]:
        def work(db: Session) -> dict[str, AuthorSnapshot]:
            return {
                profile.id: AuthorSnapshot(
                    full_name=profile.full_name,
                    user_type=profile.user_type,
                    avatar_url=profile.avatar_url,
                )
                for profile in ProfileRepository(db).get_many(user_ids)
            }

        return await self._run(work)


class SqlEngagementStore(_SqlStore):
    """:class:`EngagementStore` counting ``likes`` and ``comments`` rows."""

    async def get_counts(self, post_id: str) -> tuple[int, int]:
        def work(db: Session) -> tuple[int, int]:
            repo = EngagementRepository(db)
            return repo.count_likes(post_id), repo.count_comments(post_id)

        return await self._run(work)


class SqlSocialGraphStore(_SqlStore):
    """:class:`SocialGraphStore` reading the ``followers`` table."""

    async def list_followings(self, user_id: str) -> list[str]:
        return await self._run(lambda db: FollowRepository(db).list_following_ids(user_id))
