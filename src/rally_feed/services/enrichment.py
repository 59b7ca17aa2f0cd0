"""Attach author profiles and engagement counters to fetched posts."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from rally_feed.services.feed_types import AuthorSnapshot, FeedPost, copy_post
from rally_feed.services.stores import EngagementStore, ProfileStore

logger = logging.getLogger(__name__)


class PostEnricher:
    """Denormalize author and engagement data onto posts.

    Lookups are best effort: a failed profile lookup leaves ``author`` unset and
    failed counters read as zero. Enrichment never drops or reorders posts.
    """

    def __init__(self, profiles: ProfileStore, engagement: EngagementStore) -> None:
        self.profiles = profiles
        self.engagement = engagement

    async def enrich(self, posts: Sequence[FeedPost]) -> list[FeedPost]:
        if not posts:
            return []

        # The profile lookup and every count lookup are launched together.
        authors, *counts = await asyncio.gather(
            self._load_authors(posts),
            *(self._load_counts(post) for post in posts),
        )

        return [
            copy_post(
                post,
                author=authors.get(post.user_id, post.author),
                likes_count=likes,
                comments_count=comments,
            )
            for post, (likes, comments) in zip(posts, counts, strict=True)
        ]

    async def _load_authors(self, posts: Sequence[FeedPost]) -> dict[str, AuthorSnapshot]:
        user_ids = sorted({post.user_id for post in posts})
        try:
            return await self.profiles.get_profiles(user_ids)
        except Exception:
            logger.exception("Author lookup failed for %d users", len(user_ids))
            return {}

    async def _load_counts(self, post: FeedPost) -> tuple[int, int]:
        try:
            return await self.engagement.get_counts(post.id)
        except Exception as exc:
            logger.warning("Engagement counts unavailable for post %s: %s", post.id, exc)
            return 0, 0
