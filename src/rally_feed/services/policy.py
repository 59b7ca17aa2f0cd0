"""Immutable tuning knobs for the feed pipeline."""
from __future__ import annotations

from dataclasses import dataclass

from rally_feed.core.settings import Settings


@dataclass(frozen=True)
class FeedPolicy:
    """Immutable configuration for feed construction."""

    min_target_total: int = 8
    max_target_total: int = 25
    max_own_posts: int = 3
    ambassador_cap_ratio: float = 0.3
    max_posts_per_author: int = 3
    new_user_following_threshold: int = 2
    new_user_min_posts: int = 8
    established_min_posts: int = 5
    privacy_min_new_user: int = 3
    privacy_min_established: int = 2
    followed_page_size: int = 12
    public_page_size: int = 10
    ambassador_post_limit: int = 15
    ambassador_profile_limit: int = 20
    cascade_min_posts: int = 8
    has_more_threshold: int = 15
    max_page: int = 8
    optimistic_ttl_seconds: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> FeedPolicy:
        """Build a policy from application settings."""
        return cls(
            min_target_total=settings.feed_min_target_total,
            max_target_total=settings.feed_max_target_total,
            max_own_posts=settings.feed_max_own_posts,
            ambassador_cap_ratio=settings.feed_ambassador_cap_ratio,
            max_posts_per_author=settings.feed_max_posts_per_author,
            new_user_following_threshold=settings.feed_new_user_following_threshold,
            new_user_min_posts=settings.feed_new_user_min_posts,
            established_min_posts=settings.feed_established_min_posts,
            privacy_min_new_user=settings.feed_privacy_min_new_user,
            privacy_min_established=settings.feed_privacy_min_established,
            followed_page_size=settings.feed_followed_page_size,
            public_page_size=settings.feed_public_page_size,
            ambassador_post_limit=settings.feed_ambassador_post_limit,
            ambassador_profile_limit=settings.feed_ambassador_profile_limit,
            cascade_min_posts=settings.feed_cascade_min_posts,
            has_more_threshold=settings.feed_has_more_threshold,
            max_page=settings.feed_max_page,
            optimistic_ttl_seconds=settings.optimistic_post_ttl_seconds,
        )

    def is_new_user(self, following_count: int) -> bool:
        """Return True while the viewer's following graph is still small."""
        return following_count <= self.new_user_following_threshold
