"""Domain types flowing through the feed pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum

from rally_feed.services.privacy_levels import PrivacyLevel

AMBASSADOR_USER_TYPE = "ambassador"


class FeedFilter(str, Enum):
    """Feed views a viewer can switch between; changing one resets pagination."""

    ALL = "all"
    FOLLOWING = "following"
    DISCOVER = "discover"


@dataclass(frozen=True)
class AuthorSnapshot:
    """Author profile data denormalized onto a post after fetch."""

    full_name: str | None
    user_type: str | None
    avatar_url: str | None


@dataclass
class FeedPost:
    """A post as seen by the feed pipeline.

    ``privacy_level`` holds a :class:`PrivacyLevel` for recognised values and the
    raw string otherwise, so unknown tiers survive ingestion and fail closed in
    the privacy filter. ``likes_count`` and ``comments_count`` are owned by
    other features and may be stale.
    """

    id: str
    user_id: str
    content: str
    privacy_level: PrivacyLevel | str
    created_at: datetime
    media_url: str | None = None
    media_type: str | None = None
    is_auto_generated: bool = False
    is_ambassador_content: bool = False
    engagement_score: float = 0.0
    likes_count: int = 0
    comments_count: int = 0
    author: AuthorSnapshot | None = None

    def __post_init__(self) -> None:
        if self.created_at.tzinfo is None:
            self.created_at = self.created_at.replace(tzinfo=UTC)

    @property
    def is_ambassador(self) -> bool:
        """Return True for content produced by ambassador or automated accounts."""
        if self.author is not None and self.author.user_type == AMBASSADOR_USER_TYPE:
            return True
        return self.is_ambassador_content or self.is_auto_generated

    @property
    def ranking_score(self) -> float:
        """Engagement ranking signal used for public and fallback content."""
        return (self.engagement_score or 0.0) + 2 * (self.likes_count or 0)


@dataclass
class OptimisticPost:
    """A post shown locally before the backend confirms it."""

    post: FeedPost
    added_at: float
    is_optimistic: bool = field(default=True, init=False)

    @property
    def id(self) -> str:
        return self.post.id


@dataclass(frozen=True)
class PostDraft:
    """Fields accepted by the post creation endpoint."""

    user_id: str
    content: str
    privacy_level: PrivacyLevel
    media_url: str | None = None
    media_type: str | None = None


def by_recency(post: FeedPost) -> float:
    """Sort key placing the newest post first."""
    return -post.created_at.timestamp()


def by_ranking(post: FeedPost) -> tuple[float, float]:
    """Sort key: highest ranking score first, most recent breaks ties."""
    return (-post.ranking_score, -post.created_at.timestamp())


def copy_post(post: FeedPost, **changes: object) -> FeedPost:
    """Return a shallow copy of ``post`` with ``changes`` applied."""
    return replace(post, **changes)
