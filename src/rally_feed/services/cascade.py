"""Tiered candidate retrieval for a feed page.

The cascade queries the backend in fixed order (ambassador content, the
viewer's own and followed authors, then public content as a fallback) and
records per-tier metrics. A failing tier is reported in ``error_details``
without aborting the others; only when every attempted tier fails does the
cascade raise :class:`FeedQueryError`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from rally_feed.services.feed_types import FeedFilter, FeedPost
from rally_feed.services.policy import FeedPolicy
from rally_feed.services.stores import PostStore

logger = logging.getLogger(__name__)

LEVEL_AMBASSADOR = "ambassador"
LEVEL_PRIMARY = "primary"
LEVEL_FALLBACK = "fallback"

# Backend failures, plus malformed rows surfacing while posts are converted.
_QUERY_ERRORS = (SQLAlchemyError, OSError, ValueError, TypeError, KeyError, AttributeError)


class FeedError(RuntimeError):
    """Base exception raised for feed construction failures."""


class FeedQueryError(FeedError):
    """Raised when the post store could not serve any tier of a page."""


@dataclass
class CascadeMetric:
    """Timing and volume of a single cascade tier."""

    level: str
    source: str
    post_count: int = 0
    query_time: float = 0.0  # milliseconds
    error_count: int = 0


@dataclass
class CascadeResult:
    """Candidates for one page plus diagnostics."""

    posts: list[FeedPost]
    metrics: list[CascadeMetric]
    fetched_count: int
    ambassador_percentage: float
    debug_data: dict[str, Any] = field(default_factory=dict)
    error_details: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.error_details)

    @property
    def total_posts(self) -> int:
        return len(self.posts)


def remove_duplicates(posts: Iterable[FeedPost], exclude_ids: Iterable[str] = ()) -> list[FeedPost]:
    """Drop repeated ids and ids in ``exclude_ids``, keeping first occurrences."""
    seen = set(exclude_ids)
    unique: list[FeedPost] = []
    for post in posts:
        if post.id in seen:
            continue
        seen.add(post.id)
        unique.append(post)
    return unique


def _ambassador_share(posts: Sequence[FeedPost], ambassador_ids: set[str]) -> float:
    if not posts:
        return 0.0
    hits = sum(1 for post in posts if post.is_ambassador or post.user_id in ambassador_ids)
    return hits / len(posts)


class FeedQueryCascade:
    """Resolve candidate posts for a page across fallback tiers."""

    def __init__(self, store: PostStore, policy: FeedPolicy | None = None) -> None:
        self.store = store
        self.policy = policy or FeedPolicy()

    async def fetch(
        self,
        user_id: str | None,
        following_ids: Sequence[str],
        page: int = 0,
        existing_posts: Sequence[FeedPost] = (),
        feed_filter: FeedFilter = FeedFilter.ALL,
    ) -> CascadeResult:
        """Return candidate posts for ``page`` under ``feed_filter``.

        Args:
            user_id: The viewer, or None for anonymous access.
            following_ids: Authors the viewer follows; may be empty.
            page: Zero-based page index.
            existing_posts: Posts already displayed; they are never returned again.
            feed_filter: Active feed view.

        Raises:
            FeedQueryError: If every attempted tier failed.
        """
        metrics: list[CascadeMetric] = []
        errors: list[str] = []
        debug: dict[str, Any] = {"steps": [], "errors": errors, "page": page, "filter": feed_filter.value}
        collected: list[FeedPost] = []
        ambassador_ids: list[str] = []

        async def run_tier(level: str, source: str, query: Callable[[], Awaitable[list[FeedPost]]]) -> None:
            metric = CascadeMetric(level=level, source=source)
            started = time.perf_counter()
            try:
                posts = await query()
            except _QUERY_ERRORS as exc:
                metric.error_count = 1
                errors.append(f"{source} query failed: {exc}")
                logger.warning("Feed cascade tier %s failed: %s", source, exc)
                posts = []
            metric.query_time = (time.perf_counter() - started) * 1000
            metric.post_count = len(posts)
            metrics.append(metric)
            debug["steps"].append(f"{source}: {len(posts)} posts")
            collected.extend(posts)

        async def query_ambassadors() -> list[FeedPost]:
            ambassador_ids.extend(await self.store.list_ambassador_ids(self.policy.ambassador_profile_limit))
            return await self.store.list_ambassador_posts(ambassador_ids, self.policy.ambassador_post_limit)

        await run_tier(LEVEL_AMBASSADOR, "core_ambassadors", query_ambassadors)

        authors = [user_id, *following_ids] if user_id is not None else list(following_ids)
        if feed_filter is not FeedFilter.DISCOVER and authors:
            offset = page * self.policy.followed_page_size
            await run_tier(
                LEVEL_PRIMARY,
                "followed_users",
                lambda: self.store.list_posts_by_authors(authors, offset, self.policy.followed_page_size),
            )
        else:
            debug["steps"].append("followed_users: skipped")

        if self._needs_public_tier(feed_filter, collected, existing_posts):
            offset = page * self.policy.public_page_size
            exclude = authors if feed_filter is FeedFilter.DISCOVER else ()
            await run_tier(
                LEVEL_FALLBACK,
                "public_content",
                lambda: self.store.list_public_posts(offset, self.policy.public_page_size, exclude),
            )

        if metrics and all(metric.error_count for metric in metrics):
            raise FeedQueryError("; ".join(errors))

        posts = remove_duplicates(collected, (post.id for post in existing_posts))
        result = CascadeResult(
            posts=posts,
            metrics=metrics,
            fetched_count=len(collected),
            ambassador_percentage=_ambassador_share(posts, set(ambassador_ids)),
            debug_data=debug,
            error_details=errors,
        )
        logger.info(
            "Feed cascade page=%d filter=%s fetched=%d unique=%d tiers=%d errors=%d",
            page,
            feed_filter.value,
            result.fetched_count,
            result.total_posts,
            len(metrics),
            len(errors),
        )
        return result

    def _needs_public_tier(
        self,
        feed_filter: FeedFilter,
        collected: Sequence[FeedPost],
        existing_posts: Sequence[FeedPost],
    ) -> bool:
        if feed_filter is FeedFilter.DISCOVER:
            return True
        fresh = remove_duplicates(collected, (post.id for post in existing_posts))
        if feed_filter is FeedFilter.FOLLOWING:
            return not fresh
        return len(fresh) < self.policy.cascade_min_posts
