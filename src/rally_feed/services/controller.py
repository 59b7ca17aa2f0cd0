"""Per-viewer feed state machine.

The controller owns one viewer's feed: it drives the query cascade,
enrichment and the post-processing pipeline, tracks pagination and merges
optimistic posts into what is displayed.

States::

    idle -> loading -> ready
    ready -> loading_more -> ready
    ready -> loading -> ready        (refresh)
    any -> error                      (loading flags cleared)
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from rally_feed.services.cascade import CascadeMetric, FeedError, FeedQueryCascade
from rally_feed.services.enrichment import PostEnricher
from rally_feed.services.feed_types import FeedFilter, FeedPost
from rally_feed.services.mixing import ambassador_share
from rally_feed.services.optimistic import OptimisticPostOverlay
from rally_feed.services.pipeline import FeedPipeline
from rally_feed.services.policy import FeedPolicy
from rally_feed.services.viewer import ViewerContextProvider

logger = logging.getLogger(__name__)

_LOAD_ERRORS = (FeedError, SQLAlchemyError, OSError)


class FeedStatus(str, Enum):
    """Lifecycle of a feed."""

    IDLE = "idle"
    LOADING = "loading"
    LOADING_MORE = "loading_more"
    READY = "ready"
    ERROR = "error"


@dataclass
class FeedCascadeState:
    """Snapshot of a viewer's feed as last committed."""

    posts: list[FeedPost] = field(default_factory=list)
    status: FeedStatus = FeedStatus.IDLE
    page: int = 0
    has_more: bool = False
    feed_filter: FeedFilter = FeedFilter.ALL
    error: str | None = None
    error_details: list[str] = field(default_factory=list)
    metrics: list[CascadeMetric] = field(default_factory=list)
    ambassador_percentage: float = 0.0
    debug_data: dict[str, Any] = field(default_factory=dict)
    last_updated: datetime | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is FeedStatus.LOADING

    @property
    def is_loading_more(self) -> bool:
        return self.status is FeedStatus.LOADING_MORE

    @property
    def has_errors(self) -> bool:
        return bool(self.error_details) or self.status is FeedStatus.ERROR


class FeedCascadeController:
    """Drive loads, pagination and refreshes for a single viewer."""

    def __init__(
        self,
        viewer_id: str | None,
        viewer_provider: ViewerContextProvider,
        cascade: FeedQueryCascade,
        enricher: PostEnricher,
        pipeline: FeedPipeline,
        overlay: OptimisticPostOverlay | None = None,
        policy: FeedPolicy | None = None,
        feed_filter: FeedFilter = FeedFilter.ALL,
    ) -> None:
        self.viewer_id = viewer_id
        self.viewer_provider = viewer_provider
        self.cascade = cascade
        self.enricher = enricher
        self.pipeline = pipeline
        self.policy = policy or FeedPolicy()
        if overlay is None:
            overlay = OptimisticPostOverlay(self.policy.optimistic_ttl_seconds)
        self.overlay = overlay
        self.state = FeedCascadeState(feed_filter=feed_filter)
        self._generation = 0

    @property
    def displayed_posts(self) -> list[FeedPost]:
        """Optimistic posts (newest first) followed by the server posts."""
        server_ids = {post.id for post in self.state.posts}
        optimistic = [entry.post for entry in self.overlay.posts() if entry.id not in server_ids]
        return [*optimistic, *self.state.posts]

    @property
    def optimistic_ids(self) -> set[str]:
        return {entry.id for entry in self.overlay.posts()}

    async def ensure_loaded(self) -> FeedCascadeState:
        """Load the first page unless a load has already succeeded or is running."""
        never_loaded = self.state.status is FeedStatus.ERROR and self.state.last_updated is None
        if self.state.status is FeedStatus.IDLE or never_loaded:
            await self.load()
        return self.state

    async def load(
        self,
        page: int = 0,
        existing_posts: Sequence[FeedPost] = (),
        feed_filter: FeedFilter | None = None,
    ) -> FeedCascadeState:
        """Fetch, enrich and process ``page`` and commit it to the state.

        Page 0 replaces the server posts; later pages are appended. A response
        that arrives after a newer load has started is discarded.
        """
        if feed_filter is not None:
            self.state.feed_filter = feed_filter
        active_filter = self.state.feed_filter

        self._generation += 1
        token = self._generation
        self.state.status = FeedStatus.LOADING if page == 0 else FeedStatus.LOADING_MORE
        self.state.error = None

        try:
            context = await self.viewer_provider.build(self.viewer_id)
            result = await self.cascade.fetch(
                self.viewer_id,
                sorted(context.user_followings),
                page,
                existing_posts,
                active_filter,
            )
            enriched = await self.enricher.enrich(result.posts)
            page_posts = self.pipeline.process(enriched, context)
        except _LOAD_ERRORS as exc:
            logger.warning("Feed load failed for viewer %s page %d: %s", self.viewer_id, page, exc)
            return self._fail(token, page, exc)
        except Exception as exc:
            logger.exception("Unexpected feed load failure for viewer %s page %d", self.viewer_id, page)
            return self._fail(token, page, exc)

        if token != self._generation:
            logger.debug("Discarding stale response for viewer %s page %d", self.viewer_id, page)
            return self.state

        if page == 0:
            posts = list(page_posts)
        else:
            known = {post.id for post in self.state.posts}
            posts = [*self.state.posts, *(post for post in page_posts if post.id not in known)]

        self.overlay.acknowledge({post.id for post in page_posts})

        self.state.posts = posts
        self.state.page = page
        self.state.has_more = (
            result.fetched_count >= self.policy.has_more_threshold and page < self.policy.max_page
        )
        self.state.status = FeedStatus.READY
        self.state.metrics = result.metrics
        self.state.error_details = list(result.error_details)
        self.state.debug_data = result.debug_data
        self.state.ambassador_percentage = ambassador_share(page_posts)
        self.state.last_updated = datetime.now(UTC)

        logger.info(
            "Feed loaded for viewer %s: page=%d filter=%s page_posts=%d total=%d has_more=%s",
            self.viewer_id,
            page,
            active_filter.value,
            len(page_posts),
            len(posts),
            self.state.has_more,
        )
        return self.state

    def _fail(self, token: int, page: int, exc: BaseException) -> FeedCascadeState:
        """Commit a failed load; loading flags are always cleared."""
        if token != self._generation:
            logger.debug("Discarding stale failure for viewer %s page %d", self.viewer_id, page)
            return self.state
        self.state.status = FeedStatus.ERROR
        self.state.error = str(exc) or exc.__class__.__name__
        self.state.error_details = [self.state.error]
        return self.state

    async def load_more(self) -> FeedCascadeState:
        """Append the next page; a no-op while loading or when exhausted."""
        if self.state.status in (FeedStatus.LOADING, FeedStatus.LOADING_MORE) or not self.state.has_more:
            return self.state
        return await self.load(self.state.page + 1, list(self.state.posts))

    async def refresh(self, feed_filter: FeedFilter | None = None) -> FeedCascadeState:
        """Drop optimistic posts and reload from page 0."""
        self.overlay.clear()
        return await self.load(0, (), feed_filter)

    def add_new_post(self, post: FeedPost) -> None:
        """Show ``post`` at the top of the feed until the backend returns it."""
        self.overlay.add(post)

    def acknowledge_post(self, post_id: str) -> bool:
        return self.overlay.remove(post_id)

    async def on_external_change(self) -> FeedCascadeState:
        """Reload after another feature changed posts the viewer may see."""
        logger.debug("External change for viewer %s; refreshing", self.viewer_id)
        return await self.refresh()
