# src/rally_feed/schemas/feed.py
"""Feed page schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from rally_feed.schemas.post import PostOut, to_post_out
from rally_feed.services.controller import FeedCascadeController, FeedStatus
from rally_feed.services.feed_types import FeedFilter


class CascadeMetricOut(BaseModel):
    """Timing of one retrieval tier."""

    level: str
    source: str
    post_count: int
    query_time: float
    error_count: int


class FeedPageOut(BaseModel):
    """The posts a viewer currently sees plus the feed's loading state."""

    posts: list[PostOut]
    status: FeedStatus
    filter: FeedFilter
    page: int
    has_more: bool
    is_loading: bool
    is_loading_more: bool
    has_errors: bool
    error: str | None = None
    error_details: list[str] = Field(default_factory=list)
    ambassador_percentage: float = 0.0
    metrics: list[CascadeMetricOut] = Field(default_factory=list)
    debug_data: dict[str, Any] = Field(default_factory=dict)
    last_updated: datetime | None = None


class FeedChangeNotice(BaseModel):
    """External notification that posts visible to some viewers changed."""

    user_ids: list[str] | None = Field(
        None, description="Viewers whose feeds should refresh; all active viewers when omitted"
    )


class FeedChangeAck(BaseModel):
    refreshed: list[str]


def to_feed_page_out(controller: FeedCascadeController) -> FeedPageOut:
    """Render a controller's displayed posts and state."""
    state = controller.state
    optimistic = controller.optimistic_ids
    return FeedPageOut(
        posts=[to_post_out(post, is_optimistic=post.id in optimistic) for post in controller.displayed_posts],
        status=state.status,
        filter=state.feed_filter,
        page=state.page,
        has_more=state.has_more,
        is_loading=state.is_loading,
        is_loading_more=state.is_loading_more,
        has_errors=state.has_errors,
        error=state.error,
        error_details=list(state.error_details),
        ambassador_percentage=state.ambassador_percentage,
        metrics=[
            CascadeMetricOut(
                level=metric.level,
                source=metric.source,
                post_count=metric.post_count,
                query_time=metric.query_time,
                error_count=metric.error_count,
            )
            for metric in state.metrics
        ],
        debug_data=state.debug_data,
        last_updated=state.last_updated,
    )
