# src/rally_feed/api/v1/endpoints/feed.py
"""Feed endpoints for the Rally API."""

from fastapi import APIRouter, HTTPException, Query, status

from rally_feed.api.v1.dependencies import CurrentViewerDep, FeedSessionsDep, OptionalViewerDep
from rally_feed.schemas.feed import FeedChangeAck, FeedChangeNotice, FeedPageOut, to_feed_page_out
from rally_feed.services.feed_types import FeedFilter

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("", response_model=FeedPageOut)
async def get_feed(
    sessions: FeedSessionsDep,
    viewer_id: OptionalViewerDep,
    feed_filter: FeedFilter | None = Query(None, alias="filter"),
) -> FeedPageOut:
    """Return the viewer's displayed feed, loading the first page on first access.

    Switching ``filter`` resets pagination to the first page.
    """
    controller = sessions.controller_for(viewer_id)
    if feed_filter is not None and feed_filter is not controller.state.feed_filter:
        await controller.refresh(feed_filter)
    else:
        await controller.ensure_loaded()
    return to_feed_page_out(controller)


@router.post("/refresh", response_model=FeedPageOut)
async def refresh_feed(
    sessions: FeedSessionsDep,
    viewer_id: OptionalViewerDep,
    feed_filter: FeedFilter | None = Query(None, alias="filter"),
) -> FeedPageOut:
    """Drop optimistic posts and reload the first page."""
    controller = sessions.controller_for(viewer_id)
    await controller.refresh(feed_filter)
    return to_feed_page_out(controller)


@router.post("/more", response_model=FeedPageOut)
async def load_more(sessions: FeedSessionsDep, viewer_id: CurrentViewerDep) -> FeedPageOut:
    """Append the next page to the viewer's feed."""
    controller = sessions.controller_for(viewer_id)
    await controller.ensure_loaded()
    await controller.load_more()
    return to_feed_page_out(controller)


@router.delete("/optimistic/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def acknowledge_post(post_id: str, sessions: FeedSessionsDep, viewer_id: CurrentViewerDep) -> None:
    """Remove an optimistic stand-in once the client has the real post."""
    if not sessions.controller_for(viewer_id).acknowledge_post(post_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Optimistic post not found",
        )


@router.post("/notify", response_model=FeedChangeAck)
async def notify_change(
    notice: FeedChangeNotice,
    sessions: FeedSessionsDep,
    viewer_id: CurrentViewerDep,
) -> FeedChangeAck:
    """Refresh active feeds after posts changed elsewhere.

    Requires an authenticated caller since a notice can refresh every session.
    """
    refreshed = await sessions.notify_change(notice.user_ids)
    return FeedChangeAck(refreshed=refreshed)
