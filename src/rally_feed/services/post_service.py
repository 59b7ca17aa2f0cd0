"""Service-level helpers for creating posts."""
from __future__ import annotations

import logging

from rally_feed.schemas.post import PostCreate
from rally_feed.services.feed_types import FeedPost, PostDraft
from rally_feed.services.sessions import FeedSessionRegistry
from rally_feed.services.stores import PostStore

logger = logging.getLogger(__name__)


class PostService:
    """Persist new posts and surface them in the author's feed right away."""

    def __init__(self, store: PostStore, sessions: FeedSessionRegistry) -> None:
        self.store = store
        self.sessions = sessions

    async def create_post(self, viewer_id: str, payload: PostCreate) -> FeedPost:
        """Create a post for ``viewer_id``.

        Args:
            viewer_id: Authenticated author of the post.
            payload: Validated request body.

        Returns:
            The persisted post as seen by the feed pipeline.

        Notes:
            The post is shown optimistically at the top of the author's feed
            until a later load returns it from the backend or its time to live
            runs out.
        """
        draft = PostDraft(
            user_id=viewer_id,
            content=payload.content,
            privacy_level=payload.privacy_level,
            media_url=payload.media_url,
            media_type=payload.media_type,
        )
        post = await self.store.create_post(draft)
        self.sessions.controller_for(viewer_id).add_new_post(post)
        logger.info("Post %s created by %s (%s)", post.id, viewer_id, draft.privacy_level.value)
        return post
