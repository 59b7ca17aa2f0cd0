"""Counters for likes and comments."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rally_feed.models.engagement import PostComment, PostLike

__all__ = ["EngagementRepository"]


class EngagementRepository:
    """Count engagement rows written by other features."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def count_likes(self, post_id: str) -> int:
        stmt = select(func.count()).select_from(PostLike).where(PostLike.post_id == post_id)
        return int(self.session.scalar(stmt) or 0)

    def count_comments(self, post_id: str) -> int:
        stmt = select(func.count()).select_from(PostComment).where(PostComment.post_id == post_id)
        return int(self.session.scalar(stmt) or 0)
