"""Data access helpers for working with posts."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from rally_feed.models.post import Post
from rally_feed.models.profile import USER_TYPE_AMBASSADOR, Profile

__all__ = ["PostRepository"]

PUBLIC_PRIVACY = "public"


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def list_ambassador_posts(self, ambassador_ids: Sequence[str], limit: int) -> list[Post]:
        """Return recent public posts by ambassadors or flagged as ambassador content."""
        conditions = [Post.is_ambassador_content.is_(True)]
        if ambassador_ids:
            conditions.append(Post.user_id.in_(list(ambassador_ids)))
        stmt = (
            select(Post)
            .where(or_(*conditions), Post.privacy_level == PUBLIC_PRIVACY)
            .order_by(Post.created_at.desc(), Post.id)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def list_by_authors(
        self,
        author_ids: Sequence[str],
        offset: int,
        limit: int,
    ) -> list[Post]:
        """Return a page of posts written by ``author_ids``, newest first.

        Rows of every privacy level are returned; visibility is decided by the
        feed privacy filter.
        """
        if not author_ids:
            return []
        stmt = (
            select(Post)
            .where(Post.user_id.in_(list(author_ids)))
            .order_by(Post.created_at.desc(), Post.id)
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def list_public(
        self,
        offset: int,
        limit: int,
        exclude_author_ids: Sequence[str] = (),
    ) -> list[Post]:
        """Return a page of public posts ranked by engagement, then recency."""
        stmt = select(Post).where(Post.privacy_level == PUBLIC_PRIVACY)
        if exclude_author_ids:
            stmt = stmt.where(Post.user_id.not_in(list(exclude_author_ids)))
        stmt = (
            stmt.order_by(Post.engagement_score.desc(), Post.created_at.desc(), Post.id)
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def list_ambassador_ids(self, limit: int) -> list[str]:
        """Return identifiers of ambassador profiles."""
        stmt = (
            select(Profile.id)
            .where(Profile.user_type == USER_TYPE_AMBASSADOR)
            .order_by(Profile.id)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def create(
        self,
        *,
        user_id: str,
        content: str,
        privacy_level: str,
        media_url: str | None = None,
        media_type: str | None = None,
    ) -> Post:
        """Insert a new post and return the persisted ORM instance."""
        post = Post(
            user_id=user_id,
            content=content,
            privacy_level=privacy_level,
            media_url=media_url,
            media_type=media_type,
        )
        self.session.add(post)
        self.session.flush()
        return post
