# src/rally_feed/models/post.py
"""SQLAlchemy models for posts and related attributes."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rally_feed.db.session import Base


def _new_post_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Post(Base):
    """Primary content entity produced by players, coaches and ambassadors.

    ``privacy_level`` is stored as free text because legacy rows carry values
    outside the current taxonomy; the feed pipeline parses and fails closed.
    """

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_user_created", "user_id", "created_at"),
        Index("ix_posts_privacy_created", "privacy_level", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_post_id)
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    privacy_level: Mapped[str] = mapped_column(String(32), nullable=False, default="public")

    media_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    media_type: Mapped[str | None] = mapped_column(String(16), nullable=True)

    # Set by the ambassador content pipeline.
    is_auto_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_ambassador_content: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    engagement_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
