# src/rally_feed/models/engagement.py
"""SQLAlchemy models for likes and comments.

These tables are written by other features; the feed only counts rows.
"""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rally_feed.db.session import Base


class PostLike(Base):
    """A single like from a profile on a post."""

    __tablename__ = "likes"

    post_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )


class PostComment(Base):
    """A comment left on a post."""

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid.uuid4().hex
    )
    post_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
