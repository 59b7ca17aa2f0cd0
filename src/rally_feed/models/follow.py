# src/rally_feed/models/follow.py
"""SQLAlchemy model for the directed following graph."""

from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from rally_feed.db.session import Base


class Follower(Base):
    """Edge meaning ``follower_id`` follows ``following_id``."""

    __tablename__ = "followers"

    follower_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    following_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
