# src/rally_feed/models/profile.py
"""SQLAlchemy model for public user profiles."""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rally_feed.db.session import Base

USER_TYPE_PLAYER = "player"
USER_TYPE_COACH = "coach"
USER_TYPE_AMBASSADOR = "ambassador"


class Profile(Base):
    """Denormalized author data attached to feed posts."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    full_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    # player, coach or ambassador
    user_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
