"""Data access helpers for profiles and the following graph."""
from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from rally_feed.models.follow import Follower
from rally_feed.models.profile import Profile

__all__ = ["FollowRepository", "ProfileRepository"]


class ProfileRepository:
    """Read access to author profiles."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_many(self, user_ids: Sequence[str]) -> list[Profile]:
        """Return profiles for the given ids; unknown ids are simply absent."""
        if not user_ids:
            return []
        stmt = select(Profile).where(Profile.id.in_(list(user_ids)))
        return list(self.session.scalars(stmt))


class FollowRepository:
    """Read access to the directed following graph."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_following_ids(self, user_id: str) -> list[str]:
        """Return ids of the users ``user_id`` follows."""
        stmt = (
            select(Follower.following_id)
            .where(Follower.follower_id == user_id)
            .order_by(Follower.following_id)
        )
        return list(self.session.scalars(stmt))
