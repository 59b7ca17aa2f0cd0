"""Assemble the per-request privacy context for a viewer."""
from __future__ import annotations

import logging

from rally_feed.services.privacy import PrivacyContext
from rally_feed.services.stores import ProfileStore, SocialGraphStore

logger = logging.getLogger(__name__)


class ViewerContextProvider:
    """Build a :class:`PrivacyContext` from the social graph and profile stores.

    Lookup failures degrade to the most restrictive context for an
    authenticated viewer: no followings and no coach role.
    """

    def __init__(self, graph: SocialGraphStore, profiles: ProfileStore) -> None:
        self.graph = graph
        self.profiles = profiles

    async def build(self, user_id: str | None) -> PrivacyContext:
        if user_id is None:
            return PrivacyContext()

        try:
            followings = await self.graph.list_followings(user_id)
        except Exception:
            logger.exception("Could not load followings for viewer %s", user_id)
            followings = []

        user_type: str | None = None
        try:
            profile = (await self.profiles.get_profiles([user_id])).get(user_id)
        except Exception:
            logger.exception("Could not load profile for viewer %s", user_id)
        else:
            if profile is not None:
                user_type = profile.user_type

        return PrivacyContext.for_viewer(user_id, followings, user_type)
