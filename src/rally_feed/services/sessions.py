"""Wiring of feed collaborators and per-viewer controller sessions."""
from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from rally_feed.services.cascade import FeedQueryCascade
from rally_feed.services.controller import FeedCascadeController
from rally_feed.services.enrichment import PostEnricher
from rally_feed.services.feed_types import FeedFilter
from rally_feed.services.pipeline import FeedPipeline
from rally_feed.services.policy import FeedPolicy
from rally_feed.services.stores import (
    EngagementStore,
    PostStore,
    ProfileStore,
    SessionFactory,
    SocialGraphStore,
    SqlEngagementStore,
    SqlPostStore,
    SqlProfileStore,
    SqlSocialGraphStore,
)
from rally_feed.services.viewer import ViewerContextProvider

logger = logging.getLogger(__name__)


@dataclass
class FeedServices:
    """Explicitly constructed collaborators shared by every feed controller."""

    policy: FeedPolicy
    posts: PostStore
    profiles: ProfileStore
    engagement: EngagementStore
    graph: SocialGraphStore

    @classmethod
    def from_session_factory(cls, session_factory: SessionFactory, policy: FeedPolicy) -> FeedServices:
        """Bind the SQL-backed stores to ``session_factory``."""
        return cls(
            policy=policy,
            posts=SqlPostStore(session_factory),
            profiles=SqlProfileStore(session_factory),
            engagement=SqlEngagementStore(session_factory),
            graph=SqlSocialGraphStore(session_factory),
        )

    def build_controller(
        self,
        viewer_id: str | None,
        feed_filter: FeedFilter = FeedFilter.ALL,
    ) -> FeedCascadeController:
        return FeedCascadeController(
            viewer_id,
            viewer_provider=ViewerContextProvider(self.graph, self.profiles),
            cascade=FeedQueryCascade(self.posts, self.policy),
            enricher=PostEnricher(self.profiles, self.engagement),
            pipeline=FeedPipeline(self.policy),
            policy=self.policy,
            feed_filter=feed_filter,
        )


class FeedSessionRegistry:
    """Keep one feed controller per authenticated viewer.

    Anonymous viewers get a throwaway controller for each request since there
    is no identity to key state on. Sessions idle for longer than
    ``idle_ttl_seconds`` are evicted, and beyond ``max_sessions`` the least
    recently used session goes first. Evicted controllers have their
    optimistic timers cancelled; the viewer's next request starts a new session.
    """

    def __init__(
        self,
        services: FeedServices,
        max_sessions: int = 1000,
        idle_ttl_seconds: float = 1800.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.services = services
        self.max_sessions = max_sessions
        self.idle_ttl_seconds = idle_ttl_seconds
        self._clock = clock
        # viewer id -> (controller, last access); least recently used first
        self._controllers: OrderedDict[str, tuple[FeedCascadeController, float]] = OrderedDict()

    def controller_for(self, viewer_id: str | None) -> FeedCascadeController:
        if viewer_id is None:
            return self.services.build_controller(None)
        self._evict_idle()
        entry = self._controllers.pop(viewer_id, None)
        controller = entry[0] if entry is not None else self.services.build_controller(viewer_id)
        self._controllers[viewer_id] = (controller, self._clock())
        while len(self._controllers) > self.max_sessions:
            evicted_id, (evicted, _) = self._controllers.popitem(last=False)
            self._discard(evicted_id, evicted, "capacity")
        return controller

    def get(self, viewer_id: str) -> FeedCascadeController | None:
        self._evict_idle()
        entry = self._controllers.get(viewer_id)
        return entry[0] if entry is not None else None

    async def notify_change(self, user_ids: Iterable[str] | None = None) -> list[str]:
        """Refresh controllers of ``user_ids`` (every active viewer when None).

        Viewers without an active controller are skipped; their first load
        will see the change anyway. Returns the refreshed viewer ids.
        """
        self._evict_idle()
        targets = list(self._controllers) if user_ids is None else list(user_ids)
        refreshed: list[str] = []
        for viewer_id in targets:
            entry = self._controllers.get(viewer_id)
            if entry is None:
                continue
            await entry[0].on_external_change()
            refreshed.append(viewer_id)
        logger.info("External change refreshed %d feed sessions", len(refreshed))
        return refreshed

    def close(self) -> None:
        """Cancel optimistic timers and forget every controller."""
        for controller, _ in self._controllers.values():
            controller.overlay.clear()
        self._controllers.clear()

    def _evict_idle(self) -> None:
        cutoff = self._clock() - self.idle_ttl_seconds
        while self._controllers:
            viewer_id, (controller, last_seen) = next(iter(self._controllers.items()))
            if last_seen > cutoff:
                break
            del self._controllers[viewer_id]
            self._discard(viewer_id, controller, "idle")

    def _discard(self, viewer_id: str, controller: FeedCascadeController, reason: str) -> None:
        controller.overlay.clear()
        logger.debug("Evicted feed session for viewer %s (%s)", viewer_id, reason)

    def __len__(self) -> int:
        return len(self._controllers)
