"""Short-lived overlay of locally created posts awaiting backend confirmation."""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from rally_feed.services.feed_types import FeedPost, OptimisticPost

logger = logging.getLogger(__name__)


class OptimisticPostOverlay:
    """Hold optimistic posts for at most ``ttl_seconds``.

    Each entry schedules its own expiry on the running event loop; entries are
    also pruned lazily against ``clock`` so an overlay used outside a loop still
    honours the TTL. Entries are returned newest first.
    """

    def __init__(self, ttl_seconds: float = 30.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, OptimisticPost] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}

    def add(self, post: FeedPost) -> OptimisticPost:
        """Insert ``post`` at the top of the overlay, replacing any entry with the same id."""
        self.remove(post.id)
        entry = OptimisticPost(post=post, added_at=self._clock())
        self._entries[post.id] = entry
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._timers[post.id] = loop.call_later(self.ttl_seconds, self._expire, post.id)
        return entry

    def remove(self, post_id: str) -> bool:
        """Drop ``post_id`` and cancel its timer; return True if it was present."""
        timer = self._timers.pop(post_id, None)
        if timer is not None:
            timer.cancel()
        return self._entries.pop(post_id, None) is not None

    def acknowledge(self, post_ids: set[str]) -> int:
        """Remove every entry whose id the backend has now returned."""
        removed = 0
        for post_id in list(self._entries):
            if post_id in post_ids and self.remove(post_id):
                removed += 1
        if removed:
            logger.debug("Acknowledged %d optimistic posts", removed)
        return removed

    def clear(self) -> None:
        """Cancel all pending timers and drop every entry."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._entries.clear()

    def posts(self) -> list[OptimisticPost]:
        """Return live entries, newest first."""
        self._prune()
        return list(reversed(self._entries.values()))

    def _expire(self, post_id: str) -> None:
        self._timers.pop(post_id, None)
        if self._entries.pop(post_id, None) is not None:
            logger.debug("Optimistic post %s expired", post_id)

    def _prune(self) -> None:
        cutoff = self._clock() - self.ttl_seconds
        for post_id, entry in list(self._entries.items()):
            if entry.added_at <= cutoff:
                self.remove(post_id)

    def __len__(self) -> int:
        self._prune()
        return len(self._entries)

    def __contains__(self, post_id: object) -> bool:
        self._prune()
        return post_id in self._entries
