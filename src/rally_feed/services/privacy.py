"""Visibility rules for feed posts relative to a viewer's social graph."""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from rally_feed.services.feed_types import FeedPost
from rally_feed.services.privacy_levels import PrivacyLevel, normalize_privacy_level

logger = logging.getLogger(__name__)

COACH_USER_TYPE = "coach"


@dataclass(frozen=True)
class PrivacyContext:
    """Per-request snapshot of who is looking at the feed.

    Built fresh for every load or refresh and never persisted.
    """

    current_user_id: str | None = None
    user_followings: frozenset[str] = field(default_factory=frozenset)
    user_type: str | None = None
    is_coach: bool = False

    @classmethod
    def for_viewer(
        cls,
        user_id: str | None,
        followings: Iterable[str] = (),
        user_type: str | None = None,
    ) -> PrivacyContext:
        """Build a context, deriving the coach flag from ``user_type``."""
        return cls(
            current_user_id=user_id,
            user_followings=frozenset(followings),
            user_type=user_type,
            is_coach=user_type == COACH_USER_TYPE,
        )

    @property
    def is_anonymous(self) -> bool:
        return self.current_user_id is None

    @property
    def following_count(self) -> int:
        return len(self.user_followings)


def can_view_post(post: FeedPost, context: PrivacyContext) -> bool:
    """Return True if the viewer described by ``context`` may see ``post``.

    Rules are evaluated in order and the first match wins. Unknown privacy
    values are never visible to anyone but the author.
    """
    if context.current_user_id is not None and post.user_id == context.current_user_id:
        return True

    level = normalize_privacy_level(post.privacy_level)

    if context.is_anonymous:
        return level is PrivacyLevel.PUBLIC

    if level is PrivacyLevel.PUBLIC:
        return True
    if level is PrivacyLevel.PUBLIC_HIGHLIGHTS:
        return True
    if level is PrivacyLevel.PRIVATE:
        return False
    if level is PrivacyLevel.FRIENDS:
        return post.user_id in context.user_followings
    if level is PrivacyLevel.COACHES:
        return context.is_coach

    logger.warning(
        "Post %s has unrecognised privacy level %r; hiding it",
        post.id,
        post.privacy_level,
    )
    return False


def filter_posts(posts: Iterable[FeedPost], context: PrivacyContext) -> list[FeedPost]:
    """Return the posts visible to the viewer, preserving input order.

    A fault while classifying one post hides that post and is logged; it never
    prevents the remaining posts from being filtered.
    """
    visible: list[FeedPost] = []
    for post in posts:
        try:
            allowed = can_view_post(post, context)
        except Exception:
            logger.exception("Privacy check failed for post %s; hiding it", getattr(post, "id", None))
            continue
        if allowed:
            visible.append(post)
    return visible
