"""Post-processing pipeline combining privacy filtering, mixing and top-ups.

The pipeline is the circuit breaker of the feed: whatever goes wrong inside
the privacy or mixing logic, the caller still receives the viewer's own posts
and every public post from the raw candidate set.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from rally_feed.services.feed_types import FeedPost
from rally_feed.services.minimum_content import ensure_minimum
from rally_feed.services.mixing import ContentMixer, MixOptions
from rally_feed.services.policy import FeedPolicy
from rally_feed.services.privacy import PrivacyContext, filter_posts
from rally_feed.services.privacy_levels import PrivacyLevel, is_public, normalize_privacy_level

logger = logging.getLogger(__name__)

# New users see at most this many coach-only posts.
NEW_USER_COACH_POSTS = 3
# New-user selection aims this many posts past what the graph already supplies.
NEW_USER_PUBLIC_HEADROOM = 3


@dataclass
class PrivacyPartition:
    """Candidates split by the rule that would make them visible."""

    own: list[FeedPost] = field(default_factory=list)
    public: list[FeedPost] = field(default_factory=list)
    friends: list[FeedPost] = field(default_factory=list)
    coaches: list[FeedPost] = field(default_factory=list)

    def union(self) -> list[FeedPost]:
        return [*self.own, *self.friends, *self.coaches, *self.public]


def partition_posts(posts: Sequence[FeedPost], context: PrivacyContext) -> PrivacyPartition:
    """Split raw posts into the buckets the viewer is entitled to."""
    partition = PrivacyPartition()
    for post in posts:
        if context.current_user_id is not None and post.user_id == context.current_user_id:
            partition.own.append(post)
            continue
        level = normalize_privacy_level(post.privacy_level)
        if level is PrivacyLevel.PUBLIC:
            partition.public.append(post)
        elif level is PrivacyLevel.FRIENDS and post.user_id in context.user_followings:
            partition.friends.append(post)
        elif level is PrivacyLevel.COACHES and context.is_coach:
            partition.coaches.append(post)
    return partition


def safe_fallback(posts: Sequence[FeedPost], context: PrivacyContext) -> list[FeedPost]:
    """Return ``public ∪ own`` from the raw input, preserving order."""
    return [
        post
        for post in posts
        if is_public(post.privacy_level)
        or (context.current_user_id is not None and post.user_id == context.current_user_id)
    ]


class FeedPipeline:
    """Turn raw candidate posts into the page a viewer is allowed to see."""

    def __init__(self, policy: FeedPolicy | None = None, mixer: ContentMixer | None = None) -> None:
        self.policy = policy or FeedPolicy()
        self.mixer = mixer or ContentMixer(self.policy)

    def process(self, raw_posts: Sequence[FeedPost], context: PrivacyContext) -> list[FeedPost]:
        """Run privacy, mixing and minimum-content stages over ``raw_posts``."""
        if not raw_posts:
            return []

        try:
            return self._process(raw_posts, context)
        except Exception:
            logger.exception(
                "Feed pipeline failed for viewer %s; serving public and own posts only",
                context.current_user_id,
            )
            return safe_fallback(raw_posts, context)

    def _process(self, raw_posts: Sequence[FeedPost], context: PrivacyContext) -> list[FeedPost]:
        partition = partition_posts(raw_posts, context)
        new_user = self.policy.is_new_user(context.following_count)

        if new_user:
            visible = self._new_user_selection(partition, context.following_count)
        else:
            visible = filter_posts(raw_posts, context)

        options = MixOptions(
            following_count=context.following_count,
            user_followings=context.user_followings,
            current_user_id=context.current_user_id,
        )
        mixed = self.mixer.mix(visible, options)
        mixed = self.mixer.append_restricted(mixed, visible, options)

        # Top-ups honour the same per-author cap as the mixer.
        cap = self.policy.max_posts_per_author
        mixing_minimum = (
            self.policy.new_user_min_posts if new_user else self.policy.established_min_posts
        )
        result = ensure_minimum(mixed, visible, mixing_minimum, cap)

        privacy_minimum = (
            self.policy.privacy_min_new_user if new_user else self.policy.privacy_min_established
        )
        if len(result) < privacy_minimum:
            result = ensure_minimum(result, partition.union(), privacy_minimum, cap)

        logger.info(
            "Pipeline complete: raw=%d visible=%d final=%d new_user=%s",
            len(raw_posts),
            len(visible),
            len(result),
            new_user,
        )
        return result

    def _new_user_selection(
        self,
        partition: PrivacyPartition,
        following_count: int,
    ) -> list[FeedPost]:
        """Richer selection for viewers with a tiny following graph."""
        selection: list[FeedPost] = list(partition.own)
        selection.extend(partition.friends[: max(2, following_count * 2)])
        selection.extend(partition.coaches[:NEW_USER_COACH_POSTS])

        target = max(self.policy.min_target_total, len(selection) + NEW_USER_PUBLIC_HEADROOM)
        ranked_public = sorted(
            partition.public,
            key=lambda post: post.engagement_score or 0.0,
            reverse=True,
        )
        selection.extend(ranked_public[: max(0, target - len(selection))])
        return selection
