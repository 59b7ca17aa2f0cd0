"""Blend privacy-filtered posts into a balanced feed page.

The mixer sorts candidates into four disjoint buckets (own, followed,
ambassador, public), allocates slots with ratios that grow with the viewer's
following graph, enforces a per-author cap and interleaves the result. Output
is fully deterministic for a given input.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from rally_feed.services.feed_types import FeedPost, by_ranking, by_recency
from rally_feed.services.policy import FeedPolicy
from rally_feed.services.privacy_levels import is_public

logger = logging.getLogger(__name__)

# Guards floor() against products such as 0.7 * 10 landing just under an integer.
_FLOOR_EPSILON = 1e-9

# (upper bound of following count, followed ratio)
_RATIO_BRACKETS: tuple[tuple[int, float], ...] = (
    (0, 0.0),
    (1, 0.3),
    (2, 0.4),
    (5, 0.6),
    (10, 0.7),
)
_LARGE_GRAPH_RATIO = 0.8
_LARGE_GRAPH_BOOST = 0.2
_MAX_FOLLOWED_RATIO = 0.8


@dataclass(frozen=True)
class MixOptions:
    """Viewer graph facts the mixer needs."""

    following_count: int
    user_followings: frozenset[str] = field(default_factory=frozenset)
    current_user_id: str | None = None


@dataclass(frozen=True)
class MixRatios:
    """Share of the page reserved for followed authors versus strangers."""

    followed: float
    public: float


@dataclass
class ContentBuckets:
    """Disjoint categorisation of candidate posts."""

    own: list[FeedPost] = field(default_factory=list)
    followed: list[FeedPost] = field(default_factory=list)
    ambassador: list[FeedPost] = field(default_factory=list)
    public: list[FeedPost] = field(default_factory=list)
    # Visible to the viewer but outside the four mixing buckets (coach-only
    # or highlight posts by strangers).
    restricted: list[FeedPost] = field(default_factory=list)

    def as_tuple(self) -> tuple[list[FeedPost], ...]:
        return (self.own, self.followed, self.ambassador, self.public)


def _floor(value: float) -> int:
    return max(0, math.floor(value + _FLOOR_EPSILON))


def mix_ratios(following_count: int) -> MixRatios:
    """Return the followed/public split for a following graph of this size."""
    followed = _LARGE_GRAPH_RATIO
    for upper_bound, ratio in _RATIO_BRACKETS:
        if following_count <= upper_bound:
            followed = ratio
            break

    if following_count > 10:
        followed = min(followed + _LARGE_GRAPH_BOOST, _MAX_FOLLOWED_RATIO)

    return MixRatios(followed=followed, public=round(1.0 - followed, 6))


def categorize_posts(posts: Iterable[FeedPost], options: MixOptions) -> ContentBuckets:
    """Place every post in at most one bucket, in priority order.

    Posts that are not own, followed or ambassador content and whose privacy
    tier is not ``public`` belong to no mixing bucket; they are collected in
    ``restricted`` and the mixer leaves them out.
    """
    buckets = ContentBuckets()
    seen: set[str] = set()
    for post in posts:
        if post.id in seen:
            continue
        seen.add(post.id)

        if options.current_user_id is not None and post.user_id == options.current_user_id:
            buckets.own.append(post)
        elif post.user_id in options.user_followings:
            buckets.followed.append(post)
        elif post.is_ambassador:
            buckets.ambassador.append(post)
        elif is_public(post.privacy_level):
            buckets.public.append(post)
        else:
            buckets.restricted.append(post)
    return buckets


def _take_with_author_cap(
    ranked: Sequence[FeedPost],
    quota: int,
    author_counts: Counter[str],
    max_per_author: int,
) -> list[FeedPost]:
    """Pick up to ``quota`` posts, skipping authors already at the cap.

    ``ranked`` is the whole sorted bucket, so a skipped post is backfilled by
    the next-best candidate from the same bucket.
    """
    chosen: list[FeedPost] = []
    for post in ranked:
        if len(chosen) >= quota:
            break
        if author_counts[post.user_id] >= max_per_author:
            continue
        chosen.append(post)
        author_counts[post.user_id] += 1
    return chosen


def interleave(groups: Sequence[Sequence[FeedPost]]) -> list[FeedPost]:
    """Round-robin the groups in order until all are exhausted."""
    result: list[FeedPost] = []
    longest = max((len(group) for group in groups), default=0)
    for index in range(longest):
        for group in groups:
            if index < len(group):
                result.append(group[index])
    return result


class ContentMixer:
    """Re-ratio a privacy-filtered candidate set into a feed page."""

    def __init__(self, policy: FeedPolicy | None = None) -> None:
        self.policy = policy or FeedPolicy()

    def target_total(self, available: int) -> int:
        """Clamp the page size between the variety floor and payload ceiling."""
        return max(self.policy.min_target_total, min(self.policy.max_target_total, available))

    def mix(self, posts: Sequence[FeedPost], options: MixOptions) -> list[FeedPost]:
        """Return the mixed page for ``posts``.

        Args:
            posts: Candidates already filtered for the viewer's privacy rules.
            options: Following graph facts for the viewer.

        Returns:
            At most ``target_total`` posts; fewer if the buckets run dry.
        """
        buckets = categorize_posts(posts, options)
        ratios = mix_ratios(options.following_count)
        target_total = self.target_total(len(posts))

        own = sorted(buckets.own, key=by_recency)
        followed = sorted(buckets.followed, key=by_recency)
        ambassador = sorted(buckets.ambassador, key=by_ranking)
        public = sorted(buckets.public, key=by_ranking)

        own_quota = min(len(own), self.policy.max_own_posts)
        followed_quota = min(
            len(followed),
            _floor((target_total - own_quota) * ratios.followed),
        )
        ambassador_cap = _floor(target_total * self.policy.ambassador_cap_ratio)
        remaining = max(0, target_total - own_quota - followed_quota)
        ambassador_quota = min(len(ambassador), ambassador_cap, remaining)
        public_quota = max(0, remaining - ambassador_quota)

        author_counts: Counter[str] = Counter()
        cap = self.policy.max_posts_per_author
        selected = [
            _take_with_author_cap(own, own_quota, author_counts, cap),
            _take_with_author_cap(followed, followed_quota, author_counts, cap),
            _take_with_author_cap(ambassador, ambassador_quota, author_counts, cap),
            _take_with_author_cap(public, public_quota, author_counts, cap),
        ]

        mixed = interleave(selected)
        logger.debug(
            "Mixed feed: target=%d own=%d followed=%d ambassador=%d public=%d ratio=%.2f",
            target_total,
            len(selected[0]),
            len(selected[1]),
            len(selected[2]),
            len(selected[3]),
            ratios.followed,
        )
        return mixed

    def append_restricted(
        self,
        mixed: Sequence[FeedPost],
        posts: Sequence[FeedPost],
        options: MixOptions,
    ) -> list[FeedPost]:
        """Fill the page's free slots with visible posts no mixing bucket takes.

        Coach-only and highlight posts by strangers pass the privacy stage but
        fit none of the four buckets. They are ranked like public posts and
        still respect the per-author cap.
        """
        restricted = sorted(categorize_posts(posts, options).restricted, key=by_ranking)
        slots = self.target_total(len(posts)) - len(mixed)
        if not restricted or slots <= 0:
            return list(mixed)

        author_counts: Counter[str] = Counter(post.user_id for post in mixed)
        extra = _take_with_author_cap(restricted, slots, author_counts, self.policy.max_posts_per_author)
        return [*mixed, *extra]


def ambassador_share(posts: Sequence[FeedPost]) -> float:
    """Fraction of ``posts`` that is ambassador content."""
    if not posts:
        return 0.0
    return sum(1 for post in posts if post.is_ambassador) / len(posts)


def analyze_feed_diversity(
    posts: Sequence[FeedPost],
    following_user_ids: Iterable[str],
) -> dict[str, Any]:
    """Summarise how evenly a feed page spreads across authors."""
    counts = Counter(post.user_id for post in posts)
    followings = set(following_user_ids)
    if not counts:
        return {
            "total_users": 0,
            "followed_users_represented": 0,
            "max_posts_from_single_user": 0,
            "average_posts_per_user": 0.0,
            "user_distribution": {},
        }
    return {
        "total_users": len(counts),
        "followed_users_represented": sum(1 for user_id in counts if user_id in followings),
        "max_posts_from_single_user": max(counts.values()),
        "average_posts_per_user": len(posts) / len(counts),
        "user_distribution": dict(counts),
    }
