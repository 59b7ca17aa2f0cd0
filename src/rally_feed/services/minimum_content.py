"""Top up an under-filled feed from a fallback pool."""
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence

from rally_feed.services.feed_types import FeedPost, by_ranking
from rally_feed.services.privacy_levels import is_public

logger = logging.getLogger(__name__)

# Smallest top-up attempted once a feed is below its threshold.
MIN_TOP_UP = 2


def ensure_minimum(
    current_posts: Sequence[FeedPost],
    fallback_pool: Iterable[FeedPost],
    min_required: int,
    max_per_author: int | None = None,
) -> list[FeedPost]:
    """Append public fallback posts until ``min_required`` is reached.

    Existing posts keep their order. Candidates must be public and not already
    present; they are ranked by ``engagement_score + 2 * likes_count`` with the
    most recent post winning ties. With ``max_per_author`` set, authors that
    already have that many posts in the feed are skipped. If the pool runs dry
    the feed stays short.
    """
    result = list(current_posts)
    if len(result) >= min_required:
        return result

    needed = max(min_required - len(result), MIN_TOP_UP)
    present = {post.id for post in result}
    candidates: list[FeedPost] = []
    for post in fallback_pool:
        if post.id in present or not is_public(post.privacy_level):
            continue
        present.add(post.id)
        candidates.append(post)

    candidates.sort(key=by_ranking)
    author_counts = Counter(post.user_id for post in result)
    additions: list[FeedPost] = []
    for post in candidates:
        if len(additions) >= needed:
            break
        if max_per_author is not None and author_counts[post.user_id] >= max_per_author:
            continue
        additions.append(post)
        author_counts[post.user_id] += 1
    result.extend(additions)

    logger.info(
        "Minimum content top-up: had=%d required=%d added=%d pool_eligible=%d",
        len(current_posts),
        min_required,
        len(additions),
        len(candidates),
    )
    return result
