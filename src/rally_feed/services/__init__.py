# src/rally_feed/services/__init__.py
"""Feed construction services for the Rally application."""

from .cascade import CascadeResult, FeedError, FeedQueryCascade, FeedQueryError
from .controller import FeedCascadeController, FeedCascadeState, FeedStatus
from .enrichment import PostEnricher
from .feed_types import FeedFilter, FeedPost, OptimisticPost
from .minimum_content import ensure_minimum
from .mixing import ContentMixer, MixOptions, analyze_feed_diversity
from .optimistic import OptimisticPostOverlay
from .pipeline import FeedPipeline
from .policy import FeedPolicy
from .privacy import PrivacyContext, can_view_post, filter_posts
from .privacy_levels import PrivacyLevel, SimplePrivacyLevel
from .sessions import FeedServices, FeedSessionRegistry

__all__ = [
    "CascadeResult",
    "ContentMixer",
    "FeedCascadeController",
    "FeedCascadeState",
    "FeedError",
    "FeedFilter",
    "FeedPipeline",
    "FeedPolicy",
    "FeedPost",
    "FeedQueryCascade",
    "FeedQueryError",
    "FeedServices",
    "FeedSessionRegistry",
    "FeedStatus",
    "MixOptions",
    "OptimisticPost",
    "OptimisticPostOverlay",
    "PostEnricher",
    "PrivacyContext",
    "PrivacyLevel",
    "SimplePrivacyLevel",
    "analyze_feed_diversity",
    "can_view_post",
    "ensure_minimum",
    "filter_posts",
]
