# src/rally_feed/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import feed_router, posts_router

__all__ = [
    "feed_router",
    "posts_router",
]
