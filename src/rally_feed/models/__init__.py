# src/rally_feed/models/__init__.py
"""SQLAlchemy models for the Rally feed service."""

from .engagement import PostComment, PostLike
from .follow import Follower
from .post import Post
from .profile import Profile

__all__ = [
    "Follower",
    "Post",
    "PostComment", "PostLike",
    "Profile",
]
