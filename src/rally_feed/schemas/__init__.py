# src/rally_feed/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .feed import FeedChangeAck, FeedChangeNotice, FeedPageOut
from .post import AuthorOut, PostCreate, PostOut

__all__ = [
    "AuthorOut",
    "FeedChangeAck", "FeedChangeNotice", "FeedPageOut",
    "PostCreate", "PostOut",
]
