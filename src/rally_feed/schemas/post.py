# src/rally_feed/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from rally_feed.services.feed_types import FeedPost
from rally_feed.services.privacy_levels import PrivacyLevel, SimplePrivacyLevel, simplify_privacy_level


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    content: str = Field(..., min_length=1, max_length=5000, description="Post body")
    privacy_level: PrivacyLevel = Field(PrivacyLevel.PUBLIC, description="Who may see the post")
    media_url: str | None = Field(None, max_length=2048, description="Attached photo or video")
    media_type: str | None = Field(None, max_length=16, description="Media MIME family")


class AuthorOut(BaseModel):
    """Author profile snapshot attached to a post."""

    full_name: str | None = None
    user_type: str | None = None
    avatar_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PostOut(BaseModel):
    """Schema for a post returned by the API."""

    id: str
    user_id: str
    content: str
    privacy_level: str
    display_privacy: SimplePrivacyLevel
    created_at: datetime
    media_url: str | None = None
    media_type: str | None = None
    is_ambassador: bool = False
    engagement_score: float = 0.0
    likes_count: int = 0
    comments_count: int = 0
    author: AuthorOut | None = None
    is_optimistic: bool = False


def to_post_out(post: FeedPost, *, is_optimistic: bool = False) -> PostOut:
    """Convert a pipeline post to its API schema."""
    level = post.privacy_level
    return PostOut(
        id=post.id,
        user_id=post.user_id,
        content=post.content,
        privacy_level=level.value if isinstance(level, PrivacyLevel) else str(level),
        display_privacy=simplify_privacy_level(level),
        created_at=post.created_at,
        media_url=post.media_url,
        media_type=post.media_type,
        is_ambassador=post.is_ambassador,
        engagement_score=post.engagement_score,
        likes_count=post.likes_count,
        comments_count=post.comments_count,
        author=AuthorOut.model_validate(post.author) if post.author is not None else None,
        is_optimistic=is_optimistic,
    )
