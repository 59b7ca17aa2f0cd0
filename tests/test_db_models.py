"""Unit tests for the ORM models defined in rally_feed.models.

These tests verify basic mapping correctness: table names, composite
primary keys, defaults and the indexes the feed queries rely on.
"""

from datetime import datetime

from sqlalchemy.orm import Session

from rally_feed.models import Follower, Post, PostComment, PostLike, Profile


def test_table_names():
    """Model classes expose expected __tablename__ values."""
    assert Profile.__tablename__ == "profiles"
    assert Post.__tablename__ == "posts"
    assert Follower.__tablename__ == "followers"
    assert PostLike.__tablename__ == "likes"
    assert PostComment.__tablename__ == "comments"


def test_composite_primary_keys():
    """Likes and the following graph are keyed by both participants."""
    assert {c.name for c in PostLike.__table__.primary_key} == {"post_id", "user_id"}
    assert {c.name for c in Follower.__table__.primary_key} == {"follower_id", "following_id"}


def test_post_indexes_cover_feed_queries():
    index_columns = {
        index.name: [column.name for column in index.columns] for index in Post.__table__.indexes
    }
    assert index_columns["ix_posts_user_created"] == ["user_id", "created_at"]
    assert index_columns["ix_posts_privacy_created"] == ["privacy_level", "created_at"]


def test_post_defaults_applied_on_flush(db_session: Session):
    db_session.add(Profile(id="alice", user_type="player"))
    post = Post(user_id="alice", content="first serve")
    db_session.add(post)
    db_session.flush()

    assert len(post.id) == 32
    assert post.privacy_level == "public"
    assert post.is_ambassador_content is False
    assert post.is_auto_generated is False
    assert post.engagement_score == 0.0
    assert isinstance(post.created_at, datetime)
    db_session.rollback()
