import logging

import pytest

from rally_feed.services.privacy import PrivacyContext, can_view_post, filter_posts
from rally_feed.services.privacy_levels import (
    PrivacyLevel,
    SimplePrivacyLevel,
    normalize_privacy_level,
    simplify_privacy_level,
)
from tests.conftest import make_post

ANONYMOUS = PrivacyContext()
PLAYER = PrivacyContext.for_viewer("viewer", followings={"alice"}, user_type="player")
COACH = PrivacyContext.for_viewer("coach-1", followings=set(), user_type="coach")


@pytest.mark.parametrize("context", [ANONYMOUS, PLAYER, COACH])
def test_public_posts_visible_to_every_viewer(context: PrivacyContext) -> None:
    post = make_post("stranger", PrivacyLevel.PUBLIC)
    assert can_view_post(post, context) is True


@pytest.mark.parametrize(
    "level",
    [*PrivacyLevel, "archived", "", "FRIENDS_ONLY"],
)
def test_author_always_sees_own_post(level: PrivacyLevel | str) -> None:
    post = make_post("viewer", level)
    assert can_view_post(post, PLAYER) is True


def test_friends_post_gated_on_following() -> None:
    post = make_post("alice", PrivacyLevel.FRIENDS)
    assert can_view_post(post, PLAYER) is True

    unfollowed = PrivacyContext.for_viewer("viewer", followings=set(), user_type="player")
    assert can_view_post(post, unfollowed) is False


def test_private_post_hidden_from_followers() -> None:
    post = make_post("alice", PrivacyLevel.PRIVATE)
    assert can_view_post(post, PLAYER) is False


def test_coach_sees_coaches_post_without_following() -> None:
    post = make_post("stranger", PrivacyLevel.COACHES)
    assert can_view_post(post, COACH) is True
    assert can_view_post(post, PLAYER) is False


def test_public_highlights_visible_to_authenticated_viewers_only() -> None:
    post = make_post("stranger", PrivacyLevel.PUBLIC_HIGHLIGHTS)
    assert can_view_post(post, PLAYER) is True
    assert can_view_post(post, ANONYMOUS) is False


def test_anonymous_viewer_only_gets_public_posts() -> None:
    public_a = make_post("a", PrivacyLevel.PUBLIC)
    private_b = make_post("b", PrivacyLevel.PRIVATE)
    friends_c = make_post("c", PrivacyLevel.FRIENDS)

    assert filter_posts([public_a, private_b, friends_c], ANONYMOUS) == [public_a]


@pytest.mark.parametrize("context", [ANONYMOUS, PLAYER, COACH])
def test_unknown_privacy_level_fails_closed(context: PrivacyContext, caplog: pytest.LogCaptureFixture) -> None:
    post = make_post("alice", "squad_only")

    with caplog.at_level(logging.WARNING, logger="rally_feed.services.privacy"):
        result = filter_posts([post], context)

    assert result == []
    if not context.is_anonymous:
        assert "squad_only" in caplog.text


def test_filter_is_idempotent() -> None:
    posts = [
        make_post("alice", PrivacyLevel.FRIENDS),
        make_post("bob", PrivacyLevel.FRIENDS),
        make_post("carol", PrivacyLevel.PUBLIC),
        make_post("viewer", PrivacyLevel.PRIVATE),
        make_post("dave", "mystery"),
        make_post("erin", PrivacyLevel.COACHES),
    ]

    once = filter_posts(posts, PLAYER)
    assert filter_posts(once, PLAYER) == once
    assert [post.user_id for post in once] == ["alice", "carol", "viewer"]


def test_filter_isolates_faulty_posts(mocker) -> None:
    good = make_post("carol", PrivacyLevel.PUBLIC)
    bad = make_post("mallory", PrivacyLevel.PUBLIC)
    original = can_view_post

    def flaky(post, context):
        if post is bad:
            raise ValueError("corrupt row")
        return original(post, context)

    mocker.patch("rally_feed.services.privacy.can_view_post", side_effect=flaky)

    assert filter_posts([bad, good], PLAYER) == [good]


def test_stored_values_parse_exactly() -> None:
    assert normalize_privacy_level("public") is PrivacyLevel.PUBLIC
    assert normalize_privacy_level("friends") is PrivacyLevel.FRIENDS
    assert normalize_privacy_level("squad_only") == "squad_only"


@pytest.mark.parametrize("raw", [" public", "PUBLIC ", "Friends", "Public_Highlights"])
def test_near_miss_values_stay_unrecognised(raw: str) -> None:
    assert normalize_privacy_level(raw) == raw
    post = make_post("stranger", raw)
    assert not can_view_post(post, PrivacyContext.for_viewer("viewer", followings={"stranger"}))


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (PrivacyLevel.PUBLIC, SimplePrivacyLevel.PUBLIC),
        (PrivacyLevel.PUBLIC_HIGHLIGHTS, SimplePrivacyLevel.PUBLIC_HIGHLIGHTS),
        (PrivacyLevel.FRIENDS, SimplePrivacyLevel.PRIVATE),
        (PrivacyLevel.COACHES, SimplePrivacyLevel.PRIVATE),
        (PrivacyLevel.PRIVATE, SimplePrivacyLevel.PRIVATE),
        ("unheard_of", SimplePrivacyLevel.PRIVATE),
    ],
)
def test_display_projection(level: PrivacyLevel | str, expected: SimplePrivacyLevel) -> None:
    assert simplify_privacy_level(level) is expected
