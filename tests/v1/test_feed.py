# tests/v1/test_feed.py
from fastapi.testclient import TestClient

from rally_feed.core.security import create_access_token
from rally_feed.models import Profile
from rally_feed.services.sessions import FeedSessionRegistry
from tests.conftest import Seeder, make_post


def _ids(body: dict) -> list[str]:
    return [post["id"] for post in body["posts"]]


def test_anonymous_viewer_sees_only_public_posts(client: TestClient, seed: Seeder) -> None:
    seed.profile("alice")
    seed.post("alice", "public", post_id="open")
    seed.post("alice", "friends", post_id="friends-only")
    seed.post("alice", "public_highlights", post_id="highlight")
    seed.post("alice", "private", post_id="secret")

    r = client.get("/api/v1/feed")

    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ready"
    assert body["is_loading"] is False
    assert _ids(body) == ["open"]
    assert body["posts"][0]["display_privacy"] == "public"


def test_viewer_sees_own_and_friends_posts(
    client: TestClient, seed: Seeder, viewer: Profile, auth_token: dict[str, str]
) -> None:
    seed.profile("alice")
    seed.profile("mallory")
    seed.follow(viewer.id, "alice")
    seed.post(viewer.id, "private", post_id="own-private", minutes_ago=1)
    seed.post("alice", "friends", post_id="alice-friends", minutes_ago=2)
    seed.post("mallory", "friends", post_id="mallory-friends", minutes_ago=3)

    r = client.get("/api/v1/feed", headers=auth_token)

    assert r.status_code == 200
    body = r.json()
    assert set(_ids(body)) == {"own-private", "alice-friends"}
    displays = {post["id"]: post["display_privacy"] for post in body["posts"]}
    assert displays == {"own-private": "private", "alice-friends": "private"}
    privacy = {post["id"]: post["privacy_level"] for post in body["posts"]}
    assert privacy["alice-friends"] == "friends"


def test_posts_carry_author_and_engagement(client: TestClient, seed: Seeder) -> None:
    seed.profile("ace", user_type="ambassador", full_name="Ace Server")
    seed.profile("fan")
    seed.post("ace", post_id="serve")
    seed.like("serve", "fan")

    body = client.get("/api/v1/feed").json()

    [post] = body["posts"]
    assert post["author"]["full_name"] == "Ace Server"
    assert post["is_ambassador"] is True
    assert post["likes_count"] == 1
    assert body["ambassador_percentage"] == 1.0
    assert [metric["source"] for metric in body["metrics"]][0] == "core_ambassadors"


def test_invalid_token_is_rejected(client: TestClient) -> None:
    r = client.get("/api/v1/feed", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_filter_switch_resets_pagination(
    client: TestClient, seed: Seeder, viewer: Profile, auth_token: dict[str, str]
) -> None:
    seed.profile("alice")
    seed.profile("stranger")
    seed.follow(viewer.id, "alice")
    seed.post("alice", post_id="alice-1")
    seed.post("stranger", post_id="stranger-1")

    everything = client.get("/api/v1/feed", headers=auth_token).json()
    discover = client.get("/api/v1/feed", params={"filter": "discover"}, headers=auth_token).json()

    assert set(_ids(everything)) == {"alice-1", "stranger-1"}
    assert discover["filter"] == "discover"
    assert discover["page"] == 0
    assert _ids(discover) == ["stranger-1"]


def test_unknown_filter_is_rejected(client: TestClient) -> None:
    r = client.get("/api/v1/feed", params={"filter": "trending"})
    assert r.status_code == 422


def test_load_more_requires_authentication(client: TestClient) -> None:
    r = client.post("/api/v1/feed/more")
    assert r.status_code == 401


def test_load_more_without_more_pages_is_noop(
    client: TestClient, seed: Seeder, auth_token: dict[str, str]
) -> None:
    seed.profile("stranger")
    seed.post("stranger", post_id="only")

    r = client.post("/api/v1/feed/more", headers=auth_token)

    assert r.status_code == 200
    body = r.json()
    assert body["page"] == 0
    assert body["has_more"] is False
    assert _ids(body) == ["only"]


def test_refresh_picks_up_new_posts(client: TestClient, seed: Seeder, auth_token: dict[str, str]) -> None:
    seed.profile("stranger")
    seed.post("stranger", post_id="first")
    assert _ids(client.get("/api/v1/feed", headers=auth_token).json()) == ["first"]

    seed.post("stranger", post_id="second", minutes_ago=-5)
    cached = client.get("/api/v1/feed", headers=auth_token).json()
    refreshed = client.post("/api/v1/feed/refresh", headers=auth_token).json()

    assert _ids(cached) == ["first"]
    assert set(_ids(refreshed)) == {"first", "second"}


def test_notify_refreshes_active_sessions(
    client: TestClient,
    seed: Seeder,
    viewer: Profile,
    auth_token: dict[str, str],
    feed_sessions: FeedSessionRegistry,
) -> None:
    seed.profile("other")
    other_headers = {"Authorization": f"Bearer {create_access_token('other')}"}
    client.get("/api/v1/feed", headers=auth_token)
    client.get("/api/v1/feed", headers=other_headers)
    seed.post("other", post_id="fresh")

    r = client.post("/api/v1/feed/notify", json={"user_ids": [viewer.id, "nobody"]}, headers=other_headers)

    assert r.status_code == 200
    assert r.json() == {"refreshed": [viewer.id]}
    assert [post.id for post in feed_sessions.get(viewer.id).state.posts] == ["fresh"]
    assert feed_sessions.get("other").state.posts == []


def test_notify_without_ids_refreshes_everyone(
    client: TestClient, auth_token: dict[str, str], viewer: Profile
) -> None:
    client.get("/api/v1/feed", headers=auth_token)

    r = client.post("/api/v1/feed/notify", json={}, headers=auth_token)

    assert r.json() == {"refreshed": [viewer.id]}


def test_notify_requires_authentication(
    client: TestClient, auth_token: dict[str, str], feed_sessions: FeedSessionRegistry, viewer: Profile
) -> None:
    client.get("/api/v1/feed", headers=auth_token)
    controller = feed_sessions.get(viewer.id)
    controller.add_new_post(make_post(viewer.id, post_id="pending"))

    r = client.post("/api/v1/feed/notify", json={})

    assert r.status_code == 401
    assert controller.optimistic_ids == {"pending"}
