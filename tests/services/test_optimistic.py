import asyncio

import pytest

from rally_feed.services.optimistic import OptimisticPostOverlay
from tests.conftest import make_post


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_entries_are_newest_first() -> None:
    overlay = OptimisticPostOverlay(ttl_seconds=30, clock=FakeClock())
    first, second = make_post("viewer"), make_post("viewer")

    overlay.add(first)
    overlay.add(second)

    assert [entry.post for entry in overlay.posts()] == [second, first]
    assert all(entry.is_optimistic for entry in overlay.posts())


def test_entry_expires_after_ttl_without_event_loop() -> None:
    clock = FakeClock()
    overlay = OptimisticPostOverlay(ttl_seconds=30, clock=clock)
    post = make_post("viewer")
    overlay.add(post)

    clock.now += 29.9
    assert post.id in overlay

    clock.now += 0.2
    assert post.id not in overlay
    assert len(overlay) == 0


@pytest.mark.asyncio
async def test_timer_removes_entry() -> None:
    overlay = OptimisticPostOverlay(ttl_seconds=0.01)
    post = make_post("viewer")
    overlay.add(post)

    await asyncio.sleep(0.05)

    assert overlay.posts() == []


@pytest.mark.asyncio
async def test_clear_cancels_pending_timers() -> None:
    overlay = OptimisticPostOverlay(ttl_seconds=30)
    overlay.add(make_post("viewer"))
    overlay.add(make_post("viewer"))
    timers = list(overlay._timers.values())

    overlay.clear()

    assert len(overlay) == 0
    assert all(timer.cancelled() for timer in timers)


@pytest.mark.asyncio
async def test_acknowledge_removes_matching_entries_only() -> None:
    overlay = OptimisticPostOverlay(ttl_seconds=30)
    kept, confirmed = make_post("viewer"), make_post("viewer")
    overlay.add(kept)
    overlay.add(confirmed)

    assert overlay.acknowledge({confirmed.id, "unrelated"}) == 1
    assert [entry.post for entry in overlay.posts()] == [kept]
    assert overlay.remove(kept.id) is True
    assert overlay.remove(kept.id) is False


def test_re_adding_a_post_moves_it_to_the_top() -> None:
    overlay = OptimisticPostOverlay(ttl_seconds=30, clock=FakeClock())
    first, second = make_post("viewer"), make_post("viewer")
    overlay.add(first)
    overlay.add(second)
    overlay.add(first)

    assert [entry.post for entry in overlay.posts()] == [first, second]
