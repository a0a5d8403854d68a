import asyncio
import random

import pytest

from lifecycle.beacon_tracker import BeaconTracker


@pytest.fixture
def tracker():
    return BeaconTracker()


@pytest.mark.asyncio
async def test_create_and_die_updates_count(tracker):
    assert tracker.get_beacons_count() == 0

    b1 = tracker.create_beacon({"request": "/a"})
    b2 = tracker.create_beacon()
    assert tracker.count == 2
    assert b1.alive and b2.alive
    assert b1.id != b2.id

    await b1.die()
    assert tracker.count == 1
    assert not b1.alive
    assert tracker.contexts() == [{}]


@pytest.mark.asyncio
async def test_die_twice_is_noop(tracker):
    b1 = tracker.create_beacon()
    tracker.create_beacon()

    await b1.die()
    await b1.die()

    assert tracker.count == 1


@pytest.mark.asyncio
async def test_count_matches_model_for_random_sequence(tracker):
    rng = random.Random(7)
    handles = []
    expected = 0

    for _ in range(200):
        if handles and rng.random() < 0.5:
            handle = rng.choice(handles)
            if handle.alive:
                expected -= 1
            await handle.die()
        else:
            handles.append(tracker.create_beacon({"n": len(handles)}))
            expected += 1
        assert tracker.count == expected
        assert tracker.count >= 0


def test_context_is_copied(tracker):
    context = {"job": 1}
    handle = tracker.create_beacon(context)
    context["job"] = 2

    assert handle.context == {"job": 1}
    assert tracker.contexts() == [{"job": 1}]


def test_create_notifies_observers(tracker):
    calls = []
    tracker._subscribe(lambda: calls.append(tracker.count))

    tracker.create_beacon()
    tracker.create_beacon()

    assert calls == [1, 2]


@pytest.mark.asyncio
async def test_unknown_retire_does_not_notify(tracker):
    handle = tracker.create_beacon()
    await handle.die()

    calls = []
    tracker._subscribe(lambda: calls.append(tracker.count))
    await handle.die()

    assert calls == []


@pytest.mark.asyncio
async def test_wait_for_drain_resolves_immediately_when_empty(tracker):
    await asyncio.wait_for(tracker.wait_for_drain(), timeout=0.5)
    assert tracker._listeners == []


@pytest.mark.asyncio
async def test_waiter_resolves_when_last_beacon_dies(tracker):
    b1 = tracker.create_beacon()
    b2 = tracker.create_beacon()
    await b1.die()

    waiter = asyncio.create_task(tracker.wait_for_drain())
    await asyncio.sleep(0)
    assert not waiter.done()

    await b2.die()

    # die() yields once, so the waiter has already run
    assert waiter.done()
    assert tracker._listeners == []


@pytest.mark.asyncio
async def test_waiter_ignores_intermediate_counts(tracker):
    handles = [tracker.create_beacon() for _ in range(3)]
    waiter = asyncio.create_task(tracker.wait_for_drain())
    await asyncio.sleep(0)

    await handles[0].die()
    tracker.create_beacon()
    await handles[1].die()
    assert not waiter.done()

    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter


@pytest.mark.asyncio
async def test_concurrent_waiters_all_resolve(tracker):
    handle = tracker.create_beacon()
    waiters = [asyncio.create_task(tracker.wait_for_drain()) for _ in range(3)]
    await asyncio.sleep(0)
    assert len(tracker._listeners) == 3

    await handle.die()
    await asyncio.wait_for(asyncio.gather(*waiters), timeout=0.5)

    assert tracker._listeners == []


@pytest.mark.asyncio
async def test_cancelled_waiter_unsubscribes(tracker):
    tracker.create_beacon()
    waiter = asyncio.create_task(tracker.wait_for_drain())
    await asyncio.sleep(0)
    assert len(tracker._listeners) == 1

    waiter.cancel()
    with pytest.raises(asyncio.CancelledError):
        await waiter

    assert tracker._listeners == []


@pytest.mark.asyncio
async def test_beacon_context_manager_dies_on_error(tracker):
    with pytest.raises(RuntimeError):
        async with tracker.beacon({"job": "x"}) as handle:
            assert tracker.count == 1
            assert handle.alive
            raise RuntimeError("boom")

    assert tracker.count == 0


@pytest.mark.asyncio
async def test_track_holds_beacon_until_task_finishes(tracker):
    release = asyncio.Event()

    async def work():
        await release.wait()
        return 42

    task = tracker.track(work(), {"job": "tracked"}, name="TrackedWork")
    assert tracker.count == 1
    assert tracker.contexts() == [{"job": "tracked"}]

    release.set()
    assert await task == 42
    await asyncio.sleep(0)

    assert tracker.count == 0


@pytest.mark.asyncio
async def test_track_releases_beacon_on_failure(tracker):
    async def work():
        raise ValueError("bad job")

    task = tracker.track(work())
    with pytest.raises(ValueError):
        await task
    await asyncio.sleep(0)

    assert tracker.count == 0


def test_summary(tracker):
    tracker.create_beacon()
    assert tracker.summary() == "Beacons: live=1, waiters=0"


@pytest.mark.asyncio
async def test_track_rejects_non_coroutine_without_leaking_beacon(tracker):
    with pytest.raises(TypeError):
        tracker.track(object())

    assert tracker.count == 0
    await asyncio.wait_for(tracker.wait_for_drain(), timeout=0.5)
