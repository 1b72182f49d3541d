from __future__ import annotations

import asyncio

import pytest

from pytrail.models.point import LocationPoint
from pytrail.storage.backend import MemoryBackend
from pytrail.storage.store import LocationStore
from pytrail.view_sync import SnapshotHolder, ViewSync, snapshot_changed


def _p(time: int, lat: float = 1.0) -> LocationPoint:
    return LocationPoint(latitude=lat, longitude=lat, time=time)


@pytest.mark.asyncio
async def test_first_poll_is_immediate() -> None:
    store = LocationStore(MemoryBackend())
    await store.append(_p(100))
    holder = SnapshotHolder()
    sync = ViewSync(store, holder, interval=60.0)

    sync.start()
    await asyncio.sleep(0.01)
    await sync.stop()

    assert holder.value == (_p(100),)


@pytest.mark.asyncio
async def test_publishes_only_on_change() -> None:
    store = LocationStore(MemoryBackend())
    holder = SnapshotHolder()
    published: list[int] = []
    holder.subscribe(lambda route: published.append(len(route)))
    sync = ViewSync(store, holder)

    await store.append(_p(100))
    assert await sync.refresh() is True
    assert await sync.refresh() is False
    await store.append(_p(200))
    assert await sync.refresh() is True

    assert published == [1, 2]


@pytest.mark.asyncio
async def test_periodic_poll_picks_up_new_points() -> None:
    store = LocationStore(MemoryBackend())
    holder = SnapshotHolder()
    sync = ViewSync(store, holder, interval=0.01)
    sync.start()

    await store.append(_p(100))
    await store.append(_p(200))
    await asyncio.sleep(0.05)
    await sync.stop()

    assert len(holder.value) == 2
    assert not sync.is_running


@pytest.mark.asyncio
async def test_stop_prevents_further_polls() -> None:
    store = LocationStore(MemoryBackend())
    holder = SnapshotHolder()
    sync = ViewSync(store, holder, interval=0.01)
    sync.start()
    await asyncio.sleep(0.03)
    await sync.stop()
    polls = sync.polls

    await store.append(_p(100))
    await asyncio.sleep(0.03)

    assert sync.polls == polls
    assert holder.value == ()


@pytest.mark.asyncio
async def test_read_fault_does_not_stop_polling(backend) -> None:
    store = LocationStore(backend)
    holder = SnapshotHolder()
    sync = ViewSync(store, holder, interval=0.01)
    backend.fail_reads = True
    sync.start()
    await asyncio.sleep(0.03)

    backend.fail_reads = False
    await store.append(_p(100))
    await asyncio.sleep(0.05)
    await sync.stop()

    assert holder.value == (_p(100),)


def test_snapshot_changed_compares_length_and_last_time() -> None:
    assert snapshot_changed((), (_p(1),))
    assert not snapshot_changed((_p(1),), (_p(1),))
    assert snapshot_changed((_p(1),), (_p(2),))
    assert not snapshot_changed((), ())


def test_unsubscribe_stops_notifications() -> None:
    holder = SnapshotHolder()
    seen: list[int] = []
    unsubscribe = holder.subscribe(lambda route: seen.append(len(route)))

    holder.set((_p(1),))
    unsubscribe()
    holder.set((_p(1), _p(2)))

    assert seen == [1]


def test_interval_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ViewSync(LocationStore(MemoryBackend()), SnapshotHolder(), interval=0)
