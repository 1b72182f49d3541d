from __future__ import annotations

import asyncio
import json

import pytest

from pytrail.config import DuplicatePolicy
from pytrail.exceptions import StorageFaultError
from pytrail.models.point import LocationPoint
from pytrail.storage.backend import MemoryBackend
from pytrail.storage.store import LocationStore, decode_route, encode_route


def _p(lat: float, lon: float, time: int) -> LocationPoint:
    return LocationPoint(latitude=lat, longitude=lon, time=time)


@pytest.mark.asyncio
async def test_read_empty_store_returns_empty_route() -> None:
    store = LocationStore(MemoryBackend())
    assert await store.read() == ()


@pytest.mark.asyncio
async def test_write_then_read_preserves_order_and_values() -> None:
    store = LocationStore(MemoryBackend())
    route = (_p(51.5, -0.12, 1000), _p(51.6, -0.13, 2000), _p(51.7, -0.14, 3000))

    await store.write(route)

    assert await store.read() == route


@pytest.mark.asyncio
async def test_clear_is_idempotent() -> None:
    store = LocationStore(MemoryBackend())
    await store.write((_p(1, 1, 100),))

    await store.clear()
    assert await store.read() == ()
    await store.clear()
    assert await store.read() == ()


@pytest.mark.asyncio
async def test_sequential_appends_scenario() -> None:
    store = LocationStore(MemoryBackend())

    await store.append(_p(1, 1, 100))
    after = await store.append(_p(2, 2, 200))

    assert after == (_p(1, 1, 100), _p(2, 2, 200))
    assert await store.read() == after


@pytest.mark.asyncio
async def test_append_grows_length_by_one(backend) -> None:
    store = LocationStore(backend)
    for i in range(5):
        before = len(await store.read())
        await store.append(_p(10 + i, 20 + i, 1000 * i))
        assert len(await store.read()) == before + 1


@pytest.mark.asyncio
async def test_concurrent_appends_do_not_lose_updates(backend) -> None:
    store = LocationStore(backend)

    await asyncio.gather(store.append(_p(1, 1, 100)), store.append(_p(2, 2, 200)))

    route = await store.read()
    assert len(route) == 2
    assert set(route) == {_p(1, 1, 100), _p(2, 2, 200)}


@pytest.mark.asyncio
async def test_many_concurrent_appends_keep_every_point(backend) -> None:
    store = LocationStore(backend)
    points = [_p(0.001 * i, 0.001 * i, 100 * i) for i in range(25)]

    await asyncio.gather(*(store.append(p) for p in points))

    assert await store.read() == tuple(points)


@pytest.mark.asyncio
async def test_redelivered_point_is_skipped() -> None:
    store = LocationStore(MemoryBackend())
    await store.extend([_p(1, 1, 100), _p(2, 2, 200)])

    route, added = await store.add_points([_p(1, 1, 100), _p(2, 2, 200)])

    assert added == 0
    assert len(route) == 2


@pytest.mark.asyncio
async def test_keep_policy_stores_duplicates() -> None:
    store = LocationStore(MemoryBackend(), duplicate_policy=DuplicatePolicy.KEEP)

    await store.append(_p(1, 1, 100))
    await store.append(_p(1, 1, 100))

    assert len(await store.read()) == 2


@pytest.mark.asyncio
async def test_out_of_order_point_is_inserted_chronologically() -> None:
    store = LocationStore(MemoryBackend())
    await store.extend([_p(1, 1, 100), _p(3, 3, 300)])

    route = await store.append(_p(2, 2, 200))

    assert [p.time for p in route] == [100, 200, 300]


@pytest.mark.asyncio
async def test_same_time_different_position_is_kept_in_arrival_order() -> None:
    store = LocationStore(MemoryBackend())

    await store.append(_p(1, 1, 100))
    route = await store.append(_p(1.5, 1.5, 100))

    assert route == (_p(1, 1, 100), _p(1.5, 1.5, 100))


@pytest.mark.asyncio
async def test_persisted_format_is_plain_json_array() -> None:
    backend = MemoryBackend()
    store = LocationStore(backend, key="locations")

    await store.append(_p(1.5, 2.5, 100))

    raw = await backend.get_item("locations")
    assert raw is not None
    assert json.loads(raw) == [{"latitude": 1.5, "longitude": 2.5, "time": 100}]


@pytest.mark.asyncio
async def test_backend_write_failure_raises_storage_fault(backend) -> None:
    store = LocationStore(backend)
    backend.fail_writes = True

    with pytest.raises(StorageFaultError) as err:
        await store.append(_p(1, 1, 100))
    assert err.value.key == "locations"


@pytest.mark.asyncio
async def test_corrupt_value_raises_storage_fault() -> None:
    backend = MemoryBackend()
    await backend.set_item("locations", "{not json")
    store = LocationStore(backend)

    with pytest.raises(StorageFaultError):
        await store.read()


def test_decode_route_treats_empty_string_as_empty() -> None:
    assert decode_route("") == ()
    assert decode_route(None) == ()


def test_encode_decode_round_trip() -> None:
    route = (_p(-33.86, 151.2, 1700000000000), _p(-33.87, 151.21, 1700000006000))
    assert decode_route(encode_route(route)) == route
