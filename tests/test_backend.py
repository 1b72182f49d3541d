from __future__ import annotations

from pathlib import Path

import pytest

from pytrail.models.point import LocationPoint
from pytrail.storage.backend import MemoryBackend, SqliteBackend
from pytrail.storage.store import LocationStore


@pytest.mark.asyncio
async def test_memory_backend_get_set_remove() -> None:
    backend = MemoryBackend()
    assert await backend.get_item("k") is None
    await backend.set_item("k", "v")
    assert await backend.get_item("k") == "v"
    await backend.remove_item("k")
    await backend.remove_item("k")
    assert await backend.get_item("k") is None


@pytest.mark.asyncio
async def test_sqlite_backend_overwrites_value(tmp_path: Path) -> None:
    backend = SqliteBackend(tmp_path / "kv.db")
    try:
        await backend.set_item("k", "one")
        await backend.set_item("k", "two")
        assert await backend.get_item("k") == "two"
        await backend.remove_item("k")
        assert await backend.get_item("k") is None
    finally:
        backend.close()


@pytest.mark.asyncio
async def test_sqlite_route_survives_reopen(tmp_path: Path) -> None:
    db = tmp_path / "nested" / "trail.db"
    route = (
        LocationPoint(latitude=53.55, longitude=-1.63, time=1000),
        LocationPoint(latitude=53.56, longitude=-1.64, time=7000),
    )

    first = SqliteBackend(db)
    await LocationStore(first).extend(route)
    first.close()

    second = SqliteBackend(db)
    try:
        assert await LocationStore(second).read() == route
    finally:
        second.close()
