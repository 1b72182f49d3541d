"""Durable store for the current session's route.

This is the only component allowed to mutate the persisted route. All
mutations go through one ``asyncio.Lock`` so overlapping task invocations
cannot read the same snapshot and overwrite each other's points.
"""

from __future__ import annotations

import asyncio
import bisect
import logging
from collections.abc import Iterable

from pydantic import TypeAdapter, ValidationError

from pytrail._constants import STORAGE_KEY
from pytrail.config import DuplicatePolicy
from pytrail.exceptions import StorageFaultError
from pytrail.models.point import LocationPoint, Route
from pytrail.storage.backend import KeyValueBackend

_logger = logging.getLogger(__name__)

_ROUTE_ADAPTER: TypeAdapter[list[LocationPoint]] = TypeAdapter(list[LocationPoint])


def _point_time(point: LocationPoint) -> int:
    return point.time


def merge_point(route: list[LocationPoint], point: LocationPoint, policy: DuplicatePolicy) -> bool:
    """Insert *point* into *route* at its chronological position.

    Points sharing a ``time`` keep arrival order. Returns ``False`` when the
    point was dropped as an exact duplicate.
    """
    lo = bisect.bisect_left(route, point.time, key=_point_time)
    hi = bisect.bisect_right(route, point.time, lo=lo, key=_point_time)
    if policy == DuplicatePolicy.SKIP and point in route[lo:hi]:
        return False
    route.insert(hi, point)
    return True


def encode_route(route: Iterable[LocationPoint]) -> str:
    """Serialize a route to its persisted JSON array form."""
    return _ROUTE_ADAPTER.dump_json(list(route)).decode("utf-8")


def decode_route(data: str | None) -> Route:
    """Parse a persisted JSON array; missing or empty data is an empty route."""
    if not data:
        return ()
    return tuple(_ROUTE_ADAPTER.validate_json(data))


class LocationStore:
    """Read, overwrite, clear and append the route under one fixed key.

    Usage::

        store = LocationStore(SqliteBackend("trail.db"))
        await store.clear()
        await store.append(LocationPoint(latitude=1, longitude=1, time=100))
        route = await store.read()
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        key: str = STORAGE_KEY,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.SKIP,
    ) -> None:
        self._backend = backend
        self._key = key
        self._duplicate_policy = duplicate_policy
        self._write_lock = asyncio.Lock()

    @property
    def key(self) -> str:
        return self._key

    # ------------------------------------------------------------------
    # Backend access
    # ------------------------------------------------------------------

    async def _read(self) -> Route:
        try:
            data = await self._backend.get_item(self._key)
        except Exception as exc:
            raise StorageFaultError(f"Reading {self._key!r} failed: {exc}", key=self._key) from exc
        try:
            return decode_route(data)
        except ValidationError as exc:
            raise StorageFaultError(
                f"Persisted value under {self._key!r} is not a valid route: {exc.error_count()} error(s)",
                key=self._key,
            ) from exc

    async def _write(self, route: Iterable[LocationPoint]) -> None:
        try:
            payload = encode_route(route)
            await self._backend.set_item(self._key, payload)
        except Exception as exc:
            raise StorageFaultError(f"Writing {self._key!r} failed: {exc}", key=self._key) from exc

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def read(self) -> Route:
        """Return the persisted route in order (empty if nothing stored)."""
        return await self._read()

    async def write(self, route: Iterable[LocationPoint]) -> None:
        """Replace the whole persisted route."""
        async with self._write_lock:
            await self._write(route)

    async def clear(self) -> None:
        """Remove the persisted route. Clearing an empty store is a no-op."""
        async with self._write_lock:
            try:
                await self._backend.remove_item(self._key)
            except Exception as exc:
                raise StorageFaultError(f"Clearing {self._key!r} failed: {exc}", key=self._key) from exc
        _logger.debug("Cleared stored route key=%s", self._key)

    async def append(self, point: LocationPoint) -> Route:
        """Add one point and return the resulting route."""
        return await self.extend((point,))

    async def extend(self, points: Iterable[LocationPoint]) -> Route:
        """Add points in order as a single serialized read-modify-write."""
        route, _added = await self.add_points(points)
        return route

    async def add_points(self, points: Iterable[LocationPoint]) -> tuple[Route, int]:
        """Like :meth:`extend`, also reporting how many points were stored."""
        async with self._write_lock:
            current = list(await self._read())
            added = 0
            for point in points:
                if merge_point(current, point, self._duplicate_policy):
                    added += 1
                else:
                    _logger.debug("Skipped duplicate point time=%s", point.time)
            if added:
                await self._write(current)
            _logger.debug("Added %d location(s) - %d stored locations", added, len(current))
            return tuple(current), added
