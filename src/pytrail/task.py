"""Background location task.

The host invokes the task zero or more times while it is registered, each
time with a batch of raw fixes or a delivery error. The handler must never
raise: a thrown error would be fatal to the host's scheduling loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from pytrail._redact import redact_for_log
from pytrail.exceptions import TaskDeliveryError
from pytrail.models.fix import RawFix, TaskEvent
from pytrail.models.point import LocationPoint
from pytrail.storage.store import LocationStore


class LocationTaskHandle:
    """Callable the host invokes with each :class:`TaskEvent`.

    Overlapping invocations are safe: appends are serialized by the store.
    ``wait_idle`` lets the controller wait out invocations already running
    before it reads the final route.
    """

    def __init__(self, store: LocationStore, logger: logging.Logger) -> None:
        self._store = store
        self._logger = logger
        self.invocations = 0
        self.delivery_errors = 0
        self.storage_faults = 0
        self.points_written = 0
        self._running = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def store(self) -> LocationStore:
        return self._store

    def _parse_fixes(self, locations: list[Any]) -> list[LocationPoint]:
        points: list[LocationPoint] = []
        for raw in locations:
            try:
                points.append(RawFix.model_validate(raw).to_point())
            except ValidationError as exc:
                self._logger.warning(
                    "Skipping unparseable fix (%d error(s)): %s",
                    exc.error_count(),
                    redact_for_log(raw),
                )
        return points

    @property
    def running(self) -> int:
        """Number of invocations currently in progress."""
        return self._running

    async def wait_idle(self) -> None:
        """Wait until no invocation is in progress.

        Yields to the loop first so invocations the host has already
        scheduled get to start before the check.
        """
        await asyncio.sleep(0)
        while self._running:
            await self._idle.wait()
            await asyncio.sleep(0)

    async def __call__(self, event: TaskEvent | dict[str, Any]) -> None:
        self.invocations += 1
        self._running += 1
        self._idle.clear()
        try:
            await self._handle(event)
        finally:
            self._running -= 1
            if not self._running:
                self._idle.set()

    async def _handle(self, event: TaskEvent | dict[str, Any]) -> None:
        try:
            if not isinstance(event, TaskEvent):
                event = TaskEvent.model_validate(event)
        except ValidationError:
            self.delivery_errors += 1
            self._logger.error("Background location task received a malformed payload", exc_info=True)
            return

        try:
            event.raise_for_error()
        except TaskDeliveryError as exc:
            self.delivery_errors += 1
            self._logger.error("Something went wrong within the background location task: %s", exc)
            return

        if event.data is None or not event.data.locations:
            self._logger.debug("Background location task invoked with an empty batch")
            return

        try:
            points = self._parse_fixes(event.data.locations)
            if not points:
                return
            route, added = await self._store.add_points(points)
        except Exception:
            self.storage_faults += 1
            self._logger.error("Something went wrong when saving new locations", exc_info=True)
            return
        self.points_written += added
        self._logger.debug("Stored batch of %d fix(es) - %d stored locations", len(points), len(route))


def register_location_task(
    store: LocationStore,
    *,
    logger: logging.Logger | None = None,
) -> LocationTaskHandle:
    """Build the task handler bound to *store*.

    The returned handle is what gets registered with the host; nothing is
    registered as a side effect of importing this module.
    """
    return LocationTaskHandle(store, logger or logging.getLogger(__name__))
