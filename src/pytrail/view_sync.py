"""Periodic refresh of the UI's route snapshot.

Polling is best-effort: the snapshot can lag the store by up to one poll
interval, and the store stays the source of truth.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from pytrail._constants import POLL_INTERVAL_S
from pytrail.exceptions import StorageFaultError
from pytrail.models.point import Route
from pytrail.storage.store import LocationStore

_logger = logging.getLogger(__name__)

SnapshotListener = Callable[[Route], None]


class SnapshotHolder:
    """UI-owned mutable holder for the current route snapshot."""

    def __init__(self, initial: Route = ()) -> None:
        self._value: Route = tuple(initial)
        self._listeners: list[SnapshotListener] = []

    @property
    def value(self) -> Route:
        return self._value

    def set(self, route: Route) -> None:
        self._value = tuple(route)
        for listener in list(self._listeners):
            try:
                listener(self._value)
            except Exception:
                _logger.debug("Snapshot listener failed", exc_info=True)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call *listener* on every publish; returns the unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe


def snapshot_changed(previous: Route, current: Route) -> bool:
    """Length differs, or the newest point's time differs."""
    if len(previous) != len(current):
        return True
    if not current:
        return False
    return previous[-1].time != current[-1].time


class ViewSync:
    """Polls the store and publishes changed snapshots to a holder.

    ``stop`` does not interrupt a read in progress; the read completes and
    no further poll is scheduled.
    """

    def __init__(
        self,
        store: LocationStore,
        holder: SnapshotHolder,
        *,
        interval: float = POLL_INTERVAL_S,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._store = store
        self._holder = holder
        self._interval = interval
        self._stopping = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.polls = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh(self) -> bool:
        """Read the store once; publish if the snapshot changed."""
        self.polls += 1
        route = await self._store.read()
        if snapshot_changed(self._holder.value, route):
            self._holder.set(route)
            _logger.debug("Published snapshot with %d location(s)", len(route))
            return True
        return False

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.refresh()
            except StorageFaultError:
                _logger.warning("Snapshot refresh failed", exc_info=True)
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=self._interval)

    def start(self) -> None:
        """Begin polling; the first read happens immediately."""
        if self.is_running:
            return
        self._stopping.clear()
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Stop polling after any in-flight read completes."""
        task = self._task
        self._task = None
        self._stopping.set()
        if task is not None:
            await task
