"""Recording session lifecycle."""

from __future__ import annotations

import logging
from enum import StrEnum

from pytrail.config import SamplingOptions
from pytrail.exceptions import PermissionDeniedError, TaskRegistrationError
from pytrail.handoff import RouteHandoff
from pytrail.host import HostScheduler, PermissionGate
from pytrail.models.point import Route
from pytrail.storage.store import LocationStore
from pytrail.task import LocationTaskHandle
from pytrail.view_sync import SnapshotHolder

_logger = logging.getLogger(__name__)


class TrackingState(StrEnum):
    IDLE = "idle"
    TRACKING = "tracking"


class TrackingController:
    """Starts and stops one recording session.

    ``start`` resets the store and registers the background task; ``stop``
    unregisters it and hands the recorded route downstream as a value.
    Calls are expected from the foreground, never concurrently with each
    other.
    """

    def __init__(
        self,
        *,
        store: LocationStore,
        task: LocationTaskHandle,
        host: HostScheduler,
        gate: PermissionGate,
        holder: SnapshotHolder,
        task_name: str,
        options: SamplingOptions | None = None,
        handoff: RouteHandoff | None = None,
    ) -> None:
        self._store = store
        self._task = task
        self._host = host
        self._gate = gate
        self._holder = holder
        self._task_name = task_name
        self._options = options or SamplingOptions()
        self._handoff = handoff
        self._state = TrackingState.IDLE

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def is_tracking(self) -> bool:
        return self._state == TrackingState.TRACKING

    async def start(self) -> None:
        """Begin a new session; returns once the task is registered.

        Raises :class:`PermissionDeniedError` when location access is
        refused and :class:`TaskRegistrationError` when the host rejects the
        task. Neither changes state. Starting while tracking is a no-op.
        """
        if self._state == TrackingState.TRACKING:
            _logger.warning("Tracking already active for task %s; start ignored", self._task_name)
            return

        if not await self._gate.request_foreground_permission():
            raise PermissionDeniedError("Permission to access location was denied")

        await self._store.clear()
        try:
            await self._host.register(self._task_name, self._options, self._task)
        except TaskRegistrationError:
            raise
        except Exception as exc:
            raise TaskRegistrationError(
                f"Registering task {self._task_name!r} failed: {exc}",
                task_name=self._task_name,
            ) from exc
        self._state = TrackingState.TRACKING
        _logger.info("Started background location task %s", self._task_name)

    async def stop(self) -> Route:
        """End the session and return the recorded route.

        Invocations already running are awaited before the route is read.
        Unregistration and handoff failures are logged, not raised.
        """
        if self._state == TrackingState.IDLE:
            _logger.debug("stop() while idle; returning stored route")
            return await self._store.read()

        try:
            await self._host.unregister(self._task_name)
        except Exception:
            _logger.error("Failed to unregister task %s", self._task_name, exc_info=True)
        await self._task.wait_idle()
        self._state = TrackingState.IDLE
        _logger.info("Stopped background location task %s", self._task_name)

        route = tuple(await self._store.read())
        self._holder.set(route)
        if self._handoff is not None:
            try:
                await self._handoff(route, self._holder)
            except Exception:
                _logger.error("Route handoff failed", exc_info=True)
        return route
