"""High-level async route recorder."""

from __future__ import annotations

import logging
from typing import Any

from pytrail._mqtt import MqttLocationHost
from pytrail.config import TrailConfig
from pytrail.controller import TrackingController, TrackingState
from pytrail.exceptions import TrackingStateError
from pytrail.handoff import HttpRouteUploader, RouteHandoff
from pytrail.host import HostScheduler, LocalScheduler, PermissionGate, StaticPermissionGate
from pytrail.models.point import Coordinate, MapRegion, Route
from pytrail.projection import focus_region, project
from pytrail.storage.backend import KeyValueBackend, MemoryBackend, SqliteBackend
from pytrail.storage.store import LocationStore
from pytrail.task import LocationTaskHandle, register_location_task
from pytrail.view_sync import SnapshotHolder, ViewSync

_logger = logging.getLogger(__name__)

_NOT_INITIALIZED = "Recorder not initialized. Use 'async with RouteRecorder(...) as recorder:'"


class RouteRecorder:
    """Wires storage, the background task, the controller and ViewSync.

    Usage::

        async with RouteRecorder(TrailConfig.from_env()) as recorder:
            await recorder.start()
            ...
            route = await recorder.stop()

    Collaborators not passed in are built from the config and owned (closed
    on exit): a :class:`SqliteBackend` when ``db_path`` is set, an
    :class:`MqttLocationHost` when ``mqtt_host`` is set, an
    :class:`HttpRouteUploader` when ``upload_url`` is set.
    """

    def __init__(
        self,
        config: TrailConfig | None = None,
        *,
        host: HostScheduler | None = None,
        gate: PermissionGate | None = None,
        backend: KeyValueBackend | None = None,
        handoff: RouteHandoff | None = None,
        holder: SnapshotHolder | None = None,
    ) -> None:
        self._config = config or TrailConfig()
        self._host = host
        self._owns_host = host is None
        self._gate = gate or StaticPermissionGate(True)
        self._backend = backend
        self._owns_backend = backend is None
        self._handoff = handoff
        self._holder = holder or SnapshotHolder()
        self._store: LocationStore | None = None
        self._task: LocationTaskHandle | None = None
        self._controller: TrackingController | None = None
        self._view_sync: ViewSync | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RouteRecorder:
        config = self._config
        if self._backend is None:
            self._backend = SqliteBackend(config.db_path) if config.db_path else MemoryBackend()
        if self._host is None:
            self._host = MqttLocationHost.from_config(config) if config.mqtt_host else LocalScheduler()
        if self._handoff is None and config.upload_url:
            self._handoff = HttpRouteUploader(config.upload_url, timeout=config.upload_timeout)

        self._store = LocationStore(
            self._backend,
            key=config.storage_key,
            duplicate_policy=config.duplicate_policy,
        )
        self._task = register_location_task(self._store)
        self._controller = TrackingController(
            store=self._store,
            task=self._task,
            host=self._host,
            gate=self._gate,
            holder=self._holder,
            task_name=config.task_name,
            options=config.sampling,
            handoff=self._handoff,
        )
        self._view_sync = ViewSync(self._store, self._holder, interval=config.poll_interval)
        self._view_sync.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._view_sync is not None:
            await self._view_sync.stop()
        if self._controller is not None and self._controller.state == TrackingState.TRACKING:
            _logger.warning("Recorder closed while tracking; stored locations are kept for the next run")
        if self._owns_host and isinstance(self._host, MqttLocationHost):
            self._host.stop()
        if self._owns_backend and isinstance(self._backend, SqliteBackend):
            self._backend.close()
        self._view_sync = None
        self._controller = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def _require_controller(self) -> TrackingController:
        if self._controller is None:
            raise TrackingStateError(_NOT_INITIALIZED)
        return self._controller

    @property
    def store(self) -> LocationStore:
        if self._store is None:
            raise TrackingStateError(_NOT_INITIALIZED)
        return self._store

    @property
    def task(self) -> LocationTaskHandle:
        if self._task is None:
            raise TrackingStateError(_NOT_INITIALIZED)
        return self._task

    @property
    def host(self) -> HostScheduler | None:
        return self._host

    @property
    def holder(self) -> SnapshotHolder:
        return self._holder

    @property
    def state(self) -> TrackingState:
        return self._require_controller().state

    @property
    def snapshot(self) -> Route:
        """Latest published snapshot (may lag the store by one poll)."""
        return self._holder.value

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def start(self) -> None:
        controller = self._require_controller()
        was_idle = controller.state == TrackingState.IDLE
        await controller.start()
        if was_idle:
            self._holder.set(())

    async def stop(self) -> Route:
        return await self._require_controller().stop()

    async def refresh(self) -> bool:
        """Poll the store now instead of waiting for the next tick."""
        if self._view_sync is None:
            raise TrackingStateError(_NOT_INITIALIZED)
        return await self._view_sync.refresh()

    def polyline(self) -> list[Coordinate]:
        return project(self._holder.value)

    def region(self) -> MapRegion:
        return focus_region(self._holder.value)
