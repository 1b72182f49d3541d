"""pytrail - Async background route recorder with durable storage."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pytrail")
except PackageNotFoundError:
    __version__ = "0+local"
from pytrail._mqtt import MqttLocationHost
from pytrail.config import Accuracy, DuplicatePolicy, ForegroundIndicator, SamplingOptions, TrailConfig
from pytrail.controller import TrackingController, TrackingState
from pytrail.exceptions import (
    PermissionDeniedError,
    StorageFaultError,
    TaskDeliveryError,
    TaskRegistrationError,
    TaskUnregistrationError,
    TrackingStateError,
    TrailConfigError,
    TrailError,
    TrailTransportError,
)
from pytrail.handoff import CallbackHandoff, HttpRouteUploader, RouteHandoff
from pytrail.host import HostScheduler, LocalScheduler, PermissionGate, StaticPermissionGate
from pytrail.models import Coordinate, LocationPoint, MapRegion, RawFix, Route, TaskEvent
from pytrail.projection import focus_region, last_position, project
from pytrail.recorder import RouteRecorder
from pytrail.storage import KeyValueBackend, LocationStore, MemoryBackend, SqliteBackend
from pytrail.task import LocationTaskHandle, register_location_task
from pytrail.view_sync import SnapshotHolder, ViewSync

__all__ = [
    "__version__",
    "Accuracy",
    "CallbackHandoff",
    "Coordinate",
    "DuplicatePolicy",
    "ForegroundIndicator",
    "HostScheduler",
    "HttpRouteUploader",
    "KeyValueBackend",
    "LocalScheduler",
    "LocationPoint",
    "LocationStore",
    "LocationTaskHandle",
    "MapRegion",
    "MemoryBackend",
    "MqttLocationHost",
    "PermissionDeniedError",
    "PermissionGate",
    "RawFix",
    "Route",
    "RouteHandoff",
    "RouteRecorder",
    "SamplingOptions",
    "SnapshotHolder",
    "SqliteBackend",
    "StaticPermissionGate",
    "StorageFaultError",
    "TaskDeliveryError",
    "TaskEvent",
    "TaskRegistrationError",
    "TaskUnregistrationError",
    "TrackingController",
    "TrackingState",
    "TrackingStateError",
    "TrailConfig",
    "TrailConfigError",
    "TrailError",
    "TrailTransportError",
    "ViewSync",
    "focus_region",
    "last_position",
    "project",
    "register_location_task",
]
