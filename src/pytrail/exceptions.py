"""Custom exception hierarchy for pytrail."""

from __future__ import annotations


class TrailError(Exception):
    """Base exception for all pytrail errors."""


class TrailConfigError(TrailError):
    """Invalid or missing configuration."""


class PermissionDeniedError(TrailError):
    """The permission gate refused foreground location access.

    Raised synchronously by :meth:`TrackingController.start`; no state
    change has happened when this is raised.
    """


class TrackingStateError(TrailError):
    """Lifecycle misuse (e.g. using a recorder outside its context)."""


class TaskRegistrationError(TrailError):
    """The host scheduler refused to register the background task."""

    def __init__(self, message: str, *, task_name: str = "") -> None:
        self.task_name = task_name
        super().__init__(message)


class TaskUnregistrationError(TaskRegistrationError):
    """The host scheduler failed to unregister the background task.

    The controller logs this on stop and still returns the route.
    """


class TaskDeliveryError(TrailError):
    """The host reported an error instead of a batch of fixes."""


class StorageFaultError(TrailError):
    """Key-value backend failure or an undecodable persisted value."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class TrailTransportError(TrailError):
    """HTTP-level failure while handing a route downstream."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
