"""Capabilities consumed from the host: task scheduling and permission.

The core only needs the structural interfaces below. ``LocalScheduler``
is an in-process host: it dispatches every delivery as its own asyncio
task, so invocations can overlap exactly as they may on a device.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from pytrail.config import SamplingOptions
from pytrail.exceptions import TaskUnregistrationError
from pytrail.models.fix import TaskEvent

_logger = logging.getLogger(__name__)

TaskCallback = Callable[[TaskEvent], Awaitable[None]]


class HostScheduler(Protocol):
    """Register/unregister capability of the host's background scheduler."""

    async def register(self, name: str, options: SamplingOptions, callback: TaskCallback) -> None:
        ...

    async def unregister(self, name: str) -> None:
        ...

    def is_registered(self, name: str) -> bool:
        ...


class PermissionGate(Protocol):
    async def request_foreground_permission(self) -> bool:
        ...


class StaticPermissionGate:
    """Permission gate with a fixed answer."""

    def __init__(self, granted: bool = True) -> None:
        self.granted = granted
        self.requests = 0

    async def request_foreground_permission(self) -> bool:
        self.requests += 1
        return self.granted


@dataclass(frozen=True)
class TaskRegistration:
    name: str
    options: SamplingOptions
    callback: TaskCallback


class LocalScheduler:
    """In-process host scheduler.

    ``deliver`` hands an event to the registered callback without waiting
    for earlier deliveries to finish.
    """

    def __init__(self) -> None:
        self._registrations: dict[str, TaskRegistration] = {}
        self._inflight: set[asyncio.Task[None]] = set()

    async def register(self, name: str, options: SamplingOptions, callback: TaskCallback) -> None:
        if name in self._registrations:
            _logger.debug("Replacing registration for task %s", name)
        self._registrations[name] = TaskRegistration(name=name, options=options, callback=callback)
        _logger.debug("Registered task %s options=%s", name, options.as_dict())

    async def unregister(self, name: str) -> None:
        if self._registrations.pop(name, None) is None:
            raise TaskUnregistrationError(f"Task {name!r} is not registered", task_name=name)
        _logger.debug("Unregistered task %s", name)

    def is_registered(self, name: str) -> bool:
        return name in self._registrations

    def registration(self, name: str) -> TaskRegistration | None:
        return self._registrations.get(name)

    def deliver(self, name: str, event: TaskEvent) -> asyncio.Task[None] | None:
        """Invoke the task registered under *name*; returns the running invocation."""
        registration = self._registrations.get(name)
        if registration is None:
            _logger.debug("Dropping delivery for unregistered task %s", name)
            return None
        task = asyncio.get_running_loop().create_task(registration.callback(event))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def drain(self) -> None:
        """Wait for every in-flight invocation to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
