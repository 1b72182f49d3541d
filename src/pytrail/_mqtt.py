"""MQTT host: fixes published by a device drive the background task."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, cast

import paho.mqtt.client as mqtt

from pytrail._redact import redact_for_log
from pytrail.config import SamplingOptions, TrailConfig
from pytrail.exceptions import TaskRegistrationError, TaskUnregistrationError, TrailError
from pytrail.host import TaskCallback
from pytrail.models.fix import TaskEvent

_IGNORED_TYPES = frozenset({"transition", "waypoint", "waypoints", "card", "lwt", "cmd", "status"})


def decode_fix_message(payload: bytes) -> TaskEvent | None:
    """Decode one MQTT message into a task invocation payload.

    Accepted shapes: a single fix object, a list of fixes,
    ``{"locations": [...]}`` or ``{"error": ...}``. Returns ``None`` for
    OwnTracks message types that carry no location.
    """
    text = payload.decode("utf-8", errors="replace").strip()
    try:
        parsed: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TrailError(f"MQTT payload is not JSON: {text[:64]}") from exc

    if isinstance(parsed, list):
        return TaskEvent.from_locations(parsed)
    if not isinstance(parsed, dict):
        raise TrailError("MQTT payload is neither an object nor a list")

    if parsed.get("error"):
        return TaskEvent.from_error(parsed["error"])
    locations = parsed.get("locations")
    if isinstance(locations, list):
        return TaskEvent.from_locations(locations)
    if parsed.get("_type") in _IGNORED_TYPES:
        return None
    return TaskEvent.from_locations([parsed])


class MqttLocationHost:
    """Threaded paho-mqtt host that invokes registered tasks on an asyncio loop.

    The network loop runs on paho's thread; each decoded batch is handed to
    the event loop with ``call_soon_threadsafe`` and dispatched as its own
    task. Sampling options are published retained on :attr:`config_topic`
    so the device can pick them up; messages on that topic are not fixes.
    """

    def __init__(
        self,
        *,
        host: str,
        topic: str,
        port: int = 1883,
        username: str | None = None,
        password: str | None = None,
        tls: bool = False,
        keepalive: int = 60,
        client_id: str = "",
        logger: logging.Logger | None = None,
        client_factory: Callable[[], mqtt.Client] | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._topic = topic
        self._username = username
        self._password = password
        self._tls = tls
        self._keepalive = keepalive
        self._client_id = client_id
        self._logger = logger or logging.getLogger(__name__)
        self._client_factory = client_factory
        self._loop: asyncio.AbstractEventLoop | None = None
        self._client: mqtt.Client | None = None
        self._callbacks: dict[str, TaskCallback] = {}
        self._inflight: set[asyncio.Task[None]] = set()
        self._running = False

    @classmethod
    def from_config(cls, config: TrailConfig, **kwargs: Any) -> MqttLocationHost:
        if not config.mqtt_host:
            raise TaskRegistrationError("mqtt_host is not configured", task_name=config.task_name)
        return cls(
            host=config.mqtt_host,
            topic=config.mqtt_topic,
            port=config.mqtt_port,
            username=config.mqtt_username,
            password=config.mqtt_password,
            tls=config.mqtt_tls,
            keepalive=config.mqtt_keepalive,
            **kwargs,
        )

    @property
    def config_topic(self) -> str:
        """Topic the sampling options are published on.

        Wildcard levels are cut off, so ``owntracks/#`` publishes on
        ``owntracks/config``.
        """
        levels: list[str] = []
        for level in self._topic.split("/"):
            if level in ("#", "+"):
                break
            levels.append(level)
        return "/".join([*levels, "config"])

    @property
    def is_running(self) -> bool:
        """Whether the MQTT network loop is active."""
        return self._running

    def _make_client(self) -> mqtt.Client:
        if self._client_factory is not None:
            return self._client_factory()
        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            protocol=mqtt.MQTTv311,
        )
        client.enable_logger(self._logger)
        if self._username:
            client.username_pw_set(self._username, self._password)
        if self._tls:
            client.tls_set()
        return client

    async def _start(self) -> None:
        self._loop = asyncio.get_running_loop()
        client = self._make_client()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if getattr(reason_code, "value", reason_code) != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected, subscribing topic=%s", self._topic)
            c.subscribe(self._topic, qos=1)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self.handle_message(msg.topic, msg.payload)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        await asyncio.to_thread(client.connect, self._host, self._port, self._keepalive)
        client.loop_start()
        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started host=%s port=%s", self._host, self._port)

    def stop(self) -> None:
        """Stop and disconnect the MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")

    # ------------------------------------------------------------------
    # HostScheduler
    # ------------------------------------------------------------------

    async def register(self, name: str, options: SamplingOptions, callback: TaskCallback) -> None:
        try:
            if not self._running:
                await self._start()
            assert self._client is not None  # noqa: S101
            self._client.publish(self.config_topic, json.dumps(options.as_dict()), qos=1, retain=True)
        except (OSError, ValueError) as exc:
            self.stop()
            raise TaskRegistrationError(f"MQTT registration of {name!r} failed: {exc}", task_name=name) from exc
        self._callbacks[name] = callback
        self._logger.debug("Registered task %s on topic=%s", name, self._topic)

    async def unregister(self, name: str) -> None:
        if self._callbacks.pop(name, None) is None:
            raise TaskUnregistrationError(f"Task {name!r} is not registered", task_name=name)
        if not self._callbacks:
            self.stop()
        self._logger.debug("Unregistered task %s", name)

    def is_registered(self, name: str) -> bool:
        return name in self._callbacks

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def handle_message(self, topic: str, payload: bytes) -> None:
        """Decode a message (network thread) and schedule dispatch on the loop."""
        if topic == self.config_topic:
            return
        try:
            event = decode_fix_message(payload)
        except TrailError:
            self._logger.debug("MQTT payload parse failure topic=%s", topic, exc_info=True)
            event = TaskEvent.from_error(f"undecodable payload on {topic}")
        if event is None:
            return
        self._logger.debug("MQTT event topic=%s data=%s", topic, redact_for_log(event))
        loop = self._loop
        if loop is None or loop.is_closed():
            self._logger.debug("No event loop; dropping MQTT event topic=%s", topic)
            return
        loop.call_soon_threadsafe(self._dispatch, event)

    def _dispatch(self, event: TaskEvent) -> None:
        for callback in list(self._callbacks.values()):
            task = asyncio.get_running_loop().create_task(callback(event))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

    async def drain(self) -> None:
        """Wait for every in-flight invocation to finish."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
