"""Recorder configuration for pytrail."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from pytrail import _constants as const
from pytrail.exceptions import TrailConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


class Accuracy(StrEnum):
    LOWEST = "lowest"
    LOW = "low"
    BALANCED = "balanced"
    HIGH = "high"
    HIGHEST = "highest"
    BEST_FOR_NAVIGATION = "best_for_navigation"


class DuplicatePolicy(StrEnum):
    """What the store does with a point identical to one already stored."""

    SKIP = "skip"
    KEEP = "keep"


@dataclasses.dataclass(frozen=True)
class ForegroundIndicator:
    """User-visible notice shown while tracking runs in the background."""

    title: str = const.INDICATOR_TITLE
    body: str = const.INDICATOR_BODY
    color: str = const.INDICATOR_COLOR


@dataclasses.dataclass(frozen=True)
class SamplingOptions:
    """Options passed to the host when the background task is registered.

    Parameters
    ----------
    accuracy : Accuracy
        Positioning precision requested from the device.
    min_interval_ms : int
        Minimum time between delivered fixes.
    min_distance_meters : float
        Minimum movement between delivered fixes.
    foreground_indicator : ForegroundIndicator
        Notice shown while the task runs backgrounded.
    activity_type : str
        Activity hint for the positioning subsystem.
    show_indicator_while_backgrounded : bool
        Whether the host must keep the indicator visible.
    """

    accuracy: Accuracy = Accuracy.HIGHEST
    min_interval_ms: int = const.MIN_INTERVAL_MS
    min_distance_meters: float = const.MIN_DISTANCE_METERS
    foreground_indicator: ForegroundIndicator = dataclasses.field(default_factory=ForegroundIndicator)
    activity_type: str = "fitness"
    show_indicator_while_backgrounded: bool = True

    def __post_init__(self) -> None:
        if self.min_interval_ms < 0:
            raise TrailConfigError(f"min_interval_ms must be >= 0, got {self.min_interval_ms}")
        if self.min_distance_meters < 0:
            raise TrailConfigError(f"min_distance_meters must be >= 0, got {self.min_distance_meters}")

    def as_dict(self) -> dict[str, Any]:
        """Registration payload in the host's camelCase shape."""
        return {
            "accuracy": str(self.accuracy),
            "minIntervalMs": self.min_interval_ms,
            "minDistanceMeters": self.min_distance_meters,
            "foregroundIndicator": dataclasses.asdict(self.foreground_indicator),
            "activityType": self.activity_type,
            "showIndicatorWhileBackgrounded": self.show_indicator_while_backgrounded,
        }


@dataclasses.dataclass(frozen=True)
class TrailConfig:
    """Recorder configuration.

    Parameters
    ----------
    task_name : str
        Name the background task is registered under.
    storage_key : str
        Key holding the current session's route.
    db_path : str or None
        SQLite file for durable storage. ``None`` keeps the route in memory.
    poll_interval : float
        Seconds between ViewSync polls.
    duplicate_policy : DuplicatePolicy
        Whether exact duplicate points are dropped on append.
    sampling : SamplingOptions
        Options requested from the host on registration.
    mqtt_host : str or None
        Broker delivering fixes. ``None`` disables the MQTT host.
    mqtt_port : int
        Broker port.
    mqtt_topic : str
        Topic the device publishes fixes on.
    mqtt_tls : bool
        Connect with TLS.
    mqtt_username : str or None
        Broker username.
    mqtt_password : str or None
        Broker password.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    upload_url : str or None
        Endpoint receiving the final route on stop.
    upload_timeout : float
        Seconds before an upload is abandoned.
    """

    task_name: str = const.TASK_NAME
    storage_key: str = const.STORAGE_KEY
    db_path: str | None = None
    poll_interval: float = const.POLL_INTERVAL_S
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.SKIP
    sampling: SamplingOptions = dataclasses.field(default_factory=SamplingOptions)
    mqtt_host: str | None = None
    mqtt_port: int = const.MQTT_DEFAULT_PORT
    mqtt_topic: str = "pytrail/fixes"
    mqtt_tls: bool = False
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_keepalive: int = 60
    upload_url: str | None = None
    upload_timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.task_name.strip():
            raise TrailConfigError("task_name must be non-empty")
        if not self.storage_key.strip():
            raise TrailConfigError("storage_key must be non-empty")
        if self.poll_interval <= 0:
            raise TrailConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.upload_timeout <= 0:
            raise TrailConfigError(f"upload_timeout must be positive, got {self.upload_timeout}")

    @classmethod
    def from_env(cls, **overrides: Any) -> TrailConfig:
        """Create configuration from ``PYTRAIL_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        sampling_kwargs: dict[str, Any] = {}
        interval_env = env.get("PYTRAIL_MIN_INTERVAL_MS")
        if interval_env is not None:
            sampling_kwargs["min_interval_ms"] = _parse(int, "PYTRAIL_MIN_INTERVAL_MS", interval_env)
        distance_env = env.get("PYTRAIL_MIN_DISTANCE_METERS")
        if distance_env is not None:
            sampling_kwargs["min_distance_meters"] = _parse(float, "PYTRAIL_MIN_DISTANCE_METERS", distance_env)

        sampling_overrides = overrides.pop("sampling", None)
        if isinstance(sampling_overrides, dict):
            sampling_kwargs.update(sampling_overrides)
        elif isinstance(sampling_overrides, SamplingOptions):
            sampling_kwargs = {f.name: getattr(sampling_overrides, f.name) for f in dataclasses.fields(sampling_overrides)}

        config_kwargs: dict[str, Any] = {"sampling": SamplingOptions(**sampling_kwargs)}

        _ENV_CONFIG_MAP = {
            "PYTRAIL_TASK_NAME": "task_name",
            "PYTRAIL_STORAGE_KEY": "storage_key",
            "PYTRAIL_DB_PATH": "db_path",
            "PYTRAIL_MQTT_HOST": "mqtt_host",
            "PYTRAIL_MQTT_TOPIC": "mqtt_topic",
            "PYTRAIL_MQTT_USERNAME": "mqtt_username",
            "PYTRAIL_MQTT_PASSWORD": "mqtt_password",
            "PYTRAIL_UPLOAD_URL": "upload_url",
        }
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        poll_env = env.get("PYTRAIL_POLL_INTERVAL")
        if poll_env is not None:
            config_kwargs["poll_interval"] = _parse(float, "PYTRAIL_POLL_INTERVAL", poll_env)

        policy_env = env.get("PYTRAIL_DUPLICATE_POLICY")
        if policy_env is not None:
            try:
                config_kwargs["duplicate_policy"] = DuplicatePolicy(policy_env.strip().lower())
            except ValueError as exc:
                raise TrailConfigError(f"PYTRAIL_DUPLICATE_POLICY has unknown value {policy_env!r}") from exc

        tls = _env_bool(env.get("PYTRAIL_MQTT_TLS"), False)
        config_kwargs["mqtt_tls"] = tls
        port_env = env.get("PYTRAIL_MQTT_PORT")
        if port_env is not None:
            config_kwargs["mqtt_port"] = _parse(int, "PYTRAIL_MQTT_PORT", port_env)
        elif tls:
            config_kwargs["mqtt_port"] = const.MQTT_TLS_PORT

        config_kwargs.update(overrides)

        return cls(**config_kwargs)


def _parse(kind: type, name: str, raw: str) -> Any:
    try:
        return kind(raw.strip())
    except ValueError as exc:
        raise TrailConfigError(f"{name} must be {kind.__name__}, got {raw!r}") from exc
