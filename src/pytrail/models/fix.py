"""Host-delivered fixes and task invocation payloads."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from pytrail.exceptions import TaskDeliveryError
from pytrail.models._base import TrailBaseModel
from pytrail.models.point import LocationPoint
from pytrail.normalize import normalize_timestamp_ms, safe_float


class RawFix(TrailBaseModel):
    """A raw reading from the device's positioning subsystem.

    Accepts the nested ``{"coords": {...}, "timestamp": ...}`` shape as
    well as flat payloads. ``timestamp`` is epoch milliseconds; an
    OwnTracks style ``tst`` (epoch seconds) is scaled to milliseconds.
    """

    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat"))
    longitude: float = Field(validation_alias=AliasChoices("longitude", "lon", "lng"))
    timestamp: int = Field(validation_alias=AliasChoices("timestamp", "time"))
    accuracy: float | None = Field(default=None, validation_alias=AliasChoices("accuracy", "acc"))
    altitude: float | None = Field(default=None, validation_alias=AliasChoices("altitude", "alt"))
    speed: float | None = Field(default=None, validation_alias=AliasChoices("speed", "vel"))
    heading: float | None = Field(default=None, validation_alias=AliasChoices("heading", "cog"))

    @model_validator(mode="before")
    @classmethod
    def _flatten_coords(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        nested = values.get("coords")
        if isinstance(nested, dict):
            merged.pop("coords")
            merged.update(nested)
        if "tst" in merged and "timestamp" not in merged and "time" not in merged:
            merged["timestamp"] = normalize_timestamp_ms(merged.pop("tst"), seconds=True)
        return merged

    @field_validator("latitude", "longitude", "accuracy", "altitude", "speed", "heading", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value: Any) -> int | None:
        return normalize_timestamp_ms(value)

    def to_point(self) -> LocationPoint:
        """Synthesize the persisted point for this fix."""
        return LocationPoint(latitude=self.latitude, longitude=self.longitude, time=self.timestamp)


class TaskData(TrailBaseModel):
    """A batch of raw fixes, kept unparsed so one bad fix cannot void the batch."""

    locations: list[Any] = Field(default_factory=list)


class TaskEvent(TrailBaseModel):
    """One host invocation of the background task.

    Carries either a batch of fixes in ``data`` or a delivery ``error``.
    """

    data: TaskData | None = None
    error: str | None = None

    @field_validator("error", mode="before")
    @classmethod
    def _stringify_error(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        if isinstance(value, BaseException):
            return f"{type(value).__name__}: {value}"
        if isinstance(value, dict):
            return str(value.get("message") or value)
        return str(value)

    def raise_for_error(self) -> None:
        """Raise :class:`TaskDeliveryError` when the host reported an error."""
        if self.error is not None:
            raise TaskDeliveryError(self.error)

    @classmethod
    def from_locations(cls, locations: list[Any]) -> TaskEvent:
        return cls(data=TaskData(locations=locations))

    @classmethod
    def from_error(cls, error: Any) -> TaskEvent:
        return cls(error=error)
