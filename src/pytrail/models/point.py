"""Route value types: persisted points and their projections."""

from __future__ import annotations

from typing import TypeAlias

from pydantic import Field

from pytrail.models._base import TrailBaseModel


class LocationPoint(TrailBaseModel):
    """A single persisted sample of the route.

    Parameters
    ----------
    latitude : float
        Latitude in degrees.
    longitude : float
        Longitude in degrees.
    time : int
        Fix timestamp in epoch milliseconds.
    """

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    time: int = Field(ge=0)


Route: TypeAlias = tuple[LocationPoint, ...]
"""Ordered points of one session, non-decreasing in ``time``."""


class Coordinate(TrailBaseModel):
    """A drawable polyline vertex."""

    latitude: float
    longitude: float


class MapRegion(TrailBaseModel):
    """Viewport for the rendering layer."""

    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float
