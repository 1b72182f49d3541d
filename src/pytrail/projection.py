"""Pure projections of a route for the rendering layer."""

from __future__ import annotations

from collections.abc import Sequence

from pytrail import _constants as const
from pytrail.models.point import Coordinate, LocationPoint, MapRegion


def project(route: Sequence[LocationPoint]) -> list[Coordinate]:
    """Polyline vertices for *route*, same length and order, nothing filtered."""
    return [Coordinate(latitude=point.latitude, longitude=point.longitude) for point in route]


def last_position(route: Sequence[LocationPoint]) -> Coordinate | None:
    """Marker position: the most recent point, or ``None`` for an empty route."""
    if not route:
        return None
    last = route[-1]
    return Coordinate(latitude=last.latitude, longitude=last.longitude)


def focus_region(route: Sequence[LocationPoint]) -> MapRegion:
    """Viewport centered on the latest point, or the overview when empty."""
    marker = last_position(route)
    if marker is None:
        return MapRegion(
            latitude=const.OVERVIEW_LATITUDE,
            longitude=const.OVERVIEW_LONGITUDE,
            latitude_delta=const.OVERVIEW_DELTA,
            longitude_delta=const.OVERVIEW_DELTA,
        )
    return MapRegion(
        latitude=marker.latitude,
        longitude=marker.longitude,
        latitude_delta=const.FOCUS_DELTA,
        longitude_delta=const.FOCUS_DELTA,
    )
