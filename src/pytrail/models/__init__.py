"""Typed models for pytrail."""

from pytrail.models.fix import RawFix, TaskData, TaskEvent
from pytrail.models.point import Coordinate, LocationPoint, MapRegion, Route

__all__ = [
    "Coordinate",
    "LocationPoint",
    "MapRegion",
    "RawFix",
    "Route",
    "TaskData",
    "TaskEvent",
]
