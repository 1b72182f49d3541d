from __future__ import annotations

from pytrail.models.point import Coordinate, LocationPoint, MapRegion
from pytrail.projection import focus_region, last_position, project


def _route() -> tuple[LocationPoint, ...]:
    return (
        LocationPoint(latitude=1, longitude=1, time=100),
        LocationPoint(latitude=2, longitude=2, time=200),
    )


def test_project_scenario() -> None:
    assert project(_route()) == [Coordinate(latitude=1, longitude=1), Coordinate(latitude=2, longitude=2)]


def test_project_preserves_length_order_and_duplicates() -> None:
    route = (
        LocationPoint(latitude=5, longitude=6, time=1),
        LocationPoint(latitude=5, longitude=6, time=1),
        LocationPoint(latitude=-3, longitude=4, time=2),
    )
    coords = project(route)
    assert len(coords) == len(route)
    for point, coord in zip(route, coords, strict=True):
        assert (coord.latitude, coord.longitude) == (point.latitude, point.longitude)


def test_project_empty_route() -> None:
    assert project(()) == []


def test_last_position() -> None:
    assert last_position(()) is None
    assert last_position(_route()) == Coordinate(latitude=2, longitude=2)


def test_focus_region_follows_last_point() -> None:
    assert focus_region(_route()) == MapRegion(latitude=2, longitude=2, latitude_delta=0.05, longitude_delta=0.05)


def test_focus_region_overview_when_empty() -> None:
    region = focus_region(())
    assert region.latitude == 53.558297
    assert region.longitude == -1.635262
    assert region.latitude_delta == 9
