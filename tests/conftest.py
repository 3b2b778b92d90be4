"""Shared fixtures: geometry laid out in meters along an equatorial route."""

from typing import Callable, List, Optional

import pyproj
import pytest

from route_crossings.crossing import Crossing, CrossingType
from route_crossings.geometry import Position
from route_crossings.route import Route

GEOD = pyproj.Geod(ellps="WGS84")


def position_at(along: float, offset: float = 0.0) -> Position:
    """
    Position `along` meters east of (0, 0) on the equator, moved `offset`
    meters north (negative: south).
    """
    lon, lat, _ = GEOD.fwd(0.0, 0.0, 90.0, along)
    if offset:
        azimuth = 0.0 if offset > 0 else 180.0
        lon, lat, _ = GEOD.fwd(lon, lat, azimuth, abs(offset))
    return Position(latitude=lat, longitude=lon)


@pytest.fixture
def point_at() -> Callable[..., Position]:
    return position_at


@pytest.fixture
def straight_route() -> Route:
    """Three collinear points at 0 m, 500 m and 1000 m."""
    return Route([position_at(0.0), position_at(500.0), position_at(1000.0)])


@pytest.fixture
def make_crossing() -> Callable[..., Crossing]:
    def _make(
        crossing_id,
        points: List[tuple],
        crossing_type: CrossingType = CrossingType.BRIDGE,
        node_ids: Optional[list] = None,
        tags: Optional[dict] = None,
        index: int = 0,
    ) -> Crossing:
        """Build a crossing from (along, offset) pairs in meters."""
        return Crossing(
            crossing_id=crossing_id,
            coords=[position_at(along, offset) for along, offset in points],
            crossing_type=crossing_type,
            tags=tags or {},
            node_ids=node_ids,
            index=index,
        )

    return _make
