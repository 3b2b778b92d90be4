"""
Geometry adapter for route and crossing analysis.

This module wraps Shapely and pyproj behind a small facade: metric buffering,
corridor containment, nearest-point projection, geodesic bearing and geodesic
point distance. Planar operations run in a custom transverse Mercator
projection centred on the route, geodesic ones on the WGS84 ellipsoid.
"""

from typing import Iterable, List, NamedTuple, Optional, Tuple
import logging

import pyproj
from shapely.geometry import LineString, Point
from shapely.geometry.base import BaseGeometry

logger = logging.getLogger(__name__)

WGS84 = pyproj.Geod(ellps="WGS84")


class Position(NamedTuple):
    """Represents a geographic position with latitude, longitude and optional elevation."""

    latitude: float
    longitude: float
    elevation: Optional[float] = None


def create_transverse_mercator_projection(
    bbox: Tuple[float, float, float, float],
) -> pyproj.Proj:
    """
    Create a custom transverse mercator projection centered on the given bounding box.

    Args:
        bbox: Tuple of (south, west, north, east) in decimal degrees

    Returns:
        pyproj.Proj object for the custom projection
    """
    south, west, north, east = bbox

    center_lat = (south + north) / 2.0
    center_lon = (west + east) / 2.0

    proj_string = f"+proj=tmerc +lat_0={center_lat} +lon_0={center_lon} +k=1 +x_0=0 +y_0=0 +datum=WGS84 +units=m +no_defs"
    return pyproj.Proj(proj_string)


def coords_to_polyline(
    coord_tuples: List[Tuple[float, float]], projection: Optional[pyproj.Proj] = None
) -> LineString:
    """
    Convert a list of coordinate tuples to a Shapely LineString.

    Args:
        coord_tuples: List of (longitude, latitude) tuples
        projection: Optional pyproj.Proj object for coordinate transformation.
                   If None, uses lat/lon coordinates directly.

    Returns:
        LineString object in projected coordinates if projection is provided,
        otherwise in geographic coordinates

    Raises:
        ValueError: If coord_tuples is empty or has less than 2 points
    """
    if not coord_tuples or len(coord_tuples) < 2:
        raise ValueError("At least two positions are required to create a LineString.")

    if projection is not None:
        lons = [pos[0] for pos in coord_tuples]
        lats = [pos[1] for pos in coord_tuples]
        x_coords, y_coords = projection(lons, lats)
        return LineString(list(zip(x_coords, y_coords)))

    return LineString(coord_tuples)


def geodesic_distance(pos1: Position, pos2: Position) -> float:
    """Geodesic distance in meters between two positions on the WGS84 ellipsoid."""
    _, _, distance = WGS84.inv(pos1.longitude, pos1.latitude, pos2.longitude, pos2.latitude)
    return distance


def geodesic_bearing(pos1: Position, pos2: Position) -> float:
    """
    Initial geodesic bearing from pos1 to pos2.

    Returns:
        Bearing in degrees in the range [0, 360), clockwise from north
    """
    azimuth, _, _ = WGS84.inv(pos1.longitude, pos1.latitude, pos2.longitude, pos2.latitude)
    return azimuth % 360.0


class GeoAdapter:
    """
    Facade over Shapely and pyproj exposing exactly the operations the
    crossing analysis needs: buffer, contains, project, bearing and distance.

    Positions go in and out as geographic coordinates; planar geometries are
    kept in the adapter's projected metric space.
    """

    def __init__(self, projection: pyproj.Proj):
        self.projection = projection

    def to_xy(self, positions: Iterable[Position]) -> List[Tuple[float, float]]:
        """Project positions into the adapter's metric plane."""
        positions = list(positions)
        if not positions:
            return []
        lons = [pos.longitude for pos in positions]
        lats = [pos.latitude for pos in positions]
        x_coords, y_coords = self.projection(lons, lats)
        return list(zip(x_coords, y_coords))

    def to_position(self, x: float, y: float) -> Position:
        """Convert a projected point back to a geographic position."""
        lon, lat = self.projection(x, y, inverse=True)
        return Position(latitude=lat, longitude=lon)

    def line(self, positions: List[Position]) -> LineString:
        """Build a projected LineString; raises ValueError for fewer than 2 positions."""
        coord_tuples = [(pos.longitude, pos.latitude) for pos in positions]
        return coords_to_polyline(coord_tuples, self.projection)

    def buffer(self, line: LineString, distance: float) -> BaseGeometry:
        """
        Buffer a projected line by a metric distance.

        Raises:
            ValueError: If the buffered geometry is invalid and cannot be repaired
        """
        polygon = line.buffer(distance)

        if not polygon.is_valid:
            logger.warning(
                "Initial buffered route geometry is invalid. Attempting to fix with buffer(0)."
            )
            polygon = polygon.buffer(0)
            if not polygon.is_valid:
                raise ValueError(
                    "Could not fix invalid buffered geometry after attempting buffer(0)."
                )
            logger.warning("Successfully fixed invalid buffered geometry.")
        return polygon

    def contains(self, polygon: BaseGeometry, positions: List[Position]) -> bool:
        """
        Check that no part of a polyline leaves the polygon.

        A polyline touching or crossing the polygon boundary anywhere is not
        contained. Otherwise it lies entirely on one side of the boundary, so
        testing its first point decides.

        Raises:
            ValueError: If fewer than 2 positions are given
        """
        line = self.line(positions)
        if line.intersects(polygon.boundary):
            return False
        first_x, first_y = line.coords[0]
        return polygon.contains(Point(first_x, first_y))

    def project(self, line: LineString, position: Position) -> Tuple[float, Position]:
        """
        Project a position onto a projected line.

        Returns:
            Tuple of (planar distance along the line in meters, nearest position on the line)
        """
        [(x, y)] = self.to_xy([position])
        distance_along = line.project(Point(x, y))
        nearest = line.interpolate(distance_along)
        return distance_along, self.to_position(nearest.x, nearest.y)

    @staticmethod
    def bearing(pos1: Position, pos2: Position) -> float:
        return geodesic_bearing(pos1, pos2)

    @staticmethod
    def distance(pos1: Position, pos2: Position) -> float:
        return geodesic_distance(pos1, pos2)
