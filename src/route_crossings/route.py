#!/usr/bin/env python3
"""
Route data model for crossing analysis.
"""

from typing import Any, Dict, List, Sequence, TextIO, Tuple
from bisect import bisect_right
from math import cos, radians
import logging

import gpxpy
import gpxpy.gpx
from shapely.geometry import LineString
from shapely.geometry.base import BaseGeometry

from .crossing import Crossing
from .geometry import (
    GeoAdapter,
    Position,
    create_transverse_mercator_projection,
)

logger = logging.getLogger(__name__)


class InvalidRoute(ValueError):
    """Raised when a route cannot support crossing analysis."""


class Route:
    """Represents an immutable route with geodesic distances and a projected line."""

    def __init__(self, coords: Sequence[Position]):
        """Initializes a Route object.

        Args:
            coords: A sequence of Position objects representing the route's geometry.

        Raises:
            InvalidRoute: If there are fewer than two coordinates, the route has
                zero length, approaches a pole or crosses the antimeridian.
        """
        if len(coords) < 2:
            raise InvalidRoute("Route must have at least two coordinates")

        # Check for polar proximity (within 5 degrees of poles)
        for i, coord in enumerate(coords):
            if abs(coord.latitude) > 85.0:
                raise InvalidRoute(
                    f"Route point {i} at latitude {coord.latitude:.3f}° is within "
                    f"5 degrees of a pole"
                )

        # Check for antimeridian crossing
        for i in range(1, len(coords)):
            lon_diff = abs(coords[i].longitude - coords[i - 1].longitude)
            if lon_diff > 180.0:
                raise InvalidRoute(
                    f"Route crosses antimeridian between points {i-1} and {i} "
                    f"(longitude jump: {lon_diff:.3f}°)"
                )

        self.coords: Tuple[Position, ...] = tuple(coords)
        self.bbox = self._calculate_bbox()

        self.geometry = GeoAdapter(create_transverse_mercator_projection(self.bbox))
        self.cumulative_distances = self._calculate_cumulative_distances()
        if self.length <= 0.0:
            raise InvalidRoute("Route has zero length (all points coincide)")

        self.linestring: LineString = self.geometry.line(list(self.coords))
        self._cumulative_planar_distances = self._calculate_planar_distances()

    @property
    def length(self) -> float:
        """Total geodesic length of the route in meters."""
        return self.cumulative_distances[-1]

    def get_bbox(self, buffer: float = 0.0) -> Tuple[float, float, float, float]:
        """
        Get bounding box for this route, optionally with a buffer.

        Args:
            buffer: Buffer distance in meters (default: 0.0)

        Returns:
            Tuple of (south, west, north, east) in decimal degrees
        """
        if buffer == 0.0:
            return self.bbox

        south, west, north, east = self.bbox

        # 1 degree latitude ≈ 111 km; longitude scales with the average latitude
        avg_lat = (south + north) / 2
        lat_buffer = buffer / 111000.0
        lon_buffer = buffer / (111000.0 * abs(cos(radians(avg_lat))))

        return (
            max(-90.0, south - lat_buffer),
            max(-180.0, west - lon_buffer),
            min(90.0, north + lat_buffer),
            min(180.0, east + lon_buffer),
        )

    def _calculate_bbox(self) -> Tuple[float, float, float, float]:
        latitudes = [coord.latitude for coord in self.coords]
        longitudes = [coord.longitude for coord in self.coords]

        bbox = (min(latitudes), min(longitudes), max(latitudes), max(longitudes))
        logger.debug(
            f"Route bounding box: ({bbox[0]:.4f}, {bbox[1]:.4f}, {bbox[2]:.4f}, {bbox[3]:.4f})"
        )
        return bbox

    def _calculate_cumulative_distances(self) -> List[float]:
        """Geodesic cumulative distances, one per route point, starting at 0."""
        distances = [0.0]
        for i in range(1, len(self.coords)):
            segment = self.geometry.distance(self.coords[i - 1], self.coords[i])
            distances.append(distances[-1] + segment)
        return distances

    def _calculate_planar_distances(self) -> List[float]:
        """Cumulative distances along the projected line, one per route point."""
        projected = list(self.linestring.coords)
        distances = [0.0]
        for (x1, y1), (x2, y2) in zip(projected, projected[1:]):
            distances.append(distances[-1] + ((x2 - x1) ** 2 + (y2 - y1) ** 2) ** 0.5)
        return distances

    def planar_to_geodesic_distance(self, planar_distance: float) -> float:
        """
        Convert a distance along the projected line to the geodesic distance scale.

        Locates the route segment containing the planar distance and
        interpolates linearly between its geodesic cumulative distances.
        """
        planar = self._cumulative_planar_distances
        geodesic = self.cumulative_distances

        if planar_distance <= 0:
            return 0.0
        if planar_distance >= planar[-1]:
            return geodesic[-1]

        segment_idx = bisect_right(planar, planar_distance) - 1
        segment_start = planar[segment_idx]
        segment_end = planar[segment_idx + 1]
        if segment_end == segment_start:
            return geodesic[segment_idx]

        t = (planar_distance - segment_start) / (segment_end - segment_start)
        return geodesic[segment_idx] + t * (
            geodesic[segment_idx + 1] - geodesic[segment_idx]
        )

    def distance_along(self, position: Position) -> float:
        """Cumulative route distance (meters) of the point on the route nearest to position."""
        planar_distance, _ = self.geometry.project(self.linestring, position)
        return self.planar_to_geodesic_distance(planar_distance)

    def sub_path(self, start_distance: float, end_distance: float) -> List[Position]:
        """
        Route vertices covering the interval [start_distance, end_distance].

        Starts one vertex before the first vertex at or beyond start_distance and
        ends one vertex after the first vertex at or beyond end_distance, both
        clamped to the route. No points are interpolated.

        Returns:
            The vertices, or an empty list for an empty or negative interval
        """
        if start_distance >= end_distance or start_distance < 0:
            return []

        start_idx = -1
        end_idx = -1
        for i, distance in enumerate(self.cumulative_distances):
            if start_idx == -1 and distance >= start_distance:
                start_idx = max(0, i - 1)
            if distance >= end_distance:
                end_idx = min(len(self.coords) - 1, i + 1)
                break

        if end_idx == -1:
            end_idx = len(self.coords) - 1
        if start_idx == -1:
            return []

        return list(self.coords[start_idx : end_idx + 1])

    def calculate_buffered_route_geometry(self, route_buffer: float) -> BaseGeometry:
        """
        Calculate the buffered corridor polygon around the route.

        Args:
            route_buffer: Buffer distance in meters.

        Returns:
            Shapely polygon in the route's projected coordinates.
        """
        return self.geometry.buffer(self.linestring, route_buffer)

    def average_distance_to(self, crossing: Crossing) -> float:
        """
        Calculate the average distance from all points in a crossing to the closest points on this route.

        Nearest points are found in projected coordinates; each distance is
        then measured geodesically.

        Returns:
            float: Average distance in meters.
        """
        total_distance = 0.0
        for position in crossing.coords:
            _, nearest = self.geometry.project(self.linestring, position)
            total_distance += self.geometry.distance(position, nearest)

        return total_distance / len(crossing.coords)

    @classmethod
    def from_points(cls, points: List[Dict[str, Any]]) -> "Route":
        """
        Build a route from a list of ``{lat, lon, elevation?}`` records.

        Raises:
            InvalidRoute: If the points do not form a valid route.
            KeyError: If a point lacks lat or lon.
        """
        return cls(
            [
                Position(
                    latitude=point["lat"],
                    longitude=point["lon"],
                    elevation=point.get("elevation"),
                )
                for point in points
            ]
        )

    @classmethod
    def from_gpx(cls, file_input: TextIO) -> "Route":
        """
        Parse GPX file and concatenate all tracks/segments into a single route.

        Args:
            file_input: File-like object containing GPX data

        Returns:
            Route object representing the concatenated route

        Raises:
            InvalidRoute: If the track points do not form a valid route.
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        gpx_data = gpxpy.parse(file_input)

        coords_data = []
        for track in gpx_data.tracks:
            for segment in track.segments:
                for point in segment.points:
                    coords_data.append(
                        Position(
                            latitude=point.latitude,
                            longitude=point.longitude,
                            elevation=point.elevation,
                        )
                    )

        route = cls(coords_data)
        logger.debug(f"Parsed {len(route.coords)} track points from GPX file")
        return route

    @classmethod
    def from_file(cls, filename: str) -> "Route":
        """
        Load and parse a GPX file into a route.

        Raises:
            InvalidRoute: If route fails validation.
            FileNotFoundError: If file doesn't exist.
            PermissionError: If file can't be read.
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        logger.debug(f"Reading GPX file: {filename}")
        with open(filename, "r", encoding="utf-8") as f:
            return cls.from_gpx(f)

    def __len__(self) -> int:
        """Return number of trackpoints in route."""
        return len(self.coords)

    def __getitem__(self, index):
        """Allow indexing into trackpoints."""
        return self.coords[index]

    def __iter__(self):
        """Allow iteration over trackpoints."""
        return iter(self.coords)
