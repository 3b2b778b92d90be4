"""
Bearing alignment filter.

Rejects crossings that run across the route rather than along it, such as a
bridge carrying an unrelated road over the route.
"""

from typing import List, Optional
import logging

from .crossing import Crossing, ExclusionReason
from .events import EventHook, emit
from .geometry import Position
from .route import Route

logger = logging.getLogger(__name__)

STAGE = "alignment"


def bearing_difference(bearing1: float, bearing2: float) -> float:
    """
    Minimum angle between two bearings, ignoring direction.

    Folds wrap-around (359° vs 1°) and reversal (a segment and its reverse
    are aligned), so the result lies in [0, 90].
    """
    diff = abs(bearing1 - bearing2) % 360.0
    if diff > 180.0:
        diff = 360.0 - diff
    return min(diff, abs(180.0 - diff))


def _segments(positions: List[Position]):
    """Yield (start, end) pairs of non-degenerate segments."""
    for start, end in zip(positions, positions[1:]):
        if (start.latitude, start.longitude) == (end.latitude, end.longitude):
            continue  # Skip zero-length segment
        yield start, end


def is_aligned_with_route(
    crossing: Crossing, route: Route, tolerance_degrees: float
) -> bool:
    """
    Check if any crossing segment is aligned with any route segment in its span.

    A crossing without a span, or whose span covers fewer than two route
    vertices, cannot be judged and counts as aligned.
    """
    if crossing.route_span is None or not crossing.has_geometry():
        return True

    route_coords = route.sub_path(
        crossing.route_span.start_distance, crossing.route_span.end_distance
    )
    if len(route_coords) < 2:
        logger.debug(
            f"{crossing.get_short_description()}: route segment too short, treating as aligned"
        )
        return True

    route_bearings = [
        route.geometry.bearing(start, end) for start, end in _segments(route_coords)
    ]

    min_difference = float("inf")
    for start, end in _segments(crossing.coords):
        crossing_bearing = route.geometry.bearing(start, end)
        for route_bearing in route_bearings:
            difference = bearing_difference(crossing_bearing, route_bearing)
            min_difference = min(min_difference, difference)
            if difference <= tolerance_degrees:
                return True

    logger.debug(
        f"{crossing.get_short_description()} is not aligned with the route "
        f"(minimum bearing difference {min_difference:.1f}° > {tolerance_degrees}°)"
    )
    return False


def exclude_misaligned_crossings(
    route: Route,
    crossings: List[Crossing],
    bearing_tolerance_degrees: float,
    on_event: Optional[EventHook] = None,
) -> None:
    """
    Excludes included crossings by their alignment with the route.

    A tolerance of zero disables the filter.
    """
    if bearing_tolerance_degrees <= 0:
        logger.debug("Bearing tolerance is zero, skipping alignment filter")
        emit(on_event, STAGE, "summary", skipped=True, misaligned=0)
        return

    misaligned_count = 0
    checked = 0
    for crossing in crossings:
        if crossing.exclusion_reason != ExclusionReason.NONE or crossing.route_span is None:
            continue
        checked += 1
        if not is_aligned_with_route(crossing, route, bearing_tolerance_degrees):
            crossing.exclusion_reason = ExclusionReason.MISALIGNED
            misaligned_count += 1
            emit(on_event, STAGE, "excluded", crossing.id, reason=crossing.exclusion_reason.value)

    if misaligned_count > 0:
        logger.debug(
            f"Excluded {misaligned_count} crossings out of {checked} "
            f"contained crossings due to bearing misalignment (tolerance: {bearing_tolerance_degrees}°)"
        )
    emit(on_event, STAGE, "summary", skipped=False, misaligned=misaligned_count)
