"""
Corridor containment filter.

A crossing is kept only if its whole polyline lies inside the buffered route
corridor.
"""

from typing import List, Optional
import logging

from shapely.errors import GEOSException
from shapely.geometry.base import BaseGeometry

from .crossing import Crossing, ExclusionReason
from .events import EventHook, emit
from .route import Route

logger = logging.getLogger(__name__)

STAGE = "containment"


def is_contained_by(crossing: Crossing, route: Route, corridor: BaseGeometry) -> bool:
    """
    Check if a crossing is completely contained within the route corridor.

    Crossings with fewer than two points, or whose geometry cannot be
    evaluated, are treated as not contained.
    """
    if not crossing.has_geometry():
        logger.debug(f"{crossing.get_short_description()} has insufficient coordinates")
        return False
    try:
        return route.geometry.contains(corridor, crossing.coords)
    except (ValueError, GEOSException) as e:
        logger.debug(f"Containment test failed for {crossing.get_short_description()}: {e}")
        return False


def exclude_uncontained_crossings(
    route: Route,
    crossings: List[Crossing],
    route_buffer: float,
    on_event: Optional[EventHook] = None,
) -> None:
    """
    Excludes crossings that are not contained within the buffered route.

    Args:
        route: The route to buffer.
        crossings: Crossings to check (modified in-place).
        route_buffer: Corridor half-width in meters.
        on_event: Optional hook receiving exclusion events.
    """
    corridor = route.calculate_buffered_route_geometry(route_buffer)

    excluded_count = 0
    for crossing in crossings:
        if crossing.exclusion_reason != ExclusionReason.NONE:
            continue
        if not is_contained_by(crossing, route, corridor):
            crossing.exclusion_reason = ExclusionReason.OUTSIDE_CORRIDOR
            excluded_count += 1
            emit(
                on_event,
                STAGE,
                "excluded",
                crossing.id,
                reason=crossing.exclusion_reason.value,
            )

    logger.debug(
        f"Containment filter: {len(crossings) - excluded_count}/{len(crossings)} "
        f"crossings within {route_buffer}m route buffer"
    )
    emit(
        on_event,
        STAGE,
        "summary",
        contained=len(crossings) - excluded_count,
        excluded=excluded_count,
        route_buffer=route_buffer,
    )
