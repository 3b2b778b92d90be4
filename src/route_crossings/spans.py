"""
Route span projection.

Every point of an included crossing is projected onto the route; the span is
the range of the resulting cumulative distances.
"""

from typing import List, Optional
import logging

from shapely.errors import GEOSException

from .crossing import Crossing, ExclusionReason, RouteSpan
from .events import EventHook, emit
from .route import Route

logger = logging.getLogger(__name__)

STAGE = "span"


def calculate_route_span(crossing: Crossing, route: Route) -> Optional[RouteSpan]:
    """
    Calculate the span of a crossing along the route.

    Returns:
        RouteSpan in meters from the route start, or None if the crossing
        cannot be projected.
    """
    if not crossing.has_geometry():
        return None

    min_distance = float("inf")
    max_distance = -float("inf")

    try:
        for position in crossing.coords:
            distance = route.distance_along(position)
            min_distance = min(min_distance, distance)
            max_distance = max(max_distance, distance)
    except (ValueError, GEOSException) as e:
        logger.debug(f"Could not project {crossing.get_short_description()}: {e}")
        return None

    return RouteSpan(min_distance, max_distance)


def calculate_route_spans(
    route: Route, crossings: List[Crossing], on_event: Optional[EventHook] = None
) -> None:
    """
    Calculate the route span for each included crossing.

    Crossings that cannot be projected keep a null span and are excluded
    with ExclusionReason.NO_ROUTE_SPAN.
    """
    projected = 0
    for crossing in crossings:
        if crossing.exclusion_reason != ExclusionReason.NONE:
            continue

        crossing.route_span = calculate_route_span(crossing, route)
        if crossing.route_span is None:
            crossing.exclusion_reason = ExclusionReason.NO_ROUTE_SPAN
            logger.warning(
                f"Failed to calculate route span for {crossing.get_short_description()}"
            )
            emit(on_event, STAGE, "excluded", crossing.id, reason=crossing.exclusion_reason.value)
            continue

        projected += 1
        emit(
            on_event,
            STAGE,
            "span",
            crossing.id,
            start_distance=crossing.route_span.start_distance,
            end_distance=crossing.route_span.end_distance,
        )

    emit(on_event, STAGE, "summary", projected=projected)
