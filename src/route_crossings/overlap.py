"""
Overlap resolution.

When distinct structures project onto overlapping stretches of the route
(an old and a replacement bridge, say), only the one closest to the route is
kept.
"""

from typing import List, Optional, Tuple
import logging

from .crossing import Crossing, ExclusionReason
from .events import EventHook, emit
from .route import Route

logger = logging.getLogger(__name__)

STAGE = "overlap"


def _get_nearby_crossings(crossings: List[Crossing]) -> List[Crossing]:
    """Representative, included crossings with a span, in input order."""
    return [
        c
        for c in sorted(crossings, key=lambda c: c.index)
        if c.is_representative()
        and c.route_span is not None
        and c.exclusion_reason == ExclusionReason.NONE
    ]


def find_overlap_groups(nearby_crossings: List[Crossing]) -> List[List[Crossing]]:
    """
    Group crossings by overlapping route spans.

    Each crossing joins the first existing group containing a member it
    overlaps, or starts a new group. This is single-pass greedy clustering:
    a later crossing that bridges two existing groups joins the first one and
    the groups are not merged.

    Returns:
        All groups in discovery order, including single-member groups.
    """
    groups: List[List[Crossing]] = []

    for crossing in nearby_crossings:
        for group in groups:
            if any(crossing.overlaps_with(member) for member in group):
                group.append(crossing)
                break
        else:
            groups.append([crossing])

    return groups


def _process_overlap_group(
    route: Route, group: List[Crossing], on_event: Optional[EventHook]
) -> None:
    """Process a single overlap group, keeping the nearest and excluding others."""
    logger.debug(f"Processing overlap group with {len(group)} crossings")

    overlap_group = tuple(crossing.index for crossing in group)
    for crossing in group:
        crossing.overlap_group = overlap_group

    distances: List[Tuple[Crossing, float]] = []
    for crossing in group:
        avg_distance = route.average_distance_to(crossing)
        distances.append((crossing, avg_distance))
        logger.debug(
            f"  {crossing.get_short_description()}: avg distance = {avg_distance:.2f}m"
        )

    # Stable sort: equal distances keep input order
    distances.sort(key=lambda pair: pair[1])

    closest, closest_distance = distances[0]
    logger.debug(
        f"  Keeping closest: {closest.get_short_description()} (distance: {closest_distance:.2f}m)"
    )
    emit(
        on_event,
        STAGE,
        "overlap_group",
        closest.id,
        members=[crossing.id for crossing in group],
        distances={crossing.id: distance for crossing, distance in distances},
    )
    emit(on_event, STAGE, "retained", closest.id, distance=closest_distance)

    for crossing, distance in distances[1:]:
        crossing.exclusion_reason = ExclusionReason.SUPERSEDED
        logger.debug(
            f"  Excluded: {crossing.get_short_description()} (distance: {distance:.2f}m, reason: {crossing.exclusion_reason})"
        )
        emit(on_event, STAGE, "excluded", crossing.id, reason=crossing.exclusion_reason.value)


def exclude_overlapping_crossings(
    route: Route,
    crossings: List[Crossing],
    on_event: Optional[EventHook] = None,
) -> None:
    """
    Exclude overlapping crossings, keeping only the nearest one for each overlapping group.

    Only compound group representatives take part. Every member of a group of
    two or more, kept or excluded, receives the same overlap_group tuple.

    Args:
        route: The route to measure distances against.
        crossings: Crossings to resolve (modified in-place).
        on_event: Optional hook receiving group and exclusion events.
    """
    nearby = _get_nearby_crossings(crossings)
    overlap_groups = [group for group in find_overlap_groups(nearby) if len(group) > 1]

    if not overlap_groups:
        logger.debug("No overlapping crossings found")
        emit(on_event, STAGE, "summary", groups=0, superseded=0)
        return

    for group in overlap_groups:
        _process_overlap_group(route, group, on_event)

    total_excluded = sum(len(group) - 1 for group in overlap_groups)
    logger.debug(
        f"Excluded {total_excluded} overlapping crossings, keeping nearest in each group"
    )
    emit(on_event, STAGE, "summary", groups=len(overlap_groups), superseded=total_excluded)
