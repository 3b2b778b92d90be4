#!/usr/bin/env python3
"""
Crossing analysis pipeline.

Runs the stages in their fixed order over one route and one candidate list:

    containment -> route spans -> compound detection -> alignment -> overlap

Each stage mutates the crossings in place. Excluded crossings are never
removed, only marked, so callers can still display them.
"""

from typing import Any, Dict, List, Optional
import logging

from .alignment import exclude_misaligned_crossings
from .compound import find_compound_crossings
from .config import CrossingsConfig
from .containment import exclude_uncontained_crossings
from .crossing import Crossing, ExclusionReason
from .events import EventHook
from .overlap import exclude_overlapping_crossings
from .route import Route
from .spans import calculate_route_spans

logger = logging.getLogger(__name__)


def analyze(
    route: Route,
    crossings: List[Crossing],
    config: Optional[CrossingsConfig] = None,
    on_event: Optional[EventHook] = None,
) -> List[Crossing]:
    """
    Classify every candidate crossing against the route.

    Analysis fields are reset first, so running twice over the same
    crossings gives identical verdicts. Each crossing's index is set to its
    position in ``crossings``; group tuples refer to these positions.

    Args:
        route: The route to analyse against.
        crossings: Candidate crossings, in input order.
        config: Analysis settings; defaults to CrossingsConfig().
        on_event: Optional hook receiving a PipelineEvent for every decision.

    Returns:
        The same list, with route_span, exclusion_reason, compound_group and
        overlap_group populated.

    Raises:
        InvalidConfiguration: If the configuration is out of range.
    """
    config = config or CrossingsConfig()
    config.validate()

    for index, crossing in enumerate(crossings):
        crossing.index = index
        crossing.reset()

    logger.info(f"Analyzing {len(crossings)} candidate crossings")

    exclude_uncontained_crossings(route, crossings, config.route_buffer, on_event)
    calculate_route_spans(route, crossings, on_event)
    find_compound_crossings(crossings, on_event)
    exclude_misaligned_crossings(route, crossings, config.bearing_tolerance, on_event)
    if config.overlap_exclusion:
        exclude_overlapping_crossings(route, crossings, on_event)

    included = sum(1 for c in crossings if c.exclusion_reason == ExclusionReason.NONE)
    logger.info(f"{included}/{len(crossings)} crossings included")
    return crossings


def analyze_points(
    points: List[Dict[str, Any]],
    candidates: List[Dict[str, Any]],
    config: Optional[CrossingsConfig] = None,
    on_event: Optional[EventHook] = None,
) -> List[Crossing]:
    """
    Build the route and crossings from raw records, then analyze them.

    Args:
        points: Route points as ``{lat, lon, elevation?}`` records.
        candidates: Candidate records as accepted by Crossing.from_candidate.

    Raises:
        InvalidConfiguration: If the configuration is out of range.
        InvalidRoute: If the points do not form a valid route.
    """
    config = config or CrossingsConfig()
    config.validate()
    route = Route.from_points(points)
    crossings = [
        Crossing.from_candidate(candidate, index)
        for index, candidate in enumerate(candidates)
    ]
    return analyze(route, crossings, config, on_event)


def representatives(
    crossings: List[Crossing], included_only: bool = False
) -> List[Crossing]:
    """
    One crossing per compound group or standalone crossing, in route order.

    Only crossings with a route span are listed. Sorting is stable, so equal
    start distances keep input order.
    """
    listed = [
        c
        for c in crossings
        if c.is_representative()
        and c.route_span is not None
        and (not included_only or c.exclusion_reason == ExclusionReason.NONE)
    ]
    return sorted(listed, key=lambda c: c.route_span.start_distance)  # type: ignore[union-attr]
