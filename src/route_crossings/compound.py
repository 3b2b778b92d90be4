#!/usr/bin/env python3
"""
Compound crossing detection.

A real-world structure is often split into several ways that share nodes,
e.g. a bridge broken at a pier. Crossings of the same type that share a node
identifier are merged into one compound group.
"""

from typing import Any, Dict, List, Optional, Set, Tuple
from collections import defaultdict, deque
import logging

from .crossing import Crossing, CrossingType, ExclusionReason, RouteSpan
from .events import EventHook, emit

logger = logging.getLogger(__name__)

STAGE = "compound"


def _build_node_edges(
    crossings: List[Crossing], indices: List[int]
) -> Dict[Any, Set[int]]:
    """Map each node identifier to the indices of the crossings that use it."""
    edges: Dict[Any, Set[int]] = defaultdict(set)
    for index in indices:
        for node_id in crossings[index].node_ids:
            edges[node_id].add(index)
    return edges


def _find_connected_component(
    start: int,
    crossings: List[Crossing],
    edges: Dict[Any, Set[int]],
    visited: Set[int],
) -> List[int]:
    """Find all crossings connected to start through shared nodes using BFS."""
    component: List[int] = []
    queue: deque = deque([start])

    while queue:
        current = queue.popleft()
        if current in visited:
            continue

        visited.add(current)
        component.append(current)

        for node_id in crossings[current].node_ids:
            for neighbor in edges[node_id]:
                if neighbor not in visited:
                    queue.append(neighbor)

    return component


def _find_all_connected_components(
    crossings: List[Crossing], indices: List[int]
) -> List[List[int]]:
    """Partition the given crossings into connected components."""
    edges = _build_node_edges(crossings, indices)
    visited: Set[int] = set()
    components: List[List[int]] = []

    for index in indices:
        if index in visited:
            continue
        components.append(_find_connected_component(index, crossings, edges, visited))

    return components


def _sort_key(crossing: Crossing) -> Tuple[float, int]:
    start = crossing.route_span.start_distance if crossing.route_span else 0.0
    return (start, crossing.index)


def _mark_compound_groups(
    components: List[List[int]],
    crossings: List[Crossing],
    on_event: Optional[EventHook],
) -> int:
    """Mark compound groups for components with more than one crossing."""
    marked = 0
    for component in components:
        if len(component) < 2:
            continue

        # Representative first: smallest start distance, input order on ties
        members = sorted((crossings[i] for i in component), key=_sort_key)
        group = tuple(member.index for member in members)
        for member in members:
            member.compound_group = group

        marked += 1
        logger.debug(
            f"Found compound {members[0].crossing_type.value} with {len(group)} segments: "
            f"{', '.join(str(member.id) for member in members)}"
        )
        emit(
            on_event,
            STAGE,
            "compound_group",
            members[0].id,
            members=[member.id for member in members],
        )
    return marked


def find_compound_crossings(
    crossings: List[Crossing], on_event: Optional[EventHook] = None
) -> None:
    """
    Identify connected components of crossings and mark compound groups.

    Only included crossings with a route span take part, and bridges and
    tunnels are grouped separately. Every member of a component of two or
    more crossings receives the same compound_group tuple of indices into
    ``crossings``; other crossings keep compound_group None.
    """
    total = 0
    for crossing_type in CrossingType:
        indices = [
            crossing.index
            for crossing in crossings
            if crossing.crossing_type == crossing_type
            and crossing.exclusion_reason == ExclusionReason.NONE
            and crossing.route_span is not None
        ]
        if len(indices) < 2:
            continue
        components = _find_all_connected_components(crossings, indices)
        total += _mark_compound_groups(components, crossings, on_event)

    emit(on_event, STAGE, "summary", compound_groups=total)


def compound_members(crossing: Crossing, crossings: List[Crossing]) -> List[Crossing]:
    """The crossings of this crossing's compound group, representative first."""
    if crossing.compound_group is None:
        return [crossing]
    return [crossings[index] for index in crossing.compound_group]


def compound_id(crossing: Crossing, crossings: List[Crossing]) -> str:
    """Semicolon-separated identifiers of the compound group, sorted."""
    ids = [member.id for member in compound_members(crossing, crossings)]
    if len(ids) == 1:
        return str(ids[0])
    try:
        ids.sort()
    except TypeError:
        ids.sort(key=str)
    return ";".join(str(member_id) for member_id in ids)


def compound_display_name(crossing: Crossing, crossings: List[Crossing]) -> str:
    """Unique member names joined with ', ', followed by the compound id."""
    names: List[str] = []
    for member in compound_members(crossing, crossings):
        name = member.get_display_name()
        if name not in names:
            names.append(name)
    return f"{', '.join(names)} ({compound_id(crossing, crossings)})"


def compound_route_span(
    crossing: Crossing, crossings: List[Crossing]
) -> Optional[RouteSpan]:
    """
    Get the RouteSpan covered by the whole compound group.

    Returns:
        The smallest start and largest end over members with a span, or
        None if no member has one.
    """
    spans = [
        member.route_span
        for member in compound_members(crossing, crossings)
        if member.route_span is not None
    ]
    if not spans:
        return None
    return RouteSpan(
        min(span.start_distance for span in spans),
        max(span.end_distance for span in spans),
    )
