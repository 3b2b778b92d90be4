#!/usr/bin/env python3
"""Data structures for representing bridge and tunnel crossings along a route."""

from typing import Optional, List, Dict, Any, NamedTuple, Tuple, Union
from enum import Enum
import logging

from .geometry import Position

logger = logging.getLogger(__name__)

CrossingId = Union[int, str]


class CrossingType(Enum):
    """Enumeration for crossing (bridge/tunnel) types."""

    BRIDGE = "bridge"
    TUNNEL = "tunnel"

    def __str__(self) -> str:
        return self.value.capitalize()


class ExclusionReason(Enum):
    """Enumeration for crossing exclusion reasons."""

    NONE = "none"
    OUTSIDE_CORRIDOR = "outside-corridor"
    NO_ROUTE_SPAN = "no-route-span"
    MISALIGNED = "misaligned"
    SUPERSEDED = "superseded-by-overlap"

    def __str__(self) -> str:
        return self.value


class RouteSpan(NamedTuple):
    """Information about where a crossing spans along a route."""

    start_distance: float  # Distance from route start where the crossing begins (meters)
    end_distance: float  # Distance from route start where the crossing ends (meters)

    @property
    def length(self) -> float:
        return self.end_distance - self.start_distance


class Crossing:
    """A single bridge or tunnel candidate feature."""

    def __init__(
        self,
        crossing_id: CrossingId,
        coords: List[Position],
        crossing_type: CrossingType,
        tags: Optional[Dict[str, Any]] = None,
        name: Optional[str] = None,
        node_ids: Optional[List[Any]] = None,
        index: int = 0,
    ):
        """Initializes a Crossing object.

        Args:
            crossing_id: Stable identifier assigned by the data source.
            coords: A list of Position objects representing the crossing's geometry.
            crossing_type: The type of the crossing (BRIDGE or TUNNEL).
            tags: Arbitrary tag map from the data source.
            name: Optional display name overriding the tags.
            node_ids: Node identifiers shared with adjacent segments of the same structure.
            index: Position of this crossing in the analysed candidate list.
        """
        self.id = crossing_id
        self.coords = list(coords)
        self.crossing_type = crossing_type
        self.tags: Dict[str, Any] = dict(tags or {})
        self.name = name
        self.node_ids: List[Any] = list(node_ids or [])
        self.index = index

        self.route_span: Optional[RouteSpan] = None
        self.exclusion_reason = ExclusionReason.NONE
        self.compound_group: Optional[Tuple[int, ...]] = None
        self.overlap_group: Optional[Tuple[int, ...]] = None

    def __repr__(self) -> str:
        return (
            f"Crossing(id={self.id!r}, type={self.crossing_type.value}, "
            f"points={len(self.coords)}, exclusion={self.exclusion_reason.value})"
        )

    def reset(self) -> None:
        """Clear every analysis field, returning the crossing to its input state."""
        self.route_span = None
        self.exclusion_reason = ExclusionReason.NONE
        self.compound_group = None
        self.overlap_group = None

    def has_geometry(self) -> bool:
        """A crossing needs at least two points to have a direction and a span."""
        return len(self.coords) >= 2

    def is_included(self) -> bool:
        return self.exclusion_reason == ExclusionReason.NONE

    def is_representative(self) -> bool:
        """
        Checks if this crossing is the representative of its compound group.

        If the crossing is not part of a compound group, it is always representative.
        Otherwise, only the first index of the compound group is representative;
        groups are stored sorted by start distance with input order breaking ties.

        Returns:
            bool: True if this crossing is representative, False otherwise.
        """
        if self.compound_group is None:
            return True
        return self.compound_group[0] == self.index

    def get_display_name(self) -> str:
        """Get the display name for this crossing.

        Uses the explicit name, then the 'name' tag, then the capitalized
        'highway' or 'railway' tag, falling back to the crossing type.
        """
        if self.name:
            return self.name
        if self.tags.get("name"):
            return str(self.tags["name"])
        for key in ("highway", "railway"):
            value = self.tags.get(key)
            if value:
                value = str(value)
                return value[:1].upper() + value[1:]
        return str(self.crossing_type)

    def get_short_description(self) -> str:
        """Get a short, human-readable description for logging.

        Format: "{Type}: {name} ({id})".
        """
        return f"{self.crossing_type}: {self.get_display_name()} ({self.id})"

    def overlaps_with(self, other: "Crossing") -> bool:
        """
        Check if this crossing's route span overlaps with another crossing's route span.

        Spans are treated as half-open, so spans that only touch do not overlap.

        Returns:
            True if their route spans overlap, False otherwise.
            Returns False if either crossing does not have a route_span.
        """
        if self.route_span is None or other.route_span is None:
            return False
        return route_spans_overlap(self.route_span, other.route_span)

    @classmethod
    def from_overpass_data(
        cls,
        way_data: Dict[str, Any],
        crossing_type: CrossingType,
        index: int = 0,
    ) -> "Crossing":
        """
        Parse a single way from an Overpass response into a Crossing object.

        Args:
            way_data: Raw way data from Overpass API (``out geom`` format)
            crossing_type: Type of crossing (BRIDGE or TUNNEL)
            index: Position of this crossing in the candidate list

        Returns:
            Crossing object

        Raises:
            KeyError: If the way has no id
        """
        coords = [
            Position(latitude=node["lat"], longitude=node["lon"])
            for node in way_data.get("geometry", [])
        ]
        tags = way_data.get("tags", {})

        return cls(
            crossing_id=way_data["id"],
            coords=coords,
            crossing_type=crossing_type,
            tags=tags,
            name=way_data.get("name"),
            node_ids=way_data.get("nodes", []),
            index=index,
        )

    @classmethod
    def from_candidate(cls, candidate: Dict[str, Any], index: int = 0) -> "Crossing":
        """
        Build a Crossing from a candidate record.

        A record carries ``id``, ``kind`` ("bridge" or "tunnel"), ``points``
        (a list of ``{lat, lon}``) and optionally ``tags``, ``name`` and ``nodeIds``.

        Raises:
            KeyError: If a required key is missing
            ValueError: If the kind is not a known crossing type
        """
        coords = [
            Position(latitude=point["lat"], longitude=point["lon"])
            for point in candidate["points"]
        ]
        return cls(
            crossing_id=candidate["id"],
            coords=coords,
            crossing_type=CrossingType(candidate["kind"]),
            tags=candidate.get("tags"),
            name=candidate.get("name"),
            node_ids=candidate.get("nodeIds", candidate.get("node_ids")),
            index=index,
        )


def route_spans_overlap(span1: RouteSpan, span2: RouteSpan) -> bool:
    """
    Check if two route spans overlap.

    Touching endpoints do not count as overlapping.
    """
    return not (
        span1.end_distance <= span2.start_distance
        or span2.end_distance <= span1.start_distance
    )
