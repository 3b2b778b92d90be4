"""
Loading candidate crossings from feature query results.

Accepts either a raw Overpass API JSON response or a list of candidate
records. No network access happens here; fetching belongs to the caller.
"""

from typing import Any, Dict, List, Optional, Tuple
import json
import logging

from .crossing import Crossing, CrossingType

logger = logging.getLogger(__name__)


def _classify_way(element: Dict[str, Any]) -> Optional[CrossingType]:
    """Decide a way's type from its tags when the response has no count separators."""
    tags = element.get("tags", {})
    if tags.get("bridge") and tags.get("bridge") != "no":
        return CrossingType.BRIDGE
    if tags.get("tunnel") and tags.get("tunnel") != "no":
        return CrossingType.TUNNEL
    return None


def parse_separated_results(
    elements: List[Dict[str, Any]],
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Parse Overpass response elements into bridges and tunnels.

    The bridge query block and the tunnel query block are each preceded by a
    ``count`` element. Ways appearing before any count element are classified
    by their bridge/tunnel tags instead.

    Args:
        elements: Raw elements from Overpass response

    Returns:
        Tuple of (bridges, tunnels) as separate lists
    """
    bridges = []
    tunnels = []
    current_type = None

    for element in elements:
        if element.get("type") == "count":
            # First count is bridges, second count is tunnels
            current_type = "tunnels" if current_type == "bridges" else "bridges"
            total = element.get("tags", {}).get("total", "?")
            logger.debug(f"Overpass query found {total} {current_type}")
        elif element.get("type") == "way":
            if current_type == "bridges":
                bridges.append(element)
            elif current_type == "tunnels":
                tunnels.append(element)
            else:
                crossing_type = _classify_way(element)
                if crossing_type == CrossingType.BRIDGE:
                    bridges.append(element)
                elif crossing_type == CrossingType.TUNNEL:
                    tunnels.append(element)
                else:
                    logger.warning(
                        f"Way {element.get('id')} is neither a bridge nor a tunnel, skipping"
                    )

    return bridges, tunnels


def crossings_from_overpass(
    raw_bridges: List[Dict[str, Any]], raw_tunnels: List[Dict[str, Any]]
) -> List[Crossing]:
    """Process raw bridge and tunnel ways into Crossing objects, dropping duplicate ids."""
    crossings: List[Crossing] = []
    seen = set()

    for crossing_type, ways in (
        (CrossingType.BRIDGE, raw_bridges),
        (CrossingType.TUNNEL, raw_tunnels),
    ):
        for way_data in ways:
            try:
                crossing = Crossing.from_overpass_data(way_data, crossing_type, len(crossings))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Failed to parse {crossing_type.value} way: {e}")
                continue
            if crossing.id in seen:
                logger.debug(f"Skipping duplicate way {crossing.id}")
                continue
            seen.add(crossing.id)
            crossings.append(crossing)

    return crossings


def crossings_from_candidates(candidates: List[Dict[str, Any]]) -> List[Crossing]:
    """Build Crossing objects from candidate records, skipping malformed ones."""
    crossings: List[Crossing] = []
    seen = set()

    for candidate in candidates:
        try:
            crossing = Crossing.from_candidate(candidate, len(crossings))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to parse candidate {candidate.get('id', '?')}: {e}")
            continue
        if crossing.id in seen:
            logger.debug(f"Skipping duplicate candidate {crossing.id}")
            continue
        seen.add(crossing.id)
        crossings.append(crossing)

    return crossings


def parse_candidates(data: Any) -> List[Crossing]:
    """
    Turn decoded JSON into crossings.

    Args:
        data: An Overpass response dict with an ``elements`` list, or a list
              of candidate records.

    Raises:
        ValueError: If the data is neither shape.
    """
    if isinstance(data, dict) and "elements" in data:
        raw_bridges, raw_tunnels = parse_separated_results(data["elements"])
        return crossings_from_overpass(raw_bridges, raw_tunnels)
    if isinstance(data, list):
        return crossings_from_candidates(data)
    raise ValueError("Expected an Overpass response or a list of candidate crossings")


def load_candidates(filename: str) -> List[Crossing]:
    """
    Load candidate crossings from a JSON file.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ValueError: If the file is not valid JSON of a supported shape.
    """
    logger.debug(f"Reading candidate file: {filename}")
    with open(filename, "r", encoding="utf-8") as f:
        data = json.load(f)
    crossings = parse_candidates(data)
    logger.debug(f"Loaded {len(crossings)} candidate crossings")
    return crossings
