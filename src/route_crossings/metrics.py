"""
Module for collecting and logging metrics related to crossings.
"""

import collections
import logging
from typing import Dict, List, NamedTuple

from .crossing import Crossing, CrossingType, ExclusionReason

logger = logging.getLogger(__name__)


class CrossingMetrics(NamedTuple):
    """Container for crossing metrics data."""

    bridge_counts: Dict[str, int]
    tunnel_counts: Dict[str, int]


def collect_metrics(crossings: List[Crossing]) -> CrossingMetrics:
    """
    Count representative crossings by type, inclusion and exclusion reason.

    Args:
        crossings: Analysed crossings

    Returns:
        CrossingMetrics containing all collected metrics
    """
    bridge_counts: Dict[str, int] = collections.defaultdict(int)
    tunnel_counts: Dict[str, int] = collections.defaultdict(int)

    for crossing in crossings:
        if not crossing.is_representative():
            continue

        counts = (
            bridge_counts
            if crossing.crossing_type == CrossingType.BRIDGE
            else tunnel_counts
        )
        counts["total"] += 1

        if crossing.exclusion_reason == ExclusionReason.NONE:
            counts["contained"] += 1
            if crossing.compound_group is not None:
                counts["compound"] += 1
            else:
                counts["individual"] += 1
        else:
            counts[crossing.exclusion_reason.value] += 1

    return CrossingMetrics(
        bridge_counts=dict(bridge_counts),
        tunnel_counts=dict(tunnel_counts),
    )


_SUMMARY_KEYS = ("total", "contained", "individual", "compound")


def log_metrics(crossings: List[Crossing], metrics: CrossingMetrics) -> None:
    """
    Log detailed metrics in a line-oriented key=value block.

    Args:
        crossings: Analysed crossings (for the total count)
        metrics: CrossingMetrics containing collected metrics
    """
    logger.debug("=== CROSSINGS_METRICS ===")
    logger.debug(f"total_crossings_found={len(crossings)}")
    logger.debug(f"total_bridges_found={metrics.bridge_counts.get('total', 0)}")
    logger.debug(f"total_tunnels_found={metrics.tunnel_counts.get('total', 0)}")

    for kind, counts in (("bridge", metrics.bridge_counts), ("tunnel", metrics.tunnel_counts)):
        for key, count in counts.items():
            if key not in _SUMMARY_KEYS and count > 0:
                logger.debug(f"excluded_reason[{key}][{kind}]={count}")

    logger.debug(f"contained_bridges={metrics.bridge_counts.get('contained', 0)}")
    logger.debug(f"contained_tunnels={metrics.tunnel_counts.get('contained', 0)}")
    logger.debug(
        f"final_included_individual={metrics.bridge_counts.get('individual', 0) + metrics.tunnel_counts.get('individual', 0)}"
    )
    logger.debug(
        f"final_included_compound={metrics.bridge_counts.get('compound', 0) + metrics.tunnel_counts.get('compound', 0)}"
    )
    logger.debug(
        f"final_included_total={metrics.bridge_counts.get('contained', 0) + metrics.tunnel_counts.get('contained', 0)}"
    )
    logger.debug("=== END_CROSSINGS_METRICS ===")
