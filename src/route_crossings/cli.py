#!/usr/bin/env python3
"""
Route crossing analysis tool.

Reads a GPX route and a JSON file of candidate bridges and tunnels (an
Overpass response or a list of candidate records), decides which crossings
belong to the route and prints the result.
"""

from typing import Any, Dict, List, Optional
import argparse
import json
import logging
import sys

from gpxpy import gpx

from . import __version__
from .compound import compound_display_name, compound_id, compound_route_span
from .config import CrossingsConfig, InvalidConfiguration
from .candidates import load_candidates
from .crossing import Crossing, CrossingType, ExclusionReason
from .metrics import collect_metrics, log_metrics
from .pipeline import analyze, representatives
from .route import InvalidRoute, Route

logger = logging.getLogger("route_crossings")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Find the bridges and tunnels that belong to a route",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "filename",
        type=str,
        help="GPX file to process",
    )
    parser.add_argument(
        "candidates",
        type=str,
        help="JSON file of candidate crossings (Overpass response or candidate list)",
    )
    parser.add_argument(
        "--route-buffer",
        type=float,
        default=3.0,
        help="Route buffer for containment detection in meters (default: 3.0)",
    )
    parser.add_argument(
        "--bearing-tolerance",
        type=float,
        default=20.0,
        help="Bearing alignment tolerance in degrees, 0 disables (default: 20.0)",
    )
    parser.add_argument(
        "--no-overlap-exclusion",
        action="store_true",
        help="Disable exclusion of overlapping crossings (keep all overlapping crossings)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Output structured metrics after processing",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print verdicts for every crossing as JSON instead of the listing",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"route-crossings {__version__}",
    )
    return parser


def setup_logging(level_name: str) -> None:
    """Setup logging configuration."""
    level = getattr(logging, level_name)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def print_nearby_crossings(crossings: List[Crossing]) -> None:
    """
    Print all nearby crossings (included, misaligned, and alternatives from overlap groups).

    Args:
        crossings: All analysed crossings
    """
    nearby = [
        c
        for c in representatives(crossings)
        if c.exclusion_reason != ExclusionReason.OUTSIDE_CORRIDOR
    ]

    if not nearby:
        print("No nearby crossings found")
        return

    bridge_count = tunnel_count = 0
    included_bridge_count = included_tunnel_count = 0
    for crossing in nearby:
        is_included = crossing.is_included()
        if crossing.crossing_type == CrossingType.BRIDGE:
            bridge_count += 1
            included_bridge_count += is_included
        else:
            tunnel_count += 1
            included_tunnel_count += is_included

    print(
        f"Nearby crossings ({included_bridge_count}/{bridge_count} bridges; "
        f"{included_tunnel_count}/{tunnel_count} tunnels):"
    )

    spans = {c.index: compound_route_span(c, crossings) for c in nearby}
    max_distance = max(span.end_distance / 1000 for span in spans.values())
    max_length = max(span.length / 1000 for span in spans.values())

    # Digits before the decimal point plus ".XX"
    distance_width = len(f"{max_distance:.0f}") + 3
    length_width = len(f"{max_length:.0f}") + 3

    current_overlap_group = None

    for crossing in nearby:
        span = spans[crossing.index]
        start_km = span.start_distance / 1000
        end_km = span.end_distance / 1000
        length_km = span.length / 1000

        span_info = f"{start_km:{distance_width}.2f}-{end_km:{distance_width}.2f} km ({length_km:{length_width}.2f} km)"
        annotation = "*"
        reason = ""
        if not crossing.is_included():
            annotation = "-"
            reason = f" ({crossing.exclusion_reason.value})"
        indent = "" if crossing.overlap_group is None else "  "
        if (
            current_overlap_group is not None or crossing.overlap_group is not None
        ) and current_overlap_group != crossing.overlap_group:
            current_overlap_group = crossing.overlap_group
            if current_overlap_group is not None:
                print("--- Overlapping ---" + "-" * (len(span_info) - 20))
            else:
                print("-" * len(span_info))

        print(
            f"{span_info} {annotation} {indent}{crossing.crossing_type}: "
            f"{compound_display_name(crossing, crossings)}{reason}"
        )


def verdicts(crossings: List[Crossing]) -> List[Dict[str, Any]]:
    """Serializable verdict records, one per crossing, in input order."""
    records = []
    for crossing in crossings:
        span = crossing.route_span
        records.append(
            {
                "id": crossing.id,
                "kind": crossing.crossing_type.value,
                "name": crossing.get_display_name(),
                "exclusion_reason": crossing.exclusion_reason.value,
                "route_span": None
                if span is None
                else {"start": span.start_distance, "end": span.end_distance},
                "compound_id": compound_id(crossing, crossings)
                if crossing.compound_group is not None
                else None,
                "representative": crossing.is_representative(),
                "overlap_group": None
                if crossing.overlap_group is None
                else [crossings[i].id for i in crossing.overlap_group],
            }
        )
    return records


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parses command-line arguments, loads the route and candidates,
    runs the analysis and prints the result.

    Returns:
        Process exit code
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    config = CrossingsConfig.from_args(args)

    try:
        config.validate()
    except InvalidConfiguration as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    try:
        route = Route.from_file(args.filename)
    except FileNotFoundError:
        logger.error(f"GPX file not found: {args.filename}")
        return 1
    except PermissionError:
        logger.error(f"Cannot read GPX file (permission denied): {args.filename}")
        return 1
    except gpx.GPXException as e:
        logger.error(f"Invalid GPX file: {e}")
        return 1
    except InvalidRoute as e:
        logger.error(f"Invalid route: {e}")
        return 1
    logger.info(f"Loaded GPX route with {len(route)} points")
    logger.info(f"Total route distance: {route.length / 1000:.2f} km")

    try:
        crossings = load_candidates(args.candidates)
    except FileNotFoundError:
        logger.error(f"Candidate file not found: {args.candidates}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid candidate file: {e}")
        return 1
    logger.info(f"Loaded {len(crossings)} candidate crossings")

    analyze(route, crossings, config)

    if args.json:
        print(json.dumps(verdicts(crossings), indent=2))
    else:
        print_nearby_crossings(crossings)

    if config.metrics:
        log_metrics(crossings, collect_metrics(crossings))

    return 0


if __name__ == "__main__":
    sys.exit(main())
