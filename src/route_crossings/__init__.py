#!/usr/bin/env python3
"""
Route crossings - decide which bridges and tunnels belong to a route.

This package filters candidate bridge and tunnel features against a route:
corridor containment, route span projection, compound structure detection,
bearing alignment and overlap resolution.
"""
import importlib.metadata

__version__ = importlib.metadata.version("route-crossings")

# Import main classes for public API
from .config import CrossingsConfig, InvalidConfiguration
from .crossing import Crossing, CrossingType, ExclusionReason, RouteSpan
from .events import PipelineEvent
from .geometry import Position
from .pipeline import analyze, analyze_points, representatives
from .route import InvalidRoute, Route

__all__ = [
    "Crossing",
    "CrossingType",
    "CrossingsConfig",
    "ExclusionReason",
    "InvalidConfiguration",
    "InvalidRoute",
    "PipelineEvent",
    "Position",
    "Route",
    "RouteSpan",
    "analyze",
    "analyze_points",
    "representatives",
]
