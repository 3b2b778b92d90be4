from dataclasses import dataclass
import argparse
import math


class InvalidConfiguration(ValueError):
    """Raised when analysis settings are out of range."""


@dataclass
class CrossingsConfig:
    """Configuration for a crossing analysis run."""

    route_buffer: float = 3.0
    bearing_tolerance: float = 20.0
    overlap_exclusion: bool = True
    log_level: str = "WARNING"
    metrics: bool = False

    def validate(self) -> None:
        """
        Check the numeric settings before any crossing is processed.

        Raises:
            InvalidConfiguration: If the buffer or tolerance is negative or not finite.
        """
        if not math.isfinite(self.route_buffer) or self.route_buffer < 0:
            raise InvalidConfiguration(
                f"Route buffer must be a non-negative distance, got {self.route_buffer} meters"
            )
        if not math.isfinite(self.bearing_tolerance) or self.bearing_tolerance < 0:
            raise InvalidConfiguration(
                f"Bearing tolerance must be a non-negative angle, got {self.bearing_tolerance}°"
            )

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "CrossingsConfig":
        return cls(
            route_buffer=args.route_buffer,
            bearing_tolerance=args.bearing_tolerance,
            overlap_exclusion=not args.no_overlap_exclusion,
            log_level=args.log_level,
            metrics=args.metrics,
        )
