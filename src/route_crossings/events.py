"""
Structured analysis events.

Stages report their decisions through an optional hook instead of printing,
so callers can record, count or display them.
"""

from typing import Any, Callable, Dict, NamedTuple, Optional

from .crossing import CrossingId


class PipelineEvent(NamedTuple):
    """A single decision or summary reported by an analysis stage."""

    stage: str
    action: str
    crossing_id: Optional[CrossingId] = None
    data: Dict[str, Any] = {}


EventHook = Callable[[PipelineEvent], None]


def emit(
    on_event: Optional[EventHook],
    stage: str,
    action: str,
    crossing_id: Optional[CrossingId] = None,
    **data: Any,
) -> None:
    """Send an event to the hook, if one is installed."""
    if on_event is not None:
        on_event(PipelineEvent(stage, action, crossing_id, data))
