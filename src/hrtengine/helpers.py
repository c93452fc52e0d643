import math
from typing import Iterable, Optional, Sequence

from .types import DoseEvent, Route


def sort_events(events: Iterable[DoseEvent]) -> list[DoseEvent]:
    """
    Events ordered by time (ties keep their input order).
    """
    return sorted(events, key=lambda e: e.time_h)


def matching_patch_removal(apply: DoseEvent, events: Sequence[DoseEvent]) -> Optional[DoseEvent]:
    """
    The earliest patch removal strictly after `apply`, or None.
    `events` may be in any order.
    """
    removals = [e for e in events
                if e.route is Route.PATCH_REMOVE and e.time_h > apply.time_h]
    if not removals:
        return None
    return min(removals, key=lambda e: e.time_h)


def patch_wear_hours(apply: DoseEvent, events: Sequence[DoseEvent]) -> float:
    """Hours the patch stays on; math.inf when it is never removed."""
    removal = matching_patch_removal(apply, events)
    if removal is None:
        return math.inf
    return removal.time_h - apply.time_h


def event_span(events: Sequence[DoseEvent]) -> Optional[tuple[float, float]]:
    """(earliest, latest) event time in hours, or None for no events."""
    if not events:
        return None
    times = [e.time_h for e in events]
    return min(times), max(times)
