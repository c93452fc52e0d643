# src/hrtengine/simulate.py
from typing import Optional, Sequence

from .helpers import event_span
from .solvers import simulate_events
from .types import DoseEvent, SimulationResult

DEFAULT_STEPS = 1000
DEFAULT_LEAD_H = 24.0            # plot from one day before the first dose
DEFAULT_TAIL_H = 14 * 24.0       # ... to two weeks after the last one
DEFAULT_BODY_WEIGHT_KG = 70.0


def default_window(events: Sequence[DoseEvent],
                   lead_h: float = DEFAULT_LEAD_H,
                   tail_h: float = DEFAULT_TAIL_H) -> Optional[tuple[float, float]]:
    """(start_h, end_h) around the events, or None when there are none."""
    span = event_span(events)
    if span is None:
        return None
    first, last = span
    return first - lead_h, last + tail_h


def run_events(events: Sequence[DoseEvent], body_weight_kg: float = DEFAULT_BODY_WEIGHT_KG,
               start_h: Optional[float] = None, end_h: Optional[float] = None,
               n_steps: int = DEFAULT_STEPS) -> SimulationResult:
    """
    High-level wrapper: simulate `events`, choosing the default window for
    any bound that is not given.
    """
    window = default_window(events)
    if window is None and (start_h is None or end_h is None):
        return SimulationResult.empty()
    if start_h is None:
        start_h = window[0]
    if end_h is None:
        end_h = window[1]
    return simulate_events(events, body_weight_kg, start_h, end_h, n_steps)
