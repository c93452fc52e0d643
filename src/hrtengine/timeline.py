# src/hrtengine/timeline.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Sequence

from .helpers import sort_events
from .simulate import DEFAULT_BODY_WEIGHT_KG, DEFAULT_STEPS, default_window
from .solvers import simulate_events
from .types import DoseEvent, SimulationResult, datetime_to_hours

logger = logging.getLogger(__name__)


class DoseTimeline:
    """
    The user's dose history plus the latest simulation of it.

    Any edit or weight change makes the current result stale; callers either
    call `run()` directly or, when simulating in the background, pair
    `begin_run()` with `publish()` so that a run started before a newer edit
    is dropped instead of overwriting the newer result.
    """

    def __init__(self, events: Sequence[DoseEvent] = (),
                 body_weight_kg: float = DEFAULT_BODY_WEIGHT_KG,
                 n_steps: int = DEFAULT_STEPS,
                 on_change: Optional[Callable[[list[DoseEvent]], None]] = None):
        self._events: list[DoseEvent] = sort_events(events)
        self._body_weight_kg = float(body_weight_kg)
        self.n_steps = n_steps
        self.on_change = on_change
        self.result: Optional[SimulationResult] = None
        self._generation = 0

    @property
    def events(self) -> list[DoseEvent]:
        return list(self._events)

    @property
    def body_weight_kg(self) -> float:
        return self._body_weight_kg

    @property
    def generation(self) -> int:
        return self._generation

    # --------------------------
    # Edits
    # --------------------------
    def save(self, event: DoseEvent) -> None:
        """Replace the event with the same id, or add it in time order."""
        for i, existing in enumerate(self._events):
            if existing.id == event.id:
                self._events[i] = event
                break
        else:
            self._events.append(event)
        # an edit may move the event in time
        self._events = sort_events(self._events)
        self._changed()

    def remove(self, event_id: str) -> bool:
        before = len(self._events)
        self._events = [e for e in self._events if e.id != event_id]
        if len(self._events) == before:
            return False
        self._changed()
        return True

    def set_body_weight(self, body_weight_kg: float) -> None:
        if body_weight_kg == self._body_weight_kg:
            return
        self._body_weight_kg = float(body_weight_kg)
        self._generation += 1

    def _changed(self) -> None:
        self._generation += 1
        if self.on_change is not None:
            self.on_change(self.events)

    # --------------------------
    # Simulation
    # --------------------------
    def begin_run(self) -> tuple[int, list[DoseEvent], float]:
        """Snapshot for a (possibly background) run: (generation, events, weight)."""
        return self._generation, self.events, self._body_weight_kg

    def compute(self, events: Sequence[DoseEvent], body_weight_kg: float) -> Optional[SimulationResult]:
        window = default_window(events)
        if window is None:
            return None
        start_h, end_h = window
        return simulate_events(events, body_weight_kg, start_h, end_h, self.n_steps)

    def publish(self, generation: int, result: Optional[SimulationResult]) -> bool:
        """Store `result` unless the inputs changed after its snapshot was taken."""
        if generation != self._generation:
            logger.debug("dropping superseded result (generation %d, current %d)",
                         generation, self._generation)
            return False
        self.result = result
        return True

    def run(self) -> Optional[SimulationResult]:
        """Recompute from scratch and return the new result (None without events)."""
        generation, events, weight = self.begin_run()
        result = self.compute(events, weight)
        self.publish(generation, result)
        logger.debug("timeline run: %d events, weight %.1f kg", len(events), weight)
        return self.result

    def concentration_at(self, when: datetime | float) -> Optional[float]:
        """Concentration of the current result at a datetime or absolute hour."""
        if self.result is None:
            return None
        hour = datetime_to_hours(when) if isinstance(when, datetime) else float(when)
        return self.result.concentration(hour)
