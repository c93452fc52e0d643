# src/hrtengine/solvers.py
import logging
from typing import Sequence

import numpy as np

from . import parameters as P
from .models.event_model import EventModel
from .types import DoseEvent, Route, SimulationResult

logger = logging.getLogger(__name__)

ML_PER_L = 1000.0
MG_TO_PG = 1e9


def build_event_models(events: Sequence[DoseEvent], body_weight_kg: float) -> list[EventModel]:
    """
    One model per dose. Patch removals only bound the wear time of their
    patch, so they get no model of their own.
    """
    return [EventModel.build(e, events, body_weight_kg)
            for e in events if e.route is not Route.PATCH_REMOVE]


def distribution_volume_ml(body_weight_kg: float) -> float:
    return P.VD_PER_KG * body_weight_kg * ML_PER_L


def simulate_events(events: Sequence[DoseEvent], body_weight_kg: float,
                    start_h: float, end_h: float, n_steps: int) -> SimulationResult:
    """
    Plasma E2 concentration on a uniform grid by superposition of closed-form
    single-dose solutions.

    Parameters
    ----------
    events : sequence of DoseEvent
        Doses in any order.
    body_weight_kg : float
        Sets the distribution volume (VD_PER_KG * weight).
    start_h, end_h : float
        Absolute window in hours; both ends are sampled.
    n_steps : int
        Number of grid points.

    Returns
    -------
    SimulationResult
        Concentration in pg/mL and trapezoidal AUC. Degenerate input
        (empty window, fewer than 2 steps, non-positive volume, nothing that
        delivers any drug) gives an empty result instead of an error.
    """
    models = build_event_models(events, body_weight_kg)
    if not any(m.contributes for m in models):
        logger.debug("no dose delivers any drug; returning an empty result")
        return SimulationResult.empty()
    return simulate_models(models, body_weight_kg, start_h, end_h, n_steps)


def simulate_models(models: Sequence[EventModel], body_weight_kg: float,
                    start_h: float, end_h: float, n_steps: int) -> SimulationResult:
    """Same as `simulate_events` for already-built dose models."""
    volume_ml = distribution_volume_ml(body_weight_kg)
    if not (start_h < end_h) or n_steps <= 1 or not (volume_ml > 0):
        logger.warning("empty simulation: window=(%s, %s) steps=%s volume_ml=%s",
                       start_h, end_h, n_steps, volume_ml)
        return SimulationResult.empty()

    t = np.linspace(start_h, end_h, int(n_steps))
    logger.debug("simulating %d dose models on %d samples", len(models), t.size)

    # Doses do not interact, so contributions simply add up.
    amount_mg = np.zeros_like(t)
    for model in models:
        amount_mg += model.amount(t)

    conc = amount_mg * MG_TO_PG / volume_ml
    # the analytic sums can round to tiny negatives right at a dose time
    conc = np.maximum(conc, 0.0)
    auc = float(np.sum(0.5 * (conc[1:] + conc[:-1]) * np.diff(t)))
    return SimulationResult(time_h=t, conc_pg_ml=conc, auc=auc)
