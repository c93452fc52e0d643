# src/hrtengine/models/event_model.py
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Sequence

import numpy as np

from ..helpers import patch_wear_hours
from ..resolver import resolve
from ..types import DoseEvent, PKParams, Route
from . import compartments


class ModelKind(Enum):
    INJECTION = auto()
    ONE_COMPARTMENT = auto()
    DUAL_PATH = auto()
    DUAL_PATH_HYDROLYSIS = auto()
    PATCH = auto()
    ZERO = auto()


@dataclass(frozen=True)
class EventModel:
    """
    One dose bound to its resolved parameters.

    kind     : which closed-form family evaluates this dose
    start_h  : absolute dose time; the amount is 0 before it
    dose_mg  : E2-equivalent dose
    params   : resolved PK parameters
    wear_h   : patch wear duration (inf when never removed, unused otherwise)
    """
    kind: ModelKind
    start_h: float
    dose_mg: float
    params: PKParams
    wear_h: float = math.inf

    @classmethod
    def build(cls, event: DoseEvent, all_events: Sequence[DoseEvent],
              body_weight_kg: float) -> "EventModel":
        params = resolve(event, body_weight_kg)
        route = event.route
        wear_h = math.inf

        if route is Route.INJECTION:
            kind = ModelKind.INJECTION
        elif route in (Route.GEL, Route.ORAL):
            kind = ModelKind.ONE_COMPARTMENT
        elif route is Route.SUBLINGUAL:
            kind = ModelKind.DUAL_PATH_HYDROLYSIS if params.k2 > 0 else ModelKind.DUAL_PATH
        elif route is Route.PATCH_APPLY:
            kind = ModelKind.PATCH
            wear_h = patch_wear_hours(event, all_events)
        else:
            kind = ModelKind.ZERO

        return cls(kind=kind, start_h=float(event.time_h), dose_mg=float(event.dose_mg),
                   params=params, wear_h=wear_h)

    @property
    def contributes(self) -> bool:
        """False when this dose can never add any drug (zero dose, no infusion)."""
        if self.kind is ModelKind.ZERO:
            return False
        return self.dose_mg > 0 or self.params.is_zero_order

    def amount(self, time_h):
        """Amount of free E2 (mg) contributed at absolute time(s) `time_h`."""
        tau = np.asarray(time_h, dtype=float) - self.start_h
        out = evaluate(self, tau)
        return float(out) if out.ndim == 0 else out


def evaluate(model: EventModel, tau) -> np.ndarray:
    """Dispatch on the model kind; `tau` is time since the dose."""
    kind, p, dose = model.kind, model.params, model.dose_mg

    if kind is ModelKind.INJECTION:
        return compartments.injection_amount(tau, dose, p)
    if kind is ModelKind.ONE_COMPARTMENT:
        # single-path routes carry their absorption rate in k1_fast
        return compartments.one_compartment_amount(tau, dose, p.F, p.k1_fast, p.k3)
    if kind is ModelKind.DUAL_PATH:
        return compartments.dual_path_amount(tau, dose, p)
    if kind is ModelKind.DUAL_PATH_HYDROLYSIS:
        return compartments.dual_path_hydrolysis_amount(tau, dose, p)
    if kind is ModelKind.PATCH:
        return compartments.patch_amount(tau, dose, model.wear_h, p)
    return np.zeros_like(np.asarray(tau, dtype=float))
