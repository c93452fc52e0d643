# src/hrtengine/types.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields, replace as dc_replace
from datetime import datetime, timezone
from enum import Enum
from typing import Mapping, Optional

import numpy as np

# We keep *all* time in HOURS internally, counted from the Unix epoch.
E2_MOLECULAR_WEIGHT = 272.38  # g/mol


class Route(Enum):
    INJECTION = "injection"
    PATCH_APPLY = "patch-apply"
    PATCH_REMOVE = "patch-remove"
    GEL = "gel"
    ORAL = "oral"
    SUBLINGUAL = "sublingual"


class Ester(Enum):
    """
    Drug variant of a dose. Doses are always entered as E2-equivalent mass;
    the molecular weight is only needed to go back and forth to ester mass.
    """
    E2 = ("E2", "Estradiol", 272.38)
    EB = ("EB", "Estradiol Benzoate", 376.50)   # C25H28O2
    EV = ("EV", "Estradiol Valerate", 356.50)   # C23H32O3
    EC = ("EC", "Estradiol Cypionate", 396.58)  # C26H36O3
    EN = ("EN", "Estradiol Enanthate", 384.56)  # C25H36O3

    def __init__(self, abbreviation: str, full_name: str, molecular_weight: float):
        self.abbreviation = abbreviation
        self.full_name = full_name
        self.molecular_weight = molecular_weight

    @property
    def to_e2_factor(self) -> float:
        """Mass conversion factor from this ester to free estradiol."""
        if self is Ester.E2:
            return 1.0
        return E2_MOLECULAR_WEIGHT / self.molecular_weight

    @classmethod
    def from_abbreviation(cls, abbr: str) -> "Ester":
        for ester in cls:
            if ester.abbreviation == abbr.upper():
                return ester
        raise ValueError(f"Unknown ester '{abbr}'.")


# Keys accepted in a plain extras mapping, and the field each one fills.
EXTRA_KEYS = {
    "release-rate": "release_rate_ug_per_day",
    "area": "area_cm2",
    "explicit-fraction": "sublingual_theta",
    "tier-code": "sublingual_tier",
}


@dataclass(frozen=True)
class DoseExtras:
    """
    Optional per-route inputs of a dose.

    release_rate_ug_per_day : patch-apply, constant release (µg/day) -> zero-order model
    area_cm2                : gel, application area (cm²)
    sublingual_theta        : sublingual, explicit fast-path fraction θ (clamped to [0,1])
    sublingual_tier         : sublingual, tier code 0..3 (quick/casual/standard/strict)

    If both sublingual fields are set, the explicit θ wins.
    """
    release_rate_ug_per_day: Optional[float] = None
    area_cm2: Optional[float] = None
    sublingual_theta: Optional[float] = None
    sublingual_tier: Optional[float] = None

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, float] | None) -> "DoseExtras":
        """Build extras from the serialized key -> value form; unknown keys are ignored."""
        if not mapping:
            return cls()
        values = {}
        for key, raw in mapping.items():
            name = EXTRA_KEYS.get(key)
            if name is None or raw is None:
                continue
            try:
                values[name] = float(raw)
            except (TypeError, ValueError):
                raise ValueError(f"extras['{key}'] must be numeric (got {raw!r}).") from None
        return cls(**values)

    def to_mapping(self) -> dict[str, float]:
        names = {v: k for k, v in EXTRA_KEYS.items()}
        return {names[f.name]: getattr(self, f.name)
                for f in fields(self) if getattr(self, f.name) is not None}


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, eq=False)
class DoseEvent:
    """
    A single administration (or a patch removal).

    route   : how the dose is given
    time_h  : absolute time of the event, hours since 1970-01-01 UTC
    dose_mg : dose as E2-equivalent milligrams (0 is valid, e.g. patch removal)
    ester   : drug variant, selects the parameter-table row
    extras  : optional route-specific inputs
    id      : opaque identifier, kept across edits
    """
    route: Route
    time_h: float
    dose_mg: float
    ester: Ester = Ester.E2
    extras: DoseExtras = field(default_factory=DoseExtras)
    id: str = field(default_factory=_new_id)

    # Two events are "the same event" when they share an id, even after an edit.
    def __eq__(self, other):
        if not isinstance(other, DoseEvent):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    @classmethod
    def at(cls, when: datetime, route: Route, dose_mg: float,
           ester: Ester = Ester.E2, extras: DoseExtras | None = None) -> "DoseEvent":
        """Create an event from a datetime (naive values are taken as UTC)."""
        return cls(route=route, time_h=datetime_to_hours(when), dose_mg=float(dose_mg),
                   ester=ester, extras=extras or DoseExtras())

    @property
    def when(self) -> datetime:
        return hours_to_datetime(self.time_h)

    def replace(self, **changes) -> "DoseEvent":
        """Edited copy with the same id."""
        changes.pop("id", None)
        return dc_replace(self, **changes)


def datetime_to_hours(when: datetime) -> float:
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.timestamp() / 3600.0


def hours_to_datetime(hours: float) -> datetime:
    return datetime.fromtimestamp(hours * 3600.0, tz=timezone.utc)


@dataclass(frozen=True)
class PKParams:
    """
    Route-independent parameter bundle (all rates in 1/h).

    frac_fast       : share of the dose in the fast absorption path (0..1)
    k1_fast, k1_slow: first-order absorption rates of the two paths
    k2              : ester hydrolysis rate (0 when the dose needs none)
    k3              : elimination rate of free E2
    F               : systemic availability of single-path routes
    rate_mg_h       : zero-order input rate (patch); 0 otherwise
    F_fast, F_slow  : systemic availability of each path
    """
    frac_fast: float
    k1_fast: float
    k1_slow: float
    k2: float
    k3: float
    F: float
    rate_mg_h: float
    F_fast: float
    F_slow: float

    @classmethod
    def zero(cls, k3: float) -> "PKParams":
        return cls(frac_fast=0.0, k1_fast=0.0, k1_slow=0.0, k2=0.0, k3=k3,
                   F=0.0, rate_mg_h=0.0, F_fast=0.0, F_slow=0.0)

    @property
    def is_zero_order(self) -> bool:
        return self.rate_mg_h > 0


@dataclass(frozen=True, eq=False)
class SimulationResult:
    """
    Output of one engine run.

    time_h     : strictly increasing sample times (h)
    conc_pg_ml : plasma E2 concentration at each sample (pg/mL)
    auc        : trapezoidal area under the curve (pg·h/mL)
    """
    time_h: np.ndarray
    conc_pg_ml: np.ndarray
    auc: float = 0.0

    @classmethod
    def empty(cls) -> "SimulationResult":
        return cls(time_h=np.empty(0), conc_pg_ml=np.empty(0), auc=0.0)

    def __eq__(self, other):
        if not isinstance(other, SimulationResult):
            return NotImplemented
        return (np.array_equal(self.time_h, other.time_h)
                and np.array_equal(self.conc_pg_ml, other.conc_pg_ml)
                and self.auc == other.auc)

    __hash__ = None

    def __len__(self):
        return len(self.time_h)

    @property
    def is_empty(self) -> bool:
        return len(self.time_h) == 0

    def concentration(self, at_h: float) -> Optional[float]:
        """
        Concentration (pg/mL) at an absolute hour.

        Queries outside the sampled range are clamped to the first/last sample;
        inside it we linearly interpolate between the bracketing samples.
        Returns None when there is no (consistent) data.
        """
        t, c = self.time_h, self.conc_pg_ml
        if len(t) == 0 or len(t) != len(c):
            return None
        # np.interp clamps to the edge samples and is exact at sample times
        return float(np.interp(at_h, t, c))

    def concentration_at(self, when: datetime) -> Optional[float]:
        return self.concentration(datetime_to_hours(when))
