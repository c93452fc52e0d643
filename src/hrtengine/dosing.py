# src/hrtengine/dosing.py
from __future__ import annotations

from typing import Optional

import numpy as np

from .parameters import SublingualTier
from .types import DoseEvent, DoseExtras, Ester, Route

INJECTABLE_ESTERS = (Ester.EB, Ester.EV, Ester.EC, Ester.EN)
ORAL_ESTERS = (Ester.E2, Ester.EV)


def ester_to_e2_equivalent(ester_mg: float, ester: Ester) -> float:
    """Mass of ester (e.g. 5 mg EV as printed on the vial) -> E2-equivalent mg."""
    _validate_non_negative("ester_mg", ester_mg)
    return float(ester_mg) * ester.to_e2_factor


def e2_equivalent_to_ester(e2_mg: float, ester: Ester) -> float:
    """E2-equivalent mg -> mass of the ester."""
    _validate_non_negative("e2_mg", e2_mg)
    return float(e2_mg) / ester.to_e2_factor


def injection(dose_mg: float, time_h: float, ester: Ester = Ester.EV) -> DoseEvent:
    """
    Oil depot injection.
    dose_mg : E2-equivalent mg (use ester_to_e2_equivalent for vial amounts)
    """
    _validate_zero_or_positive("dose_mg", dose_mg)
    if ester not in INJECTABLE_ESTERS:
        raise ValueError(f"{ester.abbreviation} is not an injectable ester.")
    return DoseEvent(route=Route.INJECTION, time_h=float(time_h), dose_mg=float(dose_mg), ester=ester)


def patch_apply(time_h: float, dose_mg: float = 0.0,
                release_rate_ug_per_day: Optional[float] = None) -> DoseEvent:
    """
    Apply a transdermal patch.
      - with release_rate_ug_per_day (e.g. 50 µg/day): zero-order release, dose_mg is ignored
      - otherwise: first-order release of the dose_mg reservoir
    """
    _validate_zero_or_positive("dose_mg", dose_mg)
    extras = DoseExtras()
    if release_rate_ug_per_day is not None:
        _validate_positive("release_rate_ug_per_day", release_rate_ug_per_day)
        extras = DoseExtras(release_rate_ug_per_day=float(release_rate_ug_per_day))
    return DoseEvent(route=Route.PATCH_APPLY, time_h=float(time_h), dose_mg=float(dose_mg),
                     ester=Ester.E2, extras=extras)


def patch_remove(time_h: float) -> DoseEvent:
    return DoseEvent(route=Route.PATCH_REMOVE, time_h=float(time_h), dose_mg=0.0, ester=Ester.E2)


def gel(dose_mg: float, time_h: float, area_cm2: Optional[float] = None) -> DoseEvent:
    _validate_zero_or_positive("dose_mg", dose_mg)
    extras = DoseExtras()
    if area_cm2 is not None:
        _validate_positive("area_cm2", area_cm2)
        extras = DoseExtras(area_cm2=float(area_cm2))
    return DoseEvent(route=Route.GEL, time_h=float(time_h), dose_mg=float(dose_mg),
                     ester=Ester.E2, extras=extras)


def oral(dose_mg: float, time_h: float, ester: Ester = Ester.E2) -> DoseEvent:
    _validate_zero_or_positive("dose_mg", dose_mg)
    _validate_oral_ester(ester)
    return DoseEvent(route=Route.ORAL, time_h=float(time_h), dose_mg=float(dose_mg), ester=ester)


def sublingual(dose_mg: float, time_h: float, ester: Ester = Ester.E2,
               tier: SublingualTier | int | None = SublingualTier.STANDARD,
               theta: Optional[float] = None) -> DoseEvent:
    """
    Tablet held under the tongue.
    tier  : how long it was held (quick/casual/standard/strict or 0..3)
    theta : explicit mucosal fraction in [0, 1]; takes precedence over tier
    """
    _validate_zero_or_positive("dose_mg", dose_mg)
    _validate_oral_ester(ester)
    if theta is not None:
        if not (0.0 <= theta <= 1.0):
            raise ValueError(f"theta must be within [0, 1] (got {theta}).")
        extras = DoseExtras(sublingual_theta=float(theta))
    elif tier is not None:
        code = tier.value if isinstance(tier, SublingualTier) else SublingualTier(int(tier)).value
        extras = DoseExtras(sublingual_tier=float(code))
    else:
        extras = DoseExtras()
    return DoseEvent(route=Route.SUBLINGUAL, time_h=float(time_h), dose_mg=float(dose_mg),
                     ester=ester, extras=extras)


def every_n_days(dose_mg: float, every_days: float, count: int, route: Route = Route.INJECTION,
                 ester: Ester = Ester.EV, start_h: float = 0.0) -> list[DoseEvent]:
    """
    Repeated schedule, e.g. 5 mg EV every 7 days, 8 doses.
    Only routes that are a single dose each time are accepted.
    """
    _validate_positive("every_days", every_days)
    _validate_positive_int("count", count)
    times_h = float(start_h) + np.arange(count, dtype=float) * every_days * 24.0

    if route is Route.INJECTION:
        return [injection(dose_mg, t, ester) for t in times_h]
    if route is Route.ORAL:
        return [oral(dose_mg, t, ester) for t in times_h]
    if route is Route.SUBLINGUAL:
        return [sublingual(dose_mg, t, ester) for t in times_h]
    if route is Route.GEL:
        return [gel(dose_mg, t) for t in times_h]
    raise ValueError(f"every_n_days does not support route '{route.value}'.")


# --------------------------
# Small input validators
# --------------------------
def _validate_positive(name: str, x: float) -> None:
    if not (x > 0):
        raise ValueError(f"{name} must be > 0 (got {x}).")

def _validate_zero_or_positive(name: str, x: float) -> None:
    if not (x >= 0):
        raise ValueError(f"{name} must be >= 0 (got {x}).")

def _validate_non_negative(name: str, x: float) -> None:
    if x < 0:
        raise ValueError(f"{name} must be >= 0 (got {x}).")

def _validate_positive_int(name: str, x: int) -> None:
    if not (isinstance(x, int) and x > 0):
        raise ValueError(f"{name} must be a positive integer (got {x}).")

def _validate_oral_ester(ester: Ester) -> None:
    if ester not in ORAL_ESTERS:
        raise ValueError(f"{ester.abbreviation} is not available as a tablet.")
