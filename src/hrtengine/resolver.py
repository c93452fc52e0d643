# src/hrtengine/resolver.py
from __future__ import annotations

from . import parameters as P
from .types import DoseEvent, DoseExtras, PKParams, Route


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def resolve_sublingual_theta(extras: DoseExtras) -> float:
    """
    Fast (mucosal) fraction θ of a sublingual dose.

    Priority: explicit θ (clamped to [0,1]), then the tier code, then the
    standard tier.
    """
    if extras.sublingual_theta is not None:
        return _clamp01(extras.sublingual_theta)
    if extras.sublingual_tier is not None:
        tier = P.SublingualTier.from_code(extras.sublingual_tier)
        return _clamp01(P.SUBLINGUAL_THETA.get(tier, P.DEFAULT_SUBLINGUAL_THETA))
    return P.DEFAULT_SUBLINGUAL_THETA


def resolve(event: DoseEvent, body_weight_kg: float) -> PKParams:
    """
    Map one dose to its PK parameter bundle.

    Never fails: missing table rows fall back to the defaults documented in
    `parameters`. Body weight only sets the distribution volume in the
    engine; no route scales its rates by it.
    """
    route = event.route
    ester = event.ester
    k3 = P.K_CLEAR_INJECTION if route is Route.INJECTION else P.K_CLEAR

    if route is Route.INJECTION:
        k1_fast = P.lookup(P.K1_FAST, ester) * P.DEPOT_K1_CORR
        k1_slow = P.lookup(P.K1_SLOW, ester) * P.DEPOT_K1_CORR
        frac_fast = P.lookup(P.FRAC_FAST, ester, P.DEFAULT_FRAC_FAST)
        F = P.lookup(P.FORMATION_FRACTION, ester, P.DEFAULT_FORMATION_FRACTION) * ester.to_e2_factor
        return PKParams(frac_fast=frac_fast, k1_fast=k1_fast, k1_slow=k1_slow,
                        k2=P.lookup(P.K2, ester), k3=k3, F=F, rate_mg_h=0.0,
                        F_fast=F, F_slow=F)

    if route is Route.PATCH_APPLY:
        release = event.extras.release_rate_ug_per_day
        if release is not None:
            # zero-order: constant release straight into the skin
            rate = release * P.UG_PER_DAY_TO_MG_PER_H
            return PKParams(frac_fast=1.0, k1_fast=0.0, k1_slow=0.0, k2=0.0, k3=k3,
                            F=1.0, rate_mg_h=rate, F_fast=1.0, F_slow=1.0)
        return PKParams(frac_fast=1.0, k1_fast=P.PATCH_K1, k1_slow=0.0, k2=0.0, k3=k3,
                        F=1.0, rate_mg_h=0.0, F_fast=1.0, F_slow=1.0)

    if route is Route.PATCH_REMOVE:
        return PKParams.zero(k3)

    if route is Route.GEL:
        area = event.extras.area_cm2
        if area is None:
            area = P.GEL_DEFAULT_AREA_CM2
        k1, F = P.gel_parameters(event.dose_mg, area)
        return PKParams(frac_fast=1.0, k1_fast=k1, k1_slow=0.0, k2=0.0, k3=k3,
                        F=F, rate_mg_h=0.0, F_fast=F, F_slow=F)

    if route is Route.ORAL:
        F = P.ORAL_BIOAVAILABILITY
        return PKParams(frac_fast=1.0, k1_fast=P.oral_k_abs(ester), k1_slow=0.0,
                        k2=P.oral_k2(ester), k3=k3, F=F, rate_mg_h=0.0,
                        F_fast=F, F_slow=F)

    if route is Route.SUBLINGUAL:
        # Fast branch is mucosal (dose already in E2 units, F = 1); the
        # swallowed remainder behaves like an oral tablet.
        theta = resolve_sublingual_theta(event.extras)
        return PKParams(frac_fast=theta, k1_fast=P.SUBLINGUAL_K_ABS,
                        k1_slow=P.oral_k_abs(ester), k2=P.oral_k2(ester), k3=k3,
                        F=1.0, rate_mg_h=0.0,
                        F_fast=1.0, F_slow=P.ORAL_BIOAVAILABILITY)

    # Unreachable for a valid Route; stay total anyway.
    return PKParams.zero(k3)
