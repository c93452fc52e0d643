# src/hrtengine/models/compartments.py
"""
Closed-form amount of free E2 in the central compartment after one dose.

Every function takes elapsed time since the dose `tau` (hours, scalar or
array) and returns an array of the same shape in mg. Amounts before the dose
(tau < 0) are 0. Rates are in 1/h.
"""
import math

import numpy as np

from ..types import PKParams

# Two rate constants closer than this are treated as equal.
RATE_TOL = 1e-9


def _elapsed(tau):
    """(tau as float array, mask of samples at or after the dose, tau clipped at 0)."""
    tau = np.asarray(tau, dtype=float)
    after = tau >= 0.0
    return tau, after, np.where(after, tau, 0.0)


def three_stage_amount(tau, dose_mg: float, F: float, k1: float, k2: float, k3: float) -> np.ndarray:
    """
    Absorption -> hydrolysis -> elimination chain (k1 -> k2 -> k3).

      A(τ) = D·F·k1·k2 · [ e^(-k1τ)/((k1-k2)(k1-k3))
                         + e^(-k2τ)/((k2-k1)(k2-k3))
                         + e^(-k3τ)/((k1-k3)(k2-k3)) ]

    Requires three distinct rates. If any two are within RATE_TOL the chain
    contributes 0 (no repeated-root form is implemented).
    """
    tau, after, t = _elapsed(tau)
    if k1 <= 0 or dose_mg <= 0:
        return np.zeros_like(tau)

    k1_k2 = k1 - k2
    k1_k3 = k1 - k3
    k2_k3 = k2 - k3
    if abs(k1_k2) < RATE_TOL or abs(k1_k3) < RATE_TOL or abs(k2_k3) < RATE_TOL:
        return np.zeros_like(tau)

    term1 = np.exp(-k1 * t) / (k1_k2 * k1_k3)
    term2 = np.exp(-k2 * t) / (-k1_k2 * k2_k3)
    term3 = np.exp(-k3 * t) / (k1_k3 * k2_k3)
    amount = dose_mg * F * k1 * k2 * (term1 + term2 + term3)
    return np.where(after, amount, 0.0)


def one_compartment_amount(tau, dose_mg: float, F: float, ka: float, ke: float) -> np.ndarray:
    """
    First-order absorption into one compartment with first-order elimination.

      A(τ) = D·F·ka/(ka-ke) · (e^(-ke·τ) - e^(-ka·τ))

    and the limit D·F·ka·τ·e^(-ke·τ) when ka ≈ ke.
    """
    tau, after, t = _elapsed(tau)
    if abs(ka - ke) < RATE_TOL:
        amount = dose_mg * F * ka * t * np.exp(-ke * t)
    else:
        amount = dose_mg * F * ka / (ka - ke) * (np.exp(-ke * t) - np.exp(-ka * t))
    return np.where(after, amount, 0.0)


def _split(dose_mg: float, frac_fast: float) -> tuple[float, float]:
    f = max(0.0, min(1.0, frac_fast))
    return dose_mg * f, dose_mg * (1.0 - f)


def dual_path_amount(tau, dose_mg: float, p: PKParams) -> np.ndarray:
    """Two parallel first-order absorption paths, no hydrolysis (e.g. E2 sublingual)."""
    if dose_mg <= 0:
        return np.zeros_like(np.asarray(tau, dtype=float))
    dose_fast, dose_slow = _split(dose_mg, p.frac_fast)
    return (one_compartment_amount(tau, dose_fast, p.F_fast, p.k1_fast, p.k3)
            + one_compartment_amount(tau, dose_slow, p.F_slow, p.k1_slow, p.k3))


def dual_path_hydrolysis_amount(tau, dose_mg: float, p: PKParams) -> np.ndarray:
    """Two absorption paths that both go through hydrolysis (e.g. EV sublingual)."""
    if dose_mg <= 0:
        return np.zeros_like(np.asarray(tau, dtype=float))
    dose_fast, dose_slow = _split(dose_mg, p.frac_fast)
    return (three_stage_amount(tau, dose_fast, p.F_fast, p.k1_fast, p.k2, p.k3)
            + three_stage_amount(tau, dose_slow, p.F_slow, p.k1_slow, p.k2, p.k3))


def injection_amount(tau, dose_mg: float, p: PKParams) -> np.ndarray:
    """Two-part oil depot; both depots share F, k2 and k3."""
    dose_fast = dose_mg * p.frac_fast
    dose_slow = dose_mg * (1.0 - p.frac_fast)
    return (three_stage_amount(tau, dose_fast, p.F, p.k1_fast, p.k2, p.k3)
            + three_stage_amount(tau, dose_slow, p.F, p.k1_slow, p.k2, p.k3))


def _infusion_amount(t, rate_mg_h: float, k3: float):
    return rate_mg_h / k3 * (1.0 - np.exp(-k3 * t))


def patch_amount(tau, dose_mg: float, wear_h: float, p: PKParams) -> np.ndarray:
    """
    Transdermal patch worn for `wear_h` hours (math.inf when never removed).

    Zero-order when `p.rate_mg_h` is set, otherwise first-order release of
    `dose_mg`. After removal the amount decays with k3 from its value at the
    removal time.
    """
    tau, after, t = _elapsed(tau)
    if p.is_zero_order:
        under = _infusion_amount(t, p.rate_mg_h, p.k3)
        at_removal = (float(_infusion_amount(wear_h, p.rate_mg_h, p.k3))
                      if math.isfinite(wear_h) else 0.0)
    else:
        under = one_compartment_amount(t, dose_mg, p.F, p.k1_fast, p.k3)
        at_removal = (float(one_compartment_amount(wear_h, dose_mg, p.F, p.k1_fast, p.k3))
                      if math.isfinite(wear_h) else 0.0)

    if math.isfinite(wear_h):
        decay = at_removal * np.exp(-p.k3 * np.maximum(t - wear_h, 0.0))
        amount = np.where(t <= wear_h, under, decay)
    else:
        amount = under
    return np.where(after, amount, 0.0)
