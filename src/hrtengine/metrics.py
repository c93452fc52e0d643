# src/hrtengine/metrics.py
import numpy as np
from typing import Tuple

from .types import SimulationResult


def cmax(C: np.ndarray) -> float:
    """Peak concentration (pg/mL)."""
    return float(np.max(C))

def tmax(t: np.ndarray, C: np.ndarray) -> float:
    """Time of peak concentration (h)."""
    return float(t[int(np.argmax(C))])

def cmin(C: np.ndarray) -> float:
    """Lowest concentration (pg/mL)."""
    return float(np.min(C))

def cmax_tmax(t: np.ndarray, C: np.ndarray) -> Tuple[float, float]:
    """Return Cmax (pg/mL) and Tmax (h)."""
    idx = np.argmax(C)
    return float(C[idx]), float(t[idx])

def auc_trapz(t: np.ndarray, C: np.ndarray) -> float:
    """Area under the curve by the trapezoidal rule (pg·h/mL)."""
    return float(np.trapezoid(C, t))

def cavg(t: np.ndarray, C: np.ndarray) -> float:
    """Time-weighted average concentration over the sampled window."""
    span = float(t[-1] - t[0])
    if span <= 0:
        return float(np.mean(C))
    return auc_trapz(t, C) / span

def ctrough(t: np.ndarray, C: np.ndarray, dose_times_h) -> float:
    """
    Concentration at the time of the last dose inside the window, i.e. the
    pre-dose trough. NaN when no dose is inside.
    """
    inside = [d for d in dose_times_h if t[0] <= d <= t[-1]]
    if not inside:
        return float("nan")
    return float(np.interp(max(inside), t, C))

def peak_to_trough_ratio(t: np.ndarray, C: np.ndarray, window_h: tuple | None = None) -> float:
    """
    Peak-to-Trough Ratio (PTR) = Cmax / Cmin.
    window_h=(start, end) limits the ratio to that part of the curve.
    """
    Cw = _windowed(t, C, window_h)
    cmin_val = float(np.min(Cw))
    if cmin_val <= 0:
        return float('inf')
    return float(np.max(Cw)) / cmin_val

def fluctuation_index(t: np.ndarray, C: np.ndarray, window_h: tuple | None = None) -> float:
    """
    Fluctuation Index (FI) = (Cmax - Cmin) / Cavg.
    window_h=(start, end) limits the index to that part of the curve.
    """
    mask = _mask(t, window_h)
    tw, Cw = t[mask], C[mask]
    cavg_val = cavg(tw, Cw)
    if cavg_val == 0.0:
        return float('inf')
    return (float(np.max(Cw)) - float(np.min(Cw))) / cavg_val

def _mask(t: np.ndarray, window_h: tuple | None) -> np.ndarray:
    if window_h is None:
        return np.ones_like(t, dtype=bool)
    start, end = window_h
    mask = (t >= start) & (t <= end)
    # fall back to the whole series when the window misses every sample
    return mask if np.any(mask) else np.ones_like(t, dtype=bool)

def _windowed(t: np.ndarray, C: np.ndarray, window_h: tuple | None) -> np.ndarray:
    return C[_mask(t, window_h)]

def summarize(result: SimulationResult) -> dict[str, float]:
    """Cmax, Tmax, AUC and Cavg of a run; NaN everywhere for an empty run."""
    if result.is_empty:
        nan = float("nan")
        return {"cmax": nan, "tmax": nan, "auc": nan, "cavg": nan}
    t, C = result.time_h, result.conc_pg_ml
    c_peak, t_peak = cmax_tmax(t, C)
    return {"cmax": c_peak, "tmax": t_peak, "auc": result.auc, "cavg": cavg(t, C)}
