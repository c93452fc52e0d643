import math

import numpy as np

from hrtengine.dosing import every_n_days
from hrtengine.metrics import (auc_trapz, cavg, cmax, cmax_tmax, cmin, ctrough,
                               fluctuation_index, peak_to_trough_ratio, summarize, tmax)
from hrtengine.solvers import simulate_events
from hrtengine.types import Ester, SimulationResult


def test_weekly_valerate_metrics_smoke():
    """
    Weekly 5 mg EV injections for 8 weeks should give a positive, fluctuating
    profile with sensible summary metrics.
    """
    doses = every_n_days(5.0 * 272.38 / 356.50, 7, 8, ester=Ester.EV)
    result = simulate_events(doses, 70.0, -24.0, 8 * 168.0 + 336.0, 2000)
    t, C = result.time_h, result.conc_pg_ml

    assert cmax(C) > 0.0
    assert 0.0 <= tmax(t, C) <= t[-1]
    assert cmin(C) == 0.0
    assert cmax_tmax(t, C) == (cmax(C), tmax(t, C))
    assert math.isclose(auc_trapz(t, C), result.auc, rel_tol=1e-9)
    assert 0.0 < cavg(t, C) < cmax(C)

    last_week = (7 * 168.0, 8 * 168.0)
    ptr = peak_to_trough_ratio(t, C, window_h=last_week)
    fi = fluctuation_index(t, C, window_h=last_week)
    assert np.isfinite(ptr) and ptr > 1.0
    assert np.isfinite(fi) and fi > 0.0
    assert math.isinf(peak_to_trough_ratio(t, C))     # the curve starts at 0

    trough = ctrough(t, C, [d.time_h for d in doses])
    assert 0.0 < trough < cmax(C)


def test_ctrough_without_doses_in_window_is_nan():
    t = np.linspace(0.0, 10.0, 11)
    assert math.isnan(ctrough(t, np.ones_like(t), [100.0]))


def test_summarize_empty_result():
    s = summarize(SimulationResult.empty())
    assert all(math.isnan(v) for v in s.values())


def test_summarize_matches_series():
    t = np.array([0.0, 1.0, 2.0, 3.0])
    C = np.array([0.0, 4.0, 2.0, 0.0])
    s = summarize(SimulationResult(time_h=t, conc_pg_ml=C, auc=6.0))
    assert s["cmax"] == 4.0 and s["tmax"] == 1.0 and s["auc"] == 6.0
    assert s["cavg"] == 2.0
