import math

import numpy as np

from hrtengine.dosing import ester_to_e2_equivalent, gel, injection, oral, patch_apply, patch_remove, sublingual
from hrtengine.metrics import auc_trapz
from hrtengine.models.event_model import EventModel, ModelKind
from hrtengine.simulate import default_window, run_events
from hrtengine.solvers import simulate_events, simulate_models
from hrtengine.types import DoseEvent, Ester, PKParams, Route, SimulationResult


def _injection_model(k2=0.07):
    params = PKParams(frac_fast=0.4, k1_fast=0.02, k1_slow=0.01, k2=k2, k3=0.04,
                      F=0.1, rate_mg_h=0.0, F_fast=0.1, F_slow=0.1)
    return EventModel(kind=ModelKind.INJECTION, start_h=0.0, dose_mg=10.0, params=params)


def test_single_injection_rises_peaks_and_decays():
    """
    10 mg two-part depot (f 0.4, k1 0.02/0.01, k3 0.04, F 0.1), 70 kg,
    1000 samples over 0-360 h.
    """
    result = simulate_models([_injection_model()], 70.0, 0.0, 360.0, 1000)
    t, C = result.time_h, result.conc_pg_ml

    assert len(t) == len(C) == 1000
    assert np.all(np.diff(t) > 0)
    assert t[0] == 0.0 and t[-1] == 360.0
    assert np.all(C >= 0)
    assert C[0] < 1e-9

    peak = int(np.argmax(C))
    assert 0 < peak < 999
    assert np.all(np.diff(C[:peak]) > 0)
    assert C[-1] < 0.1 * C[peak]
    assert result.auc > 0
    assert math.isclose(result.auc, auc_trapz(t, C), rel_tol=1e-9)


def test_degenerate_injection_rates_give_zero_not_error():
    params = PKParams(frac_fast=0.4, k1_fast=0.05, k1_slow=0.05, k2=0.05, k3=0.05,
                      F=0.1, rate_mg_h=0.0, F_fast=0.1, F_slow=0.1)
    model = EventModel(kind=ModelKind.INJECTION, start_h=0.0, dose_mg=10.0, params=params)
    for tau in (0.0, 1.0, 24.0, 1000.0):
        assert model.amount(tau) == 0.0
    assert np.all(model.amount(np.linspace(-10, 500, 100)) == 0.0)


def test_patch_plateau_then_exponential_washout():
    """50 µg/day from t=0, removed at t=168 h."""
    events = [patch_apply(0.0, release_rate_ug_per_day=50.0), patch_remove(168.0)]
    result = simulate_events(events, 70.0, 0.0, 336.0, 1009)   # 1/3 h grid, 168 is a sample

    plateau = (50.0 / 24000.0) / 0.41 * 1e9 / (2.0 * 70.0 * 1000.0)
    c100 = result.concentration(100.0)
    c160 = result.concentration(160.0)
    assert math.isclose(c100, plateau, rel_tol=1e-6)
    assert math.isclose(c160, plateau, rel_tol=1e-6)

    c_remove = result.concentration(168.0)
    assert math.isclose(c_remove, plateau, rel_tol=1e-6)
    c_later = result.concentration(174.0)
    assert math.isclose(c_later, c_remove * math.exp(-0.41 * 6.0), rel_tol=1e-6)
    assert result.concentration(336.0) < 1e-6 * plateau


def test_patch_is_continuous_at_removal_and_decreases_after():
    apply = patch_apply(10.0, release_rate_ug_per_day=100.0)
    removal = patch_remove(58.0)
    model = EventModel.build(apply, [removal, apply], 70.0)
    assert model.wear_h == 48.0

    eps = 1e-9
    assert math.isclose(model.amount(58.0 - eps), model.amount(58.0 + eps), rel_tol=1e-6)
    after = model.amount(np.linspace(58.5, 120.0, 50))
    assert np.all(np.diff(after) < 0)


def test_first_order_patch_is_continuous_at_removal():
    apply = patch_apply(0.0, dose_mg=4.0)
    model = EventModel.build(apply, [apply, patch_remove(84.0)], 70.0)
    assert math.isclose(model.amount(84.0 - 1e-9), model.amount(84.0 + 1e-9), rel_tol=1e-6)
    assert np.all(np.diff(model.amount(np.linspace(85.0, 150.0, 30))) < 0)


def test_patch_uses_earliest_removal_after_it():
    apply = patch_apply(100.0, release_rate_ug_per_day=50.0)
    events = [patch_remove(300.0), patch_remove(50.0), apply, patch_remove(200.0)]
    assert EventModel.build(apply, events, 70.0).wear_h == 100.0
    never = EventModel.build(apply, [apply, patch_remove(100.0)], 70.0)
    assert math.isinf(never.wear_h)


def test_zero_dose_events_contribute_nothing():
    events = [injection(0.0, 0.0, Ester.EV), oral(0.0, 0.0), oral(0.0, 0.0, Ester.EV),
              sublingual(0.0, 0.0, Ester.EV), sublingual(0.0, 0.0), gel(0.0, 0.0),
              patch_apply(0.0, dose_mg=0.0)]
    t = np.linspace(-24.0, 500.0, 200)
    for ev in events:
        model = EventModel.build(ev, events, 70.0)
        assert np.all(model.amount(t) == 0.0)
        assert not model.contributes


def test_patch_remove_builds_zero_model():
    ev = patch_remove(5.0)
    model = EventModel.build(ev, [ev], 70.0)
    assert model.kind is ModelKind.ZERO
    assert model.amount(10.0) == 0.0


def test_model_kinds_per_route():
    kinds = {
        ModelKind.INJECTION: injection(1.0, 0.0, Ester.EC),
        ModelKind.ONE_COMPARTMENT: oral(1.0, 0.0, Ester.EV),
        ModelKind.DUAL_PATH: sublingual(1.0, 0.0, Ester.E2),
        ModelKind.DUAL_PATH_HYDROLYSIS: sublingual(1.0, 0.0, Ester.EV),
        ModelKind.PATCH: patch_apply(0.0, dose_mg=1.0),
    }
    for kind, ev in kinds.items():
        assert EventModel.build(ev, [ev], 70.0).kind is kind
    assert EventModel.build(gel(1.0, 0.0), [], 70.0).kind is ModelKind.ONE_COMPARTMENT


def test_amount_is_zero_before_dose_time():
    ev = injection(ester_to_e2_equivalent(5.0, Ester.EV), 1000.0, Ester.EV)
    model = EventModel.build(ev, [ev], 70.0)
    assert model.amount(999.0) == 0.0
    assert model.amount(1000.0 + 48.0) > 0.0


def _mixed_events():
    a = [injection(3.8, 0.0, Ester.EV), injection(3.8, 168.0, Ester.EV), oral(2.0, 30.0)]
    b = [patch_apply(12.0, release_rate_ug_per_day=50.0), patch_remove(96.0),
         sublingual(1.0, 60.0, Ester.EV, tier=1), gel(1.5, 80.0)]
    return a, b


def test_superposition_of_event_sets():
    a, b = _mixed_events()
    args = (70.0, -24.0, 400.0, 800)
    both = simulate_events(a + b, *args)
    only_a = simulate_events(a, *args)
    only_b = simulate_events(b, *args)
    assert np.array_equal(both.time_h, only_a.time_h)
    assert np.allclose(both.conc_pg_ml, only_a.conc_pg_ml + only_b.conc_pg_ml, rtol=1e-12, atol=1e-9)
    assert math.isclose(both.auc, only_a.auc + only_b.auc, rel_tol=1e-9)


def test_unsorted_input_gives_same_curve():
    a, b = _mixed_events()
    events = a + b
    forward = simulate_events(events, 70.0, -24.0, 400.0, 500)
    backward = simulate_events(list(reversed(events)), 70.0, -24.0, 400.0, 500)
    assert np.allclose(forward.conc_pg_ml, backward.conc_pg_ml, rtol=1e-12, atol=1e-12)


def test_runs_are_deterministic():
    a, b = _mixed_events()
    first = simulate_events(a + b, 65.0, 0.0, 300.0, 400)
    second = simulate_events(a + b, 65.0, 0.0, 300.0, 400)
    assert first == second


def test_body_weight_only_scales_volume():
    a, _ = _mixed_events()
    light = simulate_events(a, 50.0, 0.0, 300.0, 300)
    heavy = simulate_events(a, 100.0, 0.0, 300.0, 300)
    assert np.allclose(light.conc_pg_ml, 2.0 * heavy.conc_pg_ml)


def test_degenerate_inputs_return_empty_result():
    events = [injection(3.8, 0.0, Ester.EV)]
    for args in [(70.0, 10.0, 10.0, 100), (70.0, 20.0, 10.0, 100),
                 (70.0, 0.0, 100.0, 1), (70.0, 0.0, 100.0, 0),
                 (0.0, 0.0, 100.0, 100), (-5.0, 0.0, 100.0, 100)]:
        result = simulate_events(events, *args)
        assert result.is_empty
        assert len(result.time_h) == len(result.conc_pg_ml) == 0
        assert result.auc == 0.0
        assert result.concentration(5.0) is None


def test_empty_and_removal_only_event_lists_return_empty_result():
    assert simulate_events([], 70.0, 0.0, 100.0, 100).is_empty
    assert simulate_events([patch_remove(5.0)], 70.0, 0.0, 100.0, 100).is_empty
    assert simulate_events([oral(0.0, 1.0)], 70.0, 0.0, 100.0, 100).is_empty
    assert run_events([]).is_empty


def test_concentration_query_exact_at_samples_and_clamped_outside():
    result = simulate_events([oral(2.0, 5.0), injection(4.0, 0.0, Ester.EB)], 70.0, 0.0, 120.0, 241)
    t, C = result.time_h, result.conc_pg_ml
    for i in range(len(t)):
        assert result.concentration(t[i]) == C[i]
    assert result.concentration(-100.0) == C[0]
    assert result.concentration(1e6) == C[-1]

    mid = 0.5 * (t[10] + t[11])
    assert math.isclose(result.concentration(mid), 0.5 * (C[10] + C[11]))


def test_concentration_query_on_malformed_series():
    bad = SimulationResult(time_h=np.array([0.0, 1.0]), conc_pg_ml=np.array([1.0]), auc=0.0)
    assert bad.concentration(0.5) is None
    assert SimulationResult.empty().concentration(0.0) is None


def test_concentration_query_on_uneven_grid():
    r = SimulationResult(time_h=np.array([0.0, 1.0, 5.0]), conc_pg_ml=np.array([0.0, 10.0, 30.0]))
    assert r.concentration(1.0) == 10.0
    assert math.isclose(r.concentration(3.0), 20.0)
    assert math.isclose(r.concentration(0.25), 2.5)
    assert r.concentration(-1.0) == 0.0
    assert r.concentration(9.0) == 30.0


def test_default_window_spans_events():
    events = [oral(1.0, 500.0), oral(1.0, 100.0)]
    assert default_window(events) == (76.0, 500.0 + 14 * 24.0)
    assert default_window([]) is None

    result = run_events(events)
    assert len(result) == 1000
    assert result.time_h[0] == 76.0
    assert result.concentration(99.0) == 0.0


def test_every_route_produces_a_positive_curve():
    t0 = 0.0
    events = [
        DoseEvent(route=Route.INJECTION, time_h=t0, dose_mg=3.8, ester=Ester.EN),
        DoseEvent(route=Route.GEL, time_h=t0, dose_mg=1.5),
        DoseEvent(route=Route.ORAL, time_h=t0, dose_mg=2.0),
        DoseEvent(route=Route.SUBLINGUAL, time_h=t0, dose_mg=1.0, ester=Ester.EV),
        DoseEvent(route=Route.PATCH_APPLY, time_h=t0, dose_mg=3.9),
    ]
    for ev in events:
        result = simulate_events([ev], 70.0, 0.0, 200.0, 201)
        assert result.auc > 0, ev.route
