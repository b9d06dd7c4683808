from __future__ import annotations

import pytest

from baseline_algos import lower_bound
from framework import ConfigurationError, EstimatorInterface, SimulationConfig, make_rng
from sweep import population_sizes, run_parallel_sweep, run_sweep, simulate, validate_config


class ExplodingEstimator(EstimatorInterface):
    name = "exploding"

    def estimate(self, empties, successes, collisions):
        raise AssertionError("estimator must not run")


def test_series_length_matches_step_count():
    series = simulate(10, 8, 7, 40, 1, "lb", rng=make_rng(1))
    assert len(series) == 1 + (40 - 10) // 7
    assert series.populations == [10, 17, 24, 31, 38]


def test_single_point_lower_bound_scenario():
    series = simulate(100, 64, 100, 100, 1, "lower-bound", rng=make_rng(3))
    assert len(series) == 1
    point = series.points[0]
    assert point.efficiency == pytest.approx(100 / point.total_slots)
    assert series.estimator_name == "LOWER_BOUND"


def test_plain_function_estimator_is_accepted():
    series = simulate(20, 8, 10, 40, 2, lower_bound, rng=make_rng(5))
    assert series.estimator_name == "lower_bound"
    assert [p.repeats for p in series.points] == [2, 2, 2]


def test_maximum_below_initial_aborts_before_simulation():
    with pytest.raises(ConfigurationError):
        simulate(100, 64, 10, 50, 1, ExplodingEstimator())


@pytest.mark.parametrize("changes", [
    {"STEP": 0},
    {"REPEAT": 0},
    {"INITIAL_WINDOW": 0},
    {"INITIAL_TAGS": 0, "MAXIMUM_TAGS": 10},
    {"MAX_WORKERS": 0},
])
def test_invalid_configs_rejected(changes):
    params = dict(INITIAL_TAGS=10, INITIAL_WINDOW=8, STEP=5, MAXIMUM_TAGS=30, REPEAT=1)
    params.update(changes)
    with pytest.raises(ConfigurationError):
        validate_config(SimulationConfig(**params))


def test_population_sizes_inclusive():
    cfg = SimulationConfig(INITIAL_TAGS=5, STEP=5, MAXIMUM_TAGS=20)
    assert list(population_sizes(cfg)) == [5, 10, 15, 20]


def test_run_sweep_unknown_estimator():
    cfg = SimulationConfig(INITIAL_TAGS=10, INITIAL_WINDOW=8, STEP=10, MAXIMUM_TAGS=20, REPEAT=1)
    with pytest.raises(ConfigurationError):
        run_sweep(cfg, ["lb", "nope"])


def test_run_sweep_keeps_estimator_order():
    cfg = SimulationConfig(INITIAL_TAGS=10, INITIAL_WINDOW=8, STEP=10, MAXIMUM_TAGS=30, REPEAT=2, SEED=11)
    results = run_sweep(cfg, ["el", "lb"])
    assert list(results) == ["EOM_LEE", "LOWER_BOUND"]
    assert all(len(s) == 3 for s in results.values())


def test_run_sweep_is_reproducible_with_seed():
    cfg = SimulationConfig(INITIAL_TAGS=20, INITIAL_WINDOW=16, STEP=20, MAXIMUM_TAGS=60, REPEAT=3, SEED=42)
    first = run_sweep(cfg, ["lb", "chen"])
    second = run_sweep(cfg, ["lb", "chen"])
    for key in first:
        assert first[key].metric_series("total_slots") == second[key].metric_series("total_slots")


def test_run_sweep_shares_one_stream_across_estimators():
    cfg = SimulationConfig(INITIAL_TAGS=20, INITIAL_WINDOW=16, STEP=20, MAXIMUM_TAGS=60, REPEAT=2, SEED=9)
    results = run_sweep(cfg, ["lb", "el"])

    rng = make_rng(9)
    lb = simulate(20, 16, 20, 60, 2, "lb", rng=rng)
    el = simulate(20, 16, 20, 60, 2, "el", rng=rng)
    assert results["LOWER_BOUND"].metric_series("total_slots") == lb.metric_series("total_slots")
    assert results["EOM_LEE"].metric_series("total_slots") == el.metric_series("total_slots")


def test_metric_series_pairs():
    series = simulate(10, 8, 10, 30, 1, "lb", rng=make_rng(2))
    pairs = series.metric_series("efficiency")
    assert [x for x, _ in pairs] == [10, 20, 30]
    assert all(0.0 < y <= 1.0 for _, y in pairs)
    records = series.to_records()
    assert records[0]["estimator"] == "LOWER_BOUND"
    assert records[0]["population"] == 10


def test_parallel_sweep_is_deterministic():
    cfg = SimulationConfig(INITIAL_TAGS=10, INITIAL_WINDOW=8, STEP=10, MAXIMUM_TAGS=30,
                           REPEAT=2, SEED=123, MAX_WORKERS=2)
    first = run_parallel_sweep(cfg, ["lb", "el"])
    second = run_sweep(cfg, ["lb", "el"])
    assert list(first) == ["LOWER_BOUND", "EOM_LEE"]
    for key in first:
        assert first[key].populations == [10, 20, 30]
        assert first[key].metric_series("total_slots") == second[key].metric_series("total_slots")
