from __future__ import annotations

import logging

import pytest

import framework
from baseline_algos import FixedFrameEstimator, LowerBoundEstimator
from eom_lee_algo import EomLeeEstimator
from framework import (
    EstimatorInterface,
    RoundOutcome,
    SimulationError,
    SlotType,
    TrialRecord,
    TrialStatistics,
    assign_tags,
    run_round_simulation,
    run_trial,
)


class ZeroFrameEstimator(EstimatorInterface):
    name = "broken"

    def estimate(self, empties, successes, collisions):
        return 0


class SentinelFirstEstimator(EstimatorInterface):
    """首次估计固定喂入 (0, 2, 1)，EoM-Lee 在该输入下给出 1 时隙帧"""
    name = "EoM-Lee (sentinel first)"

    def __init__(self):
        self.inner = EomLeeEstimator()
        self.calls = 0

    def estimate(self, empties, successes, collisions):
        self.calls += 1
        if self.calls == 1:
            return self.inner.estimate(0, 2, 1)
        return self.inner.estimate(empties, successes, collisions)


def test_slot_classification():
    assert SlotType.classify(0) is SlotType.IDLE
    assert SlotType.classify(1) is SlotType.SUCCESS
    assert SlotType.classify(5) is SlotType.COLLISION


def test_round_outcome_from_frame():
    out = RoundOutcome.from_frame([0, 1, 2, 0, 3])
    assert out == RoundOutcome(frame_size=5, empties=2, successes=1, collisions=2)


def test_assign_tags_partitions_frame(rng):
    for remaining, size in [(0, 5), (1, 1), (10, 1), (37, 64), (200, 16)]:
        out = assign_tags(rng, remaining, size)
        assert out.empties + out.successes + out.collisions == size
        assert out.successes + 2 * out.collisions <= remaining


def test_assign_tags_edge_frames(rng):
    assert assign_tags(rng, 0, 5).empties == 5
    assert assign_tags(rng, 1, 1).successes == 1
    assert assign_tags(rng, 10, 1).collisions == 1


def test_assign_tags_rejects_empty_frame(rng):
    with pytest.raises(SimulationError):
        assign_tags(rng, 3, 0)


@pytest.mark.parametrize("estimator", [LowerBoundEstimator(), EomLeeEstimator()])
def test_trial_resolves_every_tag(rng, estimator):
    record = run_trial(150, 32, estimator, rng)
    assert record.remaining == 0
    assert record.total_successes == 150
    assert record.total_empties + record.total_successes + record.total_collisions == record.total_slots
    assert record.estimator_calls == len(record.rounds) - 1


def test_single_tag_needs_no_estimate(rng):
    record = run_trial(1, 1, ZeroFrameEstimator(), rng)
    assert len(record.rounds) == 1
    assert record.estimator_calls == 0


def test_estimator_contract_violation(rng):
    with pytest.raises(SimulationError):
        run_trial(5, 1, ZeroFrameEstimator(), rng)


def test_round_cap_stops_trial_without_raising(rng, monkeypatch, caplog):
    monkeypatch.setitem(framework.CONSTANTS, 'MAX_ROUNDS_LIMIT', 3)
    with caplog.at_level(logging.WARNING, logger="framework"):
        record = run_trial(5, 1, FixedFrameEstimator(frame_size=1), rng)
    assert not record.converged
    assert len(record.rounds) == 3
    assert record.remaining == 5
    assert "trial stopped at 3 rounds" in caplog.text


def test_capped_trials_are_counted_not_averaged(rng, monkeypatch):
    monkeypatch.setitem(framework.CONSTANTS, 'MAX_ROUNDS_LIMIT', 4)
    stats = run_round_simulation(50, 2, FixedFrameEstimator(frame_size=2), 3, rng)
    assert stats.capped_trials == 3
    assert stats.total_rounds == 4.0
    assert stats.to_dict()['capped_trials'] == 3

    done = run_round_simulation(20, 16, LowerBoundEstimator(), 3, rng)
    assert done.capped_trials == 0


def test_trial_recovers_after_single_slot_frame(rng):
    record = run_trial(6, 4, SentinelFirstEstimator(), rng)
    assert record.rounds[1].frame_size == 1
    assert record.converged
    assert record.remaining == 0
    assert record.total_successes == 6


def test_statistics_average_over_repeats():
    stats = TrialStatistics(population=2)
    a = TrialRecord(population=2, rounds=[RoundOutcome(4, 2, 2, 0)], estimator_time=0.0)
    b = TrialRecord(population=2, rounds=[RoundOutcome(4, 3, 0, 1), RoundOutcome(2, 0, 2, 0)],
                    estimator_time=0.5, estimator_calls=1)
    stats.accumulate(a)
    stats.accumulate(b)
    stats.finalize()

    assert stats.repeats == 2
    assert stats.total_slots == 5.0
    assert stats.total_empties == 2.5
    assert stats.total_collisions == 0.5
    assert stats.total_rounds == 1.5
    assert stats.mean_estimator_time == 0.25
    assert stats.efficiency == pytest.approx(2 / 5)
    assert stats.estimator_time_per_call == pytest.approx(0.5)

    with pytest.raises(SimulationError):
        stats.accumulate(a)


def test_round_simulation_runs_repeat_trials(rng):
    stats = run_round_simulation(60, 16, LowerBoundEstimator(), 4, rng)
    assert stats.repeats == 4
    assert stats.finalized
    assert stats.total_successes == 60
    assert stats.efficiency == pytest.approx(60 / stats.total_slots)
    assert stats.mean_estimator_time >= 0.0
