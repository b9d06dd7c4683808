# -*- coding: utf-8 -*-
"""
baseline_algos.py
基准估计器实现库。
包含：
1. LowerBoundEstimator (Vogt 下界估计)
2. FixedFrameEstimator (固定帧长，不做任何估计)
"""

from framework import EstimatorInterface, check_outcome_counts


def lower_bound(empties: int, successes: int, collisions: int) -> int:
    """
    Vogt 下界: 每个冲突时隙至少有 2 个标签，剩余标签数 >= 2c
    """
    check_outcome_counts(empties, successes, collisions)
    return max(1, 2 * collisions)


class LowerBoundEstimator(EstimatorInterface):
    """
    基准 1: 下界估计 (Vogt, 2002)
    """
    name = "Lower-Bound"

    def estimate(self, empties: int, successes: int, collisions: int) -> int:
        return lower_bound(empties, successes, collisions)


class FixedFrameEstimator(EstimatorInterface):
    """
    基准 2: 固定帧长 (非自适应参考线)
    """
    name = "Fixed-Frame"

    def __init__(self, frame_size: int = 10):
        if frame_size < 1:
            raise ValueError(f"fixed frame size must be >= 1, got {frame_size}")
        self.frame_size = frame_size

    def estimate(self, empties: int, successes: int, collisions: int) -> int:
        check_outcome_counts(empties, successes, collisions)
        return self.frame_size
