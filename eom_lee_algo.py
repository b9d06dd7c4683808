# -*- coding: utf-8 -*-
"""
eom_lee_algo.py
复现 EoM-Lee 帧长估计器 (Eom & Lee, IEEE Trans. Industrial Electronics 2010)

【机制说明】
1. 两个耦合量迭代求不动点:
   B = L / (Y * c + s)                               (帧长 / 负载之比)
   Y = (1 - e^(-1/B)) / (B * (1 - (1 + 1/B) * e^(-1/B)))   (每个冲突时隙的平均标签数)
2. 初值 Y = -2 为哨兵：保证至少迭代一次，同时表示“尚无估计”。
3. B 为无穷大 (分母为 0) 时直接返回哨兵，避免 NaN 向后传播。
4. 收敛: |Y - prevY| <= 2^-8；另设迭代上限，达到上限仅告警，返回当前估计。
5. 输出: max(1, ceil(Y) * c)
"""

import math
import logging
from dataclasses import dataclass

from framework import EstimatorInterface, check_outcome_counts

logger = logging.getLogger(__name__)

EOM_LEE_EPSILON = 0.00390625   # 2^-8
Y_SENTINEL = -2.0
DEFAULT_MAX_ITERATIONS = 1000


@dataclass(frozen=True)
class EomLeeResult:
    estimate: int
    y: float
    iterations: int
    converged: bool


def compute_b(y: float, window_size: int, successes: int, collisions: int) -> float:
    denominator = y * collisions + successes
    if denominator == 0:
        return math.inf
    return window_size / denominator


def compute_y(b: float) -> float:
    if math.isinf(b):
        return Y_SENTINEL
    decay = math.exp(-(1.0 / b))
    divisor = b * (1.0 - (1.0 + 1.0 / b) * decay)
    if divisor == 0:
        return Y_SENTINEL
    return (1.0 - decay) / divisor


def eom_lee_search(empties: int, successes: int, collisions: int,
                   epsilon: float = EOM_LEE_EPSILON,
                   max_iterations: int = DEFAULT_MAX_ITERATIONS) -> EomLeeResult:
    check_outcome_counts(empties, successes, collisions)
    window_size = empties + successes + collisions
    if window_size == 0:
        return EomLeeResult(estimate=1, y=Y_SENTINEL, iterations=0, converged=True)

    prev_y = Y_SENTINEL
    y = compute_y(compute_b(prev_y, window_size, successes, collisions))
    iterations = 1
    converged = True
    while epsilon < abs(y - prev_y):
        if iterations >= max_iterations:
            converged = False
            logger.warning(
                "EoM-Lee did not converge after %d iterations (e=%d, s=%d, c=%d), using Y=%.6f",
                iterations, empties, successes, collisions, y,
            )
            break
        prev_y = y
        y = compute_y(compute_b(prev_y, window_size, successes, collisions))
        iterations += 1

    estimate = max(1, math.ceil(y) * collisions)
    return EomLeeResult(estimate=estimate, y=y, iterations=iterations, converged=converged)


def eom_lee(empties: int, successes: int, collisions: int) -> int:
    return eom_lee_search(empties, successes, collisions).estimate


class EomLeeEstimator(EstimatorInterface):
    name = "EoM-Lee"

    def __init__(self, epsilon: float = EOM_LEE_EPSILON,
                 max_iterations: int = DEFAULT_MAX_ITERATIONS):
        self.epsilon = epsilon
        self.max_iterations = max_iterations

    def estimate(self, empties: int, successes: int, collisions: int) -> int:
        return eom_lee_search(empties, successes, collisions,
                              epsilon=self.epsilon,
                              max_iterations=self.max_iterations).estimate
