# -*- coding: utf-8 -*-
"""
chen_algo.py
复现 Chen 最大似然帧长估计器 (W.-T. Chen, IEEE Trans. Automation Sci. Eng. 2009)

【机制说明】
1. 多项式占用模型：给定候选标签数 n 与帧长 L
   p_e = (1 - 1/L)^n
   p_s = (n / L) * (1 - 1/L)^(n - 1)
   p_c = 1 - p_e - p_s
2. 观测 (e, s, c) 的似然 = W(L, e, s, c) * p_e^e * p_s^s * p_c^c，
   W 为多项式系数 (multinomial_weight.py)，与 n 无关，每次调用只算一次。
3. 从 n = s + 2c 开始逐一递增 n 做离散爬山，似然增量不再超过 epsilon 时停止。
4. 输出 n - 2 (循环结构带来的两步前瞻补偿)，下限为 1。
5. 同一算法按 epsilon 参数化出 chen / chen-epsilon-2 / chen-epsilon-5 三个变体。
"""

import math
import logging
from dataclasses import dataclass

from framework import EstimatorInterface, check_outcome_counts
from multinomial_weight import log_multinomial_weight

logger = logging.getLogger(__name__)

CHEN_EPSILON = 0.03125   # 2^-5
CHEN_EPSILON_2 = 1e-2
CHEN_EPSILON_5 = 1e-5
DEFAULT_MAX_ITERATIONS = 100000


@dataclass(frozen=True)
class ChenResult:
    estimate: int
    iterations: int   # 似然计算次数
    converged: bool


def _log_power(p: float, count: int) -> float:
    if count == 0:
        return 0.0
    if p <= 0.0:
        return -math.inf
    return count * math.log(p)


def slot_probabilities(n: float, frame_size: float):
    """返回 (p_e, p_s, p_c)"""
    q = 1.0 - 1.0 / frame_size
    p_e = q ** n
    p_s = (n / frame_size) * q ** (n - 1.0) if n > 0 else 0.0
    p_c = max(0.0, 1.0 - p_e - p_s)
    return p_e, p_s, p_c


def likelihood(n: float, empties: int, successes: int, collisions: int,
               log_weight: float = None) -> float:
    frame_size = empties + successes + collisions
    if log_weight is None:
        log_weight = log_multinomial_weight(frame_size, empties, successes, collisions)
    p_e, p_s, p_c = slot_probabilities(n, frame_size)
    log_l = (log_weight
             + _log_power(p_e, empties)
             + _log_power(p_s, successes)
             + _log_power(p_c, collisions))
    if log_l == -math.inf:
        return 0.0
    return math.exp(log_l)


def chen_search(empties: int, successes: int, collisions: int,
                epsilon: float = CHEN_EPSILON,
                max_iterations: int = DEFAULT_MAX_ITERATIONS) -> ChenResult:
    check_outcome_counts(empties, successes, collisions)
    frame_size = empties + successes + collisions
    if frame_size == 0:
        return ChenResult(estimate=1, iterations=0, converged=True)

    log_weight = log_multinomial_weight(frame_size, empties, successes, collisions)
    n = float(successes + 2 * collisions)
    nxt = 0.0
    prev = -1.0
    iterations = 0
    converged = True

    while prev < nxt - epsilon:
        if iterations >= max_iterations:
            converged = False
            logger.warning(
                "Chen(eps=%g) hit %d iterations (e=%d, s=%d, c=%d), using n=%d",
                epsilon, iterations, empties, successes, collisions, int(n),
            )
            break
        prev = nxt
        nxt = likelihood(n, empties, successes, collisions, log_weight=log_weight)
        n += 1.0
        iterations += 1

    return ChenResult(estimate=max(1, int(n - 2.0)), iterations=iterations, converged=converged)


def chen(empties: int, successes: int, collisions: int, epsilon: float = CHEN_EPSILON) -> int:
    return chen_search(empties, successes, collisions, epsilon=epsilon).estimate


class ChenEstimator(EstimatorInterface):
    def __init__(self, epsilon: float = CHEN_EPSILON,
                 max_iterations: int = DEFAULT_MAX_ITERATIONS):
        self.epsilon = epsilon
        self.max_iterations = max_iterations
        self.name = f"Chen(eps={epsilon:g})"

    def estimate(self, empties: int, successes: int, collisions: int) -> int:
        return chen_search(empties, successes, collisions,
                           epsilon=self.epsilon,
                           max_iterations=self.max_iterations).estimate
