# -*- coding: utf-8 -*-
"""
framework.py
DFSA 帧长估计仿真框架核心 (Framed Slotted-ALOHA Kernel)

该模块提供动态帧时隙 ALOHA (DFSA) 标签识别过程的离散轮次仿真内核：
随机分配时隙 -> 时隙分类 (空闲/成功/冲突) -> 调用帧长估计器 -> 进入下一帧，
直到所有标签被识别。估计器以可插拔的方式注入，框架负责计时与统计。
"""

import time
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

import numpy as np

logger = logging.getLogger(__name__)

# ==============================================================================
# 1. 异常定义
# ==============================================================================

class SimulationError(Exception):
    """仿真过程中的非正常状态 (估计器违约 / 熔断)"""


class ConfigurationError(SimulationError, ValueError):
    """配置错误：在任何仿真开始之前检出，整个 Sweep 直接中止"""

# ==============================================================================
# 2. 基础数据结构
# ==============================================================================

class SlotType(Enum):
    """时隙状态"""
    IDLE = auto()       # 空闲 (0 个标签)
    SUCCESS = auto()    # 成功 (恰好 1 个标签)
    COLLISION = auto()  # 冲突 (>= 2 个标签)

    @classmethod
    def classify(cls, tag_count: int) -> 'SlotType':
        if tag_count == 0:
            return cls.IDLE
        if tag_count == 1:
            return cls.SUCCESS
        return cls.COLLISION


@dataclass(frozen=True)
class RoundOutcome:
    """
    [单帧结果] 一帧内各类时隙的计数
    不变量: empties + successes + collisions == frame_size
    """
    frame_size: int
    empties: int
    successes: int
    collisions: int

    @classmethod
    def from_frame(cls, frame) -> 'RoundOutcome':
        """根据时隙计数器序列 (Frame) 进行分类"""
        counts = np.asarray(frame, dtype=np.int64)
        # 0 / 1 / >=2 三档直方图
        hist = np.bincount(np.minimum(counts, 2), minlength=3)
        tally = {SlotType.classify(k): int(v) for k, v in enumerate(hist)}
        return cls(
            frame_size=int(counts.size),
            empties=tally[SlotType.IDLE],
            successes=tally[SlotType.SUCCESS],
            collisions=tally[SlotType.COLLISION],
        )


class EstimatorInterface:
    """
    帧长估计器必须实现的最小接口

    estimate() 必须是 (empties, successes, collisions) 的纯函数，
    且返回值 >= 1。实例只保存构造参数 (如收敛阈值)，不保存跨调用状态。
    """
    name: str = "estimator"

    def estimate(self, empties: int, successes: int, collisions: int) -> int:
        raise NotImplementedError

    def __call__(self, empties: int, successes: int, collisions: int) -> int:
        return self.estimate(empties, successes, collisions)


def check_outcome_counts(empties: int, successes: int, collisions: int):
    """估计器输入域检查：三个计数均需为非负数"""
    if empties < 0 or successes < 0 or collisions < 0:
        raise ValueError(
            f"slot counts must be non-negative, got "
            f"empties={empties}, successes={successes}, collisions={collisions}"
        )


@dataclass
class TrialRecord:
    """[单次试验] 一个标签群从初始规模被完全识别到 0 的全过程"""
    population: int
    rounds: List[RoundOutcome] = field(default_factory=list)
    estimator_time: float = 0.0   # 估计器累计耗时 (s)
    estimator_calls: int = 0
    remaining: int = 0
    converged: bool = True        # False: 触发帧数熔断，仍有标签未识别

    @property
    def total_slots(self) -> int:
        return sum(r.frame_size for r in self.rounds)

    @property
    def total_empties(self) -> int:
        return sum(r.empties for r in self.rounds)

    @property
    def total_successes(self) -> int:
        return sum(r.successes for r in self.rounds)

    @property
    def total_collisions(self) -> int:
        return sum(r.collisions for r in self.rounds)


@dataclass
class TrialStatistics:
    """
    [统计量] 每个 (标签规模 x 估计器) 组合一份
    先在 repeat 次试验中累加，最后 finalize() 统一除以 repeat
    """
    population: int
    repeats: int = 0
    total_slots: float = 0.0
    total_empties: float = 0.0
    total_successes: float = 0.0
    total_collisions: float = 0.0
    total_rounds: float = 0.0
    total_estimator_time: float = 0.0
    estimator_calls: float = 0.0
    mean_estimator_time: float = 0.0
    capped_trials: int = 0        # 触发熔断的试验数 (不参与平均)
    finalized: bool = False

    def accumulate(self, trial: TrialRecord):
        if self.finalized:
            raise SimulationError("cannot accumulate into finalized statistics")
        self.repeats += 1
        self.total_slots += trial.total_slots
        self.total_empties += trial.total_empties
        self.total_successes += trial.total_successes
        self.total_collisions += trial.total_collisions
        self.total_rounds += len(trial.rounds)
        self.total_estimator_time += trial.estimator_time
        self.estimator_calls += trial.estimator_calls
        if not trial.converged:
            self.capped_trials += 1

    def finalize(self) -> 'TrialStatistics':
        if self.finalized or self.repeats == 0:
            return self
        n = float(self.repeats)
        # mean_estimator_time 取累计总耗时 / repeats，即单次试验内估计器的平均总耗时
        self.mean_estimator_time = self.total_estimator_time / n
        self.total_slots /= n
        self.total_empties /= n
        self.total_successes /= n
        self.total_collisions /= n
        self.total_rounds /= n
        self.total_estimator_time /= n
        self.estimator_calls /= n
        self.finalized = True
        return self

    @property
    def efficiency(self) -> float:
        return self.population / self.total_slots if self.total_slots > 0 else 0.0

    @property
    def estimator_time_per_call(self) -> float:
        if self.estimator_calls <= 0:
            return 0.0
        return self.total_estimator_time / self.estimator_calls

    def to_dict(self) -> dict:
        return {
            'population': self.population,
            'repeats': self.repeats,
            'total_slots': self.total_slots,
            'total_empties': self.total_empties,
            'total_successes': self.total_successes,
            'total_collisions': self.total_collisions,
            'total_rounds': self.total_rounds,
            'efficiency': self.efficiency,
            'mean_estimator_time_ms': self.mean_estimator_time * 1e3,
            'estimator_time_per_call_us': self.estimator_time_per_call * 1e6,
            'capped_trials': self.capped_trials,
        }


@dataclass(frozen=True)
class SimulationConfig:
    """
    环境配置 (不可变)
    由 CLI 或调用方构造一次，按值传入 Sweep Driver
    """
    INITIAL_TAGS: int = 100
    INITIAL_WINDOW: int = 64
    STEP: int = 100
    MAXIMUM_TAGS: int = 1000
    REPEAT: int = 10
    SEED: Optional[int] = None
    MAX_WORKERS: int = 1

# ==============================================================================
# 3. 仿真常量
# ==============================================================================

CONSTANTS = {
    'MAX_ROUNDS_LIMIT': 100000,   # 单次试验的帧数熔断
}

# ==============================================================================
# 4. 核心仿真引擎
# ==============================================================================

def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """整个 Sweep 共享的唯一随机源，只在开始时播种一次"""
    return np.random.default_rng(seed)


def assign_tags(rng: np.random.Generator, remaining: int, frame_size: int) -> RoundOutcome:
    """
    一帧的时隙竞争：每个剩余标签独立均匀地选择 [0, frame_size) 中的一个时隙
    """
    if frame_size < 1:
        raise SimulationError(f"frame size must be >= 1, got {frame_size}")
    choices = rng.integers(0, frame_size, size=remaining)
    frame = np.bincount(choices, minlength=frame_size)
    return RoundOutcome.from_frame(frame)


def run_trial(population: int,
              initial_frame_size: int,
              estimator: EstimatorInterface,
              rng: np.random.Generator) -> TrialRecord:
    """
    运行一次完整试验：反复分配时隙，直到剩余标签数为 0
    超过 MAX_ROUNDS_LIMIT 帧仍未识别完的试验提前结束，converged=False
    """
    record = TrialRecord(population=population, remaining=population)
    frame_size = initial_frame_size

    while record.remaining > 0:
        if len(record.rounds) >= CONSTANTS['MAX_ROUNDS_LIMIT']:
            # 熔断: 放弃本次试验，保留已完成的帧，交由统计层标记
            logger.warning(
                "⚠️ trial stopped at %d rounds (population=%d, remaining=%d, estimator=%s)",
                CONSTANTS['MAX_ROUNDS_LIMIT'], population, record.remaining,
                getattr(estimator, 'name', estimator),
            )
            record.converged = False
            break

        # A. 时隙分配 + 分类
        outcome = assign_tags(rng, record.remaining, frame_size)
        record.rounds.append(outcome)

        # B. 成功时隙中的标签被识别
        record.remaining -= outcome.successes
        if record.remaining == 0:
            break

        # C. 估计下一帧长度 (计时)
        start = time.perf_counter()
        next_size = estimator(outcome.empties, outcome.successes, outcome.collisions)
        record.estimator_time += time.perf_counter() - start
        record.estimator_calls += 1

        if next_size < 1:
            raise SimulationError(
                f"estimator {getattr(estimator, 'name', estimator)!r} returned "
                f"frame size {next_size} for {outcome}"
            )
        frame_size = int(next_size)

    return record


def run_round_simulation(population: int,
                         initial_frame_size: int,
                         estimator: EstimatorInterface,
                         repeat: int,
                         rng: np.random.Generator) -> TrialStatistics:
    """
    对同一标签规模重复 repeat 次独立试验，共享同一随机源，返回平均统计量
    """
    stats = TrialStatistics(population=population)
    for _ in range(repeat):
        stats.accumulate(run_trial(population, initial_frame_size, estimator, rng))
    stats.finalize()

    logger.debug(
        "N=%d | %s | slots=%.1f eff=%.4f",
        population, getattr(estimator, 'name', estimator),
        stats.total_slots, stats.efficiency,
    )
    return stats
