# -*- coding: utf-8 -*-
"""
sweep.py
标签规模扫描驱动 (Sweep Driver)

对每个估计器、每个标签规模 (INITIAL_TAGS -> MAXIMUM_TAGS, 步长 STEP)
运行一次 Round Simulator，收集时间序列：总时隙、空闲数、冲突数、效率、估计器耗时。

【随机源】
1. 串行模式: 整个 Sweep 共享唯一随机源，只播种一次，跨试验与估计器连续推进。
2. 并行模式 (MAX_WORKERS > 1): 每个 (估计器, 标签规模) 子任务从
   SeedSequence(SEED).spawn() 获得独立随机源，结果与调度顺序无关。
"""

import time
import logging
import concurrent.futures
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from framework import (
    ConfigurationError,
    EstimatorInterface,
    SimulationConfig,
    TrialStatistics,
    make_rng,
    run_round_simulation,
)
from Algorithm_Config import (
    ESTIMATOR_LIBRARY,
    ESTIMATORS_TO_TEST,
    build_estimator,
    resolve_estimator_names,
)

logger = logging.getLogger(__name__)

EstimatorLike = Union[str, EstimatorInterface, Callable[[int, int, int], int]]


@dataclass
class SweepSeries:
    """单个估计器按标签规模排序的统计序列，交给报表层使用"""
    estimator_name: str
    label: str = ""
    points: List[TrialStatistics] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def populations(self) -> List[int]:
        return [p.population for p in self.points]

    def metric_series(self, metric: str) -> List[Tuple[int, float]]:
        """有序 (标签规模, 指标值) 对"""
        return [(p.population, float(getattr(p, metric))) for p in self.points]

    def to_records(self) -> List[Dict]:
        return [
            {'estimator': self.estimator_name, 'label': self.label or self.estimator_name, **p.to_dict()}
            for p in self.points
        ]

# ==============================================================================
# 1. 配置校验
# ==============================================================================

def validate_config(config: SimulationConfig):
    if config.MAXIMUM_TAGS < config.INITIAL_TAGS:
        raise ConfigurationError(
            f"maximum tags ({config.MAXIMUM_TAGS}) lower than initial tags ({config.INITIAL_TAGS})"
        )
    if config.STEP < 1:
        raise ConfigurationError(f"tag step must be >= 1, got {config.STEP}")
    if config.REPEAT < 1:
        raise ConfigurationError(f"repeat must be >= 1, got {config.REPEAT}")
    if config.INITIAL_WINDOW < 1:
        raise ConfigurationError(f"initial window must be >= 1, got {config.INITIAL_WINDOW}")
    if config.INITIAL_TAGS < 1:
        raise ConfigurationError(f"initial tags must be >= 1, got {config.INITIAL_TAGS}")
    if config.MAX_WORKERS < 1:
        raise ConfigurationError(f"max workers must be >= 1, got {config.MAX_WORKERS}")


def population_sizes(config: SimulationConfig) -> range:
    return range(config.INITIAL_TAGS, config.MAXIMUM_TAGS + 1, config.STEP)

# ==============================================================================
# 2. 单估计器入口
# ==============================================================================

def _simulate_series(config: SimulationConfig,
                     estimator: EstimatorLike,
                     rng: np.random.Generator,
                     name: str,
                     label: str = "") -> SweepSeries:
    series = SweepSeries(estimator_name=name, label=label)
    for n_tags in population_sizes(config):
        stats = run_round_simulation(n_tags, config.INITIAL_WINDOW, estimator, config.REPEAT, rng)
        series.points.append(stats)
    return series


def simulate(initial_population: int,
             initial_frame_size: int,
             step: int,
             maximum_population: int,
             repeat_count: int,
             estimator: EstimatorLike,
             rng: Optional[np.random.Generator] = None,
             name: Optional[str] = None) -> SweepSeries:
    """
    单估计器仿真入口
    estimator 可以是库键/简写、EstimatorInterface 实例，或 (e, s, c) -> int 的纯函数
    """
    config = SimulationConfig(
        INITIAL_TAGS=initial_population,
        INITIAL_WINDOW=initial_frame_size,
        STEP=step,
        MAXIMUM_TAGS=maximum_population,
        REPEAT=repeat_count,
    )
    validate_config(config)

    label = ""
    if isinstance(estimator, str):
        key = resolve_estimator_names([estimator])[0]
        label = ESTIMATOR_LIBRARY[key]["label"]
        name = name or key
        estimator = build_estimator(key)
    if name is None:
        name = getattr(estimator, 'name', None) or getattr(estimator, '__name__', 'estimator')

    return _simulate_series(config, estimator, rng if rng is not None else make_rng(), name, label)

# ==============================================================================
# 3. Sweep (串行 / 多进程)
# ==============================================================================

def run_sweep(config: SimulationConfig,
              estimator_names: Optional[List[str]] = None) -> Dict[str, SweepSeries]:
    """按估计器顺序生成 {库键: SweepSeries}"""
    validate_config(config)
    keys = resolve_estimator_names(estimator_names or ESTIMATORS_TO_TEST)

    if config.MAX_WORKERS > 1:
        return run_parallel_sweep(config, keys)

    rng = make_rng(config.SEED)
    results = {}
    for key in keys:
        start = time.perf_counter()
        results[key] = _simulate_series(
            config, build_estimator(key), rng, key, ESTIMATOR_LIBRARY[key]["label"]
        )
        logger.info("✅ %s done: %d points in %.2fs", key, len(results[key]), time.perf_counter() - start)
    return results


def _sweep_task(task: Dict) -> Dict:
    """
    【Worker 进程函数】
    结果通过 return 返回，随机源由主进程下发的 SeedSequence 构造
    """
    estimator = build_estimator(task['key'])
    rng = np.random.default_rng(task['seed_seq'])
    stats = run_round_simulation(task['n_tags'], task['initial_window'], estimator, task['repeat'], rng)
    return {'key': task['key'], 'index': task['index'], 'stats': stats}


def run_parallel_sweep(config: SimulationConfig,
                       estimator_names: Optional[List[str]] = None) -> Dict[str, SweepSeries]:
    validate_config(config)
    keys = resolve_estimator_names(estimator_names or ESTIMATORS_TO_TEST)
    sizes = list(population_sizes(config))

    # 固定的 spawn 顺序: 估计器优先，其次标签规模
    children = np.random.SeedSequence(config.SEED).spawn(len(keys) * len(sizes))
    tasks = []
    for k, key in enumerate(keys):
        for i, n_tags in enumerate(sizes):
            tasks.append({
                'key': key,
                'index': i,
                'n_tags': n_tags,
                'initial_window': config.INITIAL_WINDOW,
                'repeat': config.REPEAT,
                'seed_seq': children[k * len(sizes) + i],
            })

    collected = {key: [None] * len(sizes) for key in keys}
    logger.info("⏳ dispatching %d tasks to %d workers", len(tasks), config.MAX_WORKERS)
    with concurrent.futures.ProcessPoolExecutor(max_workers=config.MAX_WORKERS) as executor:
        futures = [executor.submit(_sweep_task, t) for t in tasks]
        for future in concurrent.futures.as_completed(futures):
            data = future.result()
            collected[data['key']][data['index']] = data['stats']

    return {
        key: SweepSeries(estimator_name=key, label=ESTIMATOR_LIBRARY[key]["label"], points=collected[key])
        for key in keys
    }
