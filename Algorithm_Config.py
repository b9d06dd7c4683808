# -*- coding: utf-8 -*-
"""
Algorithm_Config.py

【配置说明】
1. ESTIMATOR_LIBRARY: 估计器工厂库 (类 + 构造参数 + 绘图样式)。
2. ESTIMATOR_ALIASES: 命令行中的简写 (el / lb / chen-epsilon-2 ...) 映射到库中的键。
3. PLOT_STYLE_PALETTE: 区分度高的绘图样式，通过 style_id 选取。
"""

from typing import List

from framework import ConfigurationError, EstimatorInterface
from eom_lee_algo import EomLeeEstimator
from chen_algo import ChenEstimator, CHEN_EPSILON, CHEN_EPSILON_2, CHEN_EPSILON_5
from baseline_algos import LowerBoundEstimator, FixedFrameEstimator

# =========================================================
# 绘图样式库 (Look-up Table)
# Chen 三个阈值同一色系由深到浅，EoM-Lee 单独配色，两条基准线用黑/灰
# =========================================================
PLOT_STYLE_PALETTE = [
    # Style 0: EoM-Lee, 墨绿实线 + 实心六边形
    {"color": "#00665E", "linestyle": "-", "linewidth": 1.6,
     "marker": "h", "markersize": 7, "markerfacecolor": "#00665E",
     "markeredgecolor": "white", "markeredgewidth": 0.6, "zorder": 50},
    # Style 1: Chen eps=2^-5, 深蓝实线 + 下三角
    {"color": "#08306B", "linestyle": "-", "linewidth": 1.2,
     "marker": "v", "markersize": 6, "markerfacecolor": "#08306B",
     "markeredgecolor": "#08306B", "zorder": 45},
    # Style 2: Chen eps=1e-2, 中蓝长虚线 + 左三角
    {"color": "#2171B5", "linestyle": (0, (6, 2)), "linewidth": 1.2,
     "marker": "<", "markersize": 6, "markerfacecolor": "none",
     "markeredgecolor": "#2171B5", "markeredgewidth": 1.2, "zorder": 44},
    # Style 3: Chen eps=1e-5, 浅蓝点划线 + 右三角
    {"color": "#6BAED6", "linestyle": (0, (4, 1, 1, 1)), "linewidth": 1.2,
     "marker": ">", "markersize": 6, "markerfacecolor": "none",
     "markeredgecolor": "#6BAED6", "markeredgewidth": 1.2, "zorder": 43},
    # Style 4: 下界, 黑色短虚线 + 叉
    {"color": "black", "linestyle": (0, (3, 3)), "linewidth": 1.0,
     "marker": "x", "markersize": 6, "zorder": 30},
    # Style 5: 固定帧长, 灰色稀疏点线 + 加号
    {"color": "#969696", "linestyle": (0, (1, 3)), "linewidth": 1.4,
     "marker": "+", "markersize": 7, "zorder": 20},
]

# 实验激活控制 (CLI 未指定 -e 时的默认顺序)
ESTIMATORS_TO_TEST = [
    'LOWER_BOUND',
    'EOM_LEE',
    'CHEN',
    'CHEN_EPS_2',
    'CHEN_EPS_5',
]

# 估计器详细配置库 (Factory Pattern)
ESTIMATOR_LIBRARY = {
    'EOM_LEE': {
        "class": EomLeeEstimator,
        "params": {},
        "style_id": 0,
        "label": "EoM-Lee",
    },
    'CHEN': {
        "class": ChenEstimator,
        "params": {"epsilon": CHEN_EPSILON},
        "style_id": 1,
        "label": r"Chen ($\epsilon=2^{-5}$)",
    },
    'CHEN_EPS_2': {
        "class": ChenEstimator,
        "params": {"epsilon": CHEN_EPSILON_2},
        "style_id": 2,
        "label": r"Chen ($\epsilon=10^{-2}$)",
    },
    'CHEN_EPS_5': {
        "class": ChenEstimator,
        "params": {"epsilon": CHEN_EPSILON_5},
        "style_id": 3,
        "label": r"Chen ($\epsilon=10^{-5}$)",
    },
    'LOWER_BOUND': {
        "class": LowerBoundEstimator,
        "params": {},
        "style_id": 4,
        "label": "Lower Bound",
    },
    'FIXED_FRAME': {
        "class": FixedFrameEstimator,
        "params": {"frame_size": 10},
        "style_id": 5,
        "label": "Fixed Frame (10)",
    },
}

# 命令行简写
ESTIMATOR_ALIASES = {
    'el': 'EOM_LEE',
    'eom-lee': 'EOM_LEE',
    'chen': 'CHEN',
    'chen-epsilon-2': 'CHEN_EPS_2',
    'chen-epsilon-5': 'CHEN_EPS_5',
    'lb': 'LOWER_BOUND',
    'lower-bound': 'LOWER_BOUND',
    'ff': 'FIXED_FRAME',
    'fixed': 'FIXED_FRAME',
}


def resolve_estimator_name(name: str) -> str:
    """接受库键 (EOM_LEE) 或命令行简写 (el / eom-lee)"""
    if name in ESTIMATOR_LIBRARY:
        return name
    key = ESTIMATOR_ALIASES.get(name.lower())
    if key is None:
        known = sorted(set(ESTIMATOR_LIBRARY) | set(ESTIMATOR_ALIASES))
        raise ConfigurationError(f"unknown estimator '{name}', expected one of {known}")
    return key


def build_estimator(name: str) -> EstimatorInterface:
    conf = ESTIMATOR_LIBRARY[resolve_estimator_name(name)]
    return conf["class"](**conf.get("params", {}))


def resolve_estimator_names(names: List[str]) -> List[str]:
    """保持顺序并去重"""
    resolved = []
    for name in names:
        key = resolve_estimator_name(name)
        if key not in resolved:
            resolved.append(key)
    return resolved
