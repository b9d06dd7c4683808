# -*- coding: utf-8 -*-
"""
Tool.py - DFSA Sweep Analytics & Visualization Toolkit

【功能说明】
1. [Storage] save_to_csv 将每个指标分别存储为 raw_{metric_name}.csv。
2. [Format] 拆分后的 CSV 采用 Wide Format (population 为 X 轴列, 估计器名为列)。
3. [Plot] plot_results 按 ESTIMATOR_LIBRARY 中的 style_id 绘制精选指标。
"""

import os
import math
import logging
from typing import Dict, Iterable, List, Optional

import pandas as pd
import matplotlib.pyplot as plt

from Algorithm_Config import ESTIMATOR_LIBRARY, PLOT_STYLE_PALETTE

logger = logging.getLogger(__name__)

X_AXIS_KEY = 'population'

# 图表标题 -> DataFrame 列名
KPI_MAP = {
    'Total Slots': 'total_slots',
    'Identification Efficiency (tags/slot)': 'efficiency',
    'Empty Slots': 'total_empties',
    'Collision Slots': 'total_collisions',
    'Estimator Time per Trial (ms)': 'mean_estimator_time_ms',
    'Estimator Time per Call (us)': 'estimator_time_per_call_us',
}

# 不需要拆分的元数据列
EXCLUDE_COLS = ['estimator', 'label', X_AXIS_KEY, 'repeats']


class SweepAnalytics:
    def __init__(self, series: Optional[Iterable] = None):
        self.raw_data: List[Dict] = []
        for s in series or []:
            self.add_series(s)

    def add_series(self, series):
        """收集一个估计器的整条 SweepSeries"""
        self.raw_data.extend(series.to_records())

    def get_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.raw_data) if self.raw_data else pd.DataFrame()

    def metric_table(self, metric: str) -> pd.DataFrame:
        """[X轴, 估计器A, 估计器B...] 宽表"""
        df = self.get_dataframe()
        if df.empty:
            return df
        pivot = df.pivot_table(index=X_AXIS_KEY, columns='estimator', values=metric, aggfunc='mean')
        pivot.columns.name = None
        return pivot.reset_index()

    def summary(self) -> pd.DataFrame:
        """按估计器聚合的平均表现"""
        df = self.get_dataframe()
        if df.empty:
            return df
        return df.groupby('estimator', sort=False).agg(
            points=(X_AXIS_KEY, 'count'),
            mean_efficiency=('efficiency', 'mean'),
            mean_slots=('total_slots', 'mean'),
            mean_estimator_time_ms=('mean_estimator_time_ms', 'mean'),
            capped_trials=('capped_trials', 'sum'),
        ).reset_index()

    def save_to_csv(self, output_dir: str = "simulation_results") -> List[str]:
        """
        [存储层] 全量备份 + 每个数值指标一份宽表
        """
        if not self.raw_data:
            return []
        os.makedirs(output_dir, exist_ok=True)

        df = self.get_dataframe()
        full_path = os.path.join(output_dir, "00_Raw_Full_Data.csv")
        df.to_csv(full_path, index=False)
        written = [full_path]

        numeric_cols = df.select_dtypes(include=['number']).columns
        metric_cols = [c for c in numeric_cols if c not in EXCLUDE_COLS]
        for col in metric_cols:
            fname = os.path.join(output_dir, f"raw_{col}.csv")
            self.metric_table(col).to_csv(fname, index=False)
            written.append(fname)

        logger.info("✅ %d metric files written to %s", len(written) - 1, output_dir)
        return written

    def plot_results(self, save_path: Optional[str] = None, show: bool = False):
        """
        [展示层] 双列布局绘制 KPI_MAP 中的指标
        """
        df = self.get_dataframe()
        if df.empty:
            return None

        valid_kpis = {k: v for k, v in KPI_MAP.items() if v in df.columns}
        n = len(valid_kpis)
        cols = 2
        rows = math.ceil(n / cols)

        fig, axes = plt.subplots(rows, cols, figsize=(6 * cols, 4 * rows), squeeze=False)
        axes = axes.flatten()

        estimators = list(dict.fromkeys(df['estimator']))
        for idx, (title, col) in enumerate(valid_kpis.items()):
            ax = axes[idx]
            for name in estimators:
                conf = ESTIMATOR_LIBRARY.get(name, {})
                style = PLOT_STYLE_PALETTE[conf.get('style_id', 0) % len(PLOT_STYLE_PALETTE)].copy()
                subset = df[df['estimator'] == name].sort_values(X_AXIS_KEY)
                ax.plot(subset[X_AXIS_KEY], subset[col], label=conf.get('label', name), **style)

            ax.set_title(title, fontsize=11, fontweight='bold')
            ax.set_xlabel("Number of Tags ($N$)")
            ax.grid(True, linestyle='--', alpha=0.5)
            if idx == 0:
                ax.legend(loc='best', fontsize='small', framealpha=0.8)

        # 移除多余子图
        for i in range(n, len(axes)):
            fig.delaxes(axes[i])

        fig.tight_layout()
        if save_path:
            os.makedirs(os.path.dirname(save_path) or ".", exist_ok=True)
            fig.savefig(save_path, dpi=300, bbox_inches='tight')
            logger.info("📊 figure saved to %s", save_path)
        if show:
            plt.show()
        else:
            plt.close(fig)
        return fig
