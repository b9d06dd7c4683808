# -*- coding: utf-8 -*-
"""
Run_Sweep.py
DFSA 帧长估计器对比实验入口

示例:
    python Run_Sweep.py -w 64 -t 100 -s 100 -m 1000 -r 20 -e el -e lb -e chen
    python Run_Sweep.py -w 16 -t 50 -s 50 -r 5 --workers 4 --plot
"""

import sys
import time
import logging
import argparse
import multiprocessing
from typing import List, Optional

from framework import SimulationConfig, SimulationError
from Algorithm_Config import ESTIMATORS_TO_TEST, ESTIMATOR_ALIASES
from sweep import run_sweep
from Tool import SweepAnalytics

logger = logging.getLogger("Run_Sweep")

DEFAULT_OUTPUT_DIR = "Results_Sweep"
DEFAULT_MAXIMUM_STEPS = 10


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="Run_Sweep",
        description="Compare DFSA frame-size estimators over a sweep of tag population sizes.",
    )
    parser.add_argument("-w", "--window", type=int, required=True, help="initial frame size")
    parser.add_argument("-t", "--tags", type=int, required=True, help="initial tag population")
    parser.add_argument("-r", "--repeat", type=int, required=True, help="trials per population size")
    parser.add_argument("-s", "--step", type=int, required=True, help="population increment")
    parser.add_argument("-m", "--maximum", type=int, default=None,
                        help=f"maximum population (default: tags + step * {DEFAULT_MAXIMUM_STEPS})")
    parser.add_argument("-e", "--estimator", action="append", dest="estimators", default=None,
                        help=f"estimator to run, repeatable; one of {sorted(ESTIMATOR_ALIASES)}")
    parser.add_argument("--seed", type=int, default=None, help="seed of the shared random stream")
    parser.add_argument("--workers", type=int, default=1, help="worker processes (1 = sequential)")
    parser.add_argument("-o", "--output-dir", default=DEFAULT_OUTPUT_DIR)
    parser.add_argument("--plot", action="store_true", help="also render a summary figure")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    maximum = args.maximum
    if maximum is None:
        maximum = args.tags + args.step * DEFAULT_MAXIMUM_STEPS
        logger.info("maximum tags undefined - using default value of %d", maximum)
    return SimulationConfig(
        INITIAL_TAGS=args.tags,
        INITIAL_WINDOW=args.window,
        STEP=args.step,
        MAXIMUM_TAGS=maximum,
        REPEAT=args.repeat,
        SEED=args.seed,
        MAX_WORKERS=args.workers,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(message)s', datefmt='%H:%M:%S')

    config = config_from_args(args)
    estimators = args.estimators or ESTIMATORS_TO_TEST

    logger.info("🚀 sweep N=%d..%d step %d | window=%d | repeat=%d | estimators=%s",
                config.INITIAL_TAGS, config.MAXIMUM_TAGS, config.STEP,
                config.INITIAL_WINDOW, config.REPEAT, estimators)

    start = time.time()
    try:
        results = run_sweep(config, estimators)
    except SimulationError as e:
        # 配置错误与估计器违约 (帧长 < 1) 都在此终止
        logger.error("❌ %s", e)
        return 1
    logger.info("⏳ sweep finished in %.2fs", time.time() - start)

    analytics = SweepAnalytics(results.values())
    capped = sum(p.capped_trials for s in results.values() for p in s.points)
    if capped:
        logger.warning("⚠️ %d trial(s) hit the round cap and were kept as non-converged", capped)
    logger.info("📊 summary:\n%s", analytics.summary().to_string(index=False))
    analytics.save_to_csv(output_dir=args.output_dir)

    if args.plot:
        analytics.plot_results(save_path=f"{args.output_dir}/Sweep_Summary.png")
    return 0


if __name__ == "__main__":
    multiprocessing.freeze_support()
    sys.exit(main())
