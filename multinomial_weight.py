# -*- coding: utf-8 -*-
"""
multinomial_weight.py
多项式系数 a! / (b! * c! * d!) 的增量计算

不直接求阶乘：每一步乘以 a 的当前值，同时除以 b, c, d 的当前值，
四个累加器同步递减。b/c/d 降到 1 以下后不再参与。
似然估计器 (Chen) 使用对数版本，避免大帧长时的浮点上溢。
"""

import math
from typing import Iterator, List, Tuple


def _lockstep_factors(a: float, b: float, c: float, d: float) -> Iterator[Tuple[float, List[float]]]:
    """逐步产出 (乘数, 本步的除数列表)"""
    if a < 0 or b < 0 or c < 0 or d < 0:
        raise ValueError(f"weight arguments must be non-negative, got {(a, b, c, d)}")
    rest = [b, c, d]
    while a > 1.0:
        divisors = []
        for i, value in enumerate(rest):
            if value > 1.0:
                divisors.append(value)
                rest[i] = value - 1.0
        yield a, divisors
        a -= 1.0


def multinomial_weight(a: float, b: float, c: float, d: float) -> float:
    """
    a! / (b! c! d!)，a <= 1 时返回 1.0
    超出 double 表示范围时结果为 inf
    """
    res = 1.0
    for numerator, divisors in _lockstep_factors(a, b, c, d):
        res *= numerator
        for divisor in divisors:
            res /= divisor
    return res


def log_multinomial_weight(a: float, b: float, c: float, d: float) -> float:
    """ln(a! / (b! c! d!))，与 multinomial_weight 相同的同步递减顺序"""
    res = 0.0
    for numerator, divisors in _lockstep_factors(a, b, c, d):
        res += math.log(numerator)
        for divisor in divisors:
            res -= math.log(divisor)
    return res
