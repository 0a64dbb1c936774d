"""Shared numeric/formatting utilities for P&L figures."""

from __future__ import annotations

import math
from typing import Any, Iterable


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    return float(value)


def finite_or_none(value: float | None) -> float | None:
    if value is None:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def safe_divide(num: float | None, den: float | None) -> float | None:
    if num is None or den is None or den == 0:
        return None
    return finite_or_none(num / den)


def sum_present(values: Iterable[float | None]) -> float | None:
    """Sum of non-null values; None when every value is null."""
    total = 0.0
    has_value = False
    for value in values:
        if value is None:
            continue
        total += value
        has_value = True
    return total if has_value else None


def sum_or_zero(values: Iterable[float | None]) -> float:
    return sum(to_float(value) for value in values)


def yoy_rate(forecast: float | None, prev_year: float | None) -> float | None:
    ratio = safe_divide(forecast, prev_year)
    if ratio is None:
        return None
    return ratio - 1


def achv_rate(forecast: float | None, target: float | None) -> float | None:
    return safe_divide(forecast, target)


def progress_rate(prev_year_accum: float | None, prev_year: float | None) -> float | None:
    return safe_divide(prev_year_accum, prev_year)


def fmt_k(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{round(value / 1000):,.0f}"


def fmt_pct(value: float | None, digits: int = 1) -> str:
    if value is None:
        return "-"
    return f"{value * 100:.{digits}f}%"


def fmt_pp(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value * 100:+.1f}%p"


def trend(value: float | None, eps: float = 1e-9) -> str:
    if value is None:
        return "unknown"
    if value > eps:
        return "up"
    if value < -eps:
        return "down"
    return "flat"
