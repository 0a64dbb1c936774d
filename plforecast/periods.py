"""Reporting-period helpers (YYYY-MM months and cut-off dates)."""

from __future__ import annotations

import calendar
from datetime import date


def parse_year_month(ym: str) -> tuple[int, int]:
    parts = str(ym or "").strip().split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid year-month (expected YYYY-MM): {ym!r}")
    try:
        year, month = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Invalid year-month (expected YYYY-MM): {ym!r}") from exc
    if month < 1 or month > 12:
        raise ValueError(f"Invalid month in year-month: {ym!r}")
    return year, month


def month_days(ym: str) -> int:
    year, month = parse_year_month(ym)
    return calendar.monthrange(year, month)[1]


def prev_year_month(ym: str) -> str:
    year, month = parse_year_month(ym)
    return f"{year - 1:04d}-{month:02d}"


def accum_days(ym: str, cutoff: date) -> int:
    """Days elapsed in the reporting month up to and including the cut-off."""
    year, month = parse_year_month(ym)
    if (cutoff.year, cutoff.month) < (year, month):
        return 0
    if (cutoff.year, cutoff.month) > (year, month):
        return month_days(ym)
    return cutoff.day


def format_year_month(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"
