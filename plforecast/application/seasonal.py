"""Holiday-weighted progress rate (how far through the month, relative to last year)."""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from plforecast.domain.coefficients import (
    Season,
    holiday_offset,
    holiday_weight,
    sunday_based_weekday,
    weekday_weight,
)
from plforecast.periods import parse_year_month

logger = logging.getLogger(__name__)

SEASON_BY_MONTH: dict[int, Season] = {
    1: Season.LUNAR_NEW_YEAR,
    2: Season.LUNAR_NEW_YEAR,
    9: Season.MID_AUTUMN,
    10: Season.MID_AUTUMN,
}


@dataclass(frozen=True)
class ProgressRate:
    rate: float
    adjusted: bool
    season: Season | None = None


def season_for_month(month: int) -> Season | None:
    return SEASON_BY_MONTH.get(month)


def _same_day_in_year(day: date, year: int) -> date | None:
    try:
        return day.replace(year=year)
    except ValueError:
        return None


def day_weight(prior_day: date, season: Season, current_year: int) -> float:
    """Prior-year weekday pattern combined with the current year's holiday position."""
    current_day = _same_day_in_year(prior_day, current_year)
    offset = holiday_offset(season, current_day) if current_day is not None else None
    return weekday_weight(sunday_based_weekday(prior_day)) * holiday_weight(season, offset)


def weighted_day_sum(days: Iterable[date], season: Season, current_year: int) -> float:
    return sum(day_weight(day, season, current_year) for day in days)


def month_range(year: int, month: int, last_day: int | None = None) -> list[date]:
    days_in_month = calendar.monthrange(year, month)[1]
    end = days_in_month if last_day is None else max(0, min(last_day, days_in_month))
    return [date(year, month, day) for day in range(1, end + 1)]


def adjust_progress_rate(
    year_month: str,
    cutoff_date: date,
    prior_year_cumulative: float,
    prior_year_full_month: float,
) -> ProgressRate:
    """Prior-year progress rate, holiday weighted in lunar new year and mid-autumn months."""
    if prior_year_full_month <= 0:
        return ProgressRate(rate=0.0, adjusted=False)

    current_year, month = parse_year_month(year_month)
    season = season_for_month(month)
    if season is None:
        return ProgressRate(rate=prior_year_cumulative / prior_year_full_month, adjusted=False)

    prior_year = current_year - 1
    numerator = weighted_day_sum(month_range(prior_year, month, cutoff_date.day), season, current_year)
    denominator = weighted_day_sum(month_range(prior_year, month), season, current_year)
    rate = numerator / denominator if denominator > 0 else 0.0
    logger.debug(
        "Seasonal progress rate %s cutoff=%s season=%s rate=%.4f",
        year_month,
        cutoff_date.isoformat(),
        season.value,
        rate,
    )
    return ProgressRate(rate=rate, adjusted=True, season=season)
