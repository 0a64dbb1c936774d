"""Day-of-week and holiday coefficient tables used by the progress-rate adjustment.

Weekday keys follow 0=Sunday .. 6=Saturday. Holiday offsets are signed day
counts from the holiday (negative = before). Lookups outside the tables
return 1.0, i.e. no weighting.
"""

from __future__ import annotations

from datetime import date
from enum import Enum


class Season(str, Enum):
    LUNAR_NEW_YEAR = "lunar"
    MID_AUTUMN = "chuseok"


WEEKDAY_WEIGHTS: dict[int, float] = {
    0: 1.37,
    1: 0.73,
    2: 0.82,
    3: 0.89,
    4: 0.94,
    5: 0.91,
    6: 1.57,
}


def _flat_range(start: int, end: int, value: float) -> dict[int, float]:
    return {offset: value for offset in range(start, end + 1)}


LUNAR_NEW_YEAR_WEIGHTS: dict[int, float] = {
    **_flat_range(-60, -31, 1.0),
    **_flat_range(-30, -21, 1.05),
    -20: 1.08, -19: 1.08, -18: 1.10, -17: 1.10,
    -16: 1.12, -15: 1.12, -14: 1.15, -13: 1.15,
    -12: 1.18, -11: 1.18,
    -10: 1.25, -9: 1.35, -8: 1.45, -7: 1.55,
    -6: 1.75, -5: 1.80, -4: 1.90, -3: 1.80,
    -2: 1.70, -1: 1.45,
    0: 0.50, 1: 0.50, 2: 0.60, 3: 0.70,
    4: 0.80, 5: 0.90, 6: 0.95, 7: 1.00,
    **_flat_range(8, 60, 1.0),
}

MID_AUTUMN_WEIGHTS: dict[int, float] = {
    -14: 1.15, -13: 1.15, -12: 1.18, -11: 1.18,
    -10: 1.25, -9: 1.35, -8: 1.45,
    -7: 1.55, -6: 1.75, -5: 1.80, -4: 1.90,
    -3: 1.80, -2: 1.70, -1: 1.45,
    0: 0.50, 1: 0.50, 2: 0.60, 3: 0.70,
    4: 0.80, 5: 0.90, 6: 0.95, 7: 1.00,
}

LUNAR_NEW_YEAR_DATES: dict[int, date] = {
    2020: date(2020, 1, 25),
    2021: date(2021, 2, 12),
    2022: date(2022, 2, 1),
    2023: date(2023, 1, 22),
    2024: date(2024, 2, 10),
    2025: date(2025, 1, 29),
    2026: date(2026, 2, 17),
    2027: date(2027, 2, 6),
    2028: date(2028, 1, 26),
    2029: date(2029, 2, 13),
    2030: date(2030, 2, 3),
}

MID_AUTUMN_DATES: dict[int, date] = {
    2020: date(2020, 10, 1),
    2021: date(2021, 9, 21),
    2022: date(2022, 9, 10),
    2023: date(2023, 9, 29),
    2024: date(2024, 9, 17),
    2025: date(2025, 10, 6),
    2026: date(2026, 9, 25),
    2027: date(2027, 9, 15),
    2028: date(2028, 10, 3),
    2029: date(2029, 9, 22),
    2030: date(2030, 9, 12),
}

_HOLIDAY_DATES: dict[Season, dict[int, date]] = {
    Season.LUNAR_NEW_YEAR: LUNAR_NEW_YEAR_DATES,
    Season.MID_AUTUMN: MID_AUTUMN_DATES,
}
_HOLIDAY_WEIGHTS: dict[Season, dict[int, float]] = {
    Season.LUNAR_NEW_YEAR: LUNAR_NEW_YEAR_WEIGHTS,
    Season.MID_AUTUMN: MID_AUTUMN_WEIGHTS,
}


def sunday_based_weekday(day: date) -> int:
    return (day.weekday() + 1) % 7


def weekday_weight(day_of_week: int) -> float:
    return WEEKDAY_WEIGHTS.get(day_of_week, 1.0)


def holiday_date(season: Season, year: int) -> date | None:
    return _HOLIDAY_DATES[season].get(year)


def holiday_offset(season: Season, day: date) -> int | None:
    """Signed days between `day` and the same year's holiday, None if unknown."""
    holiday = holiday_date(season, day.year)
    if holiday is None:
        return None
    return (day - holiday).days


def holiday_weight(season: Season, offset: int | None) -> float:
    if offset is None:
        return 1.0
    return _HOLIDAY_WEIGHTS[season].get(offset, 1.0)
