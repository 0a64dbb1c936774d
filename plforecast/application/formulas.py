"""Pure line formulas shared by single-entity evaluation and multi-entity merge.

Every formula works on `Figures` resolved from its dependency lines, so the
same code runs against raw account sums and against already-merged trees.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Sequence

from plforecast.application.reporting.metrics import (
    achv_rate,
    finite_or_none,
    progress_rate,
    sum_or_zero,
    sum_present,
    to_float,
    yoy_rate,
)
from plforecast.config import VAT_DIVISOR
from plforecast.domain.models import LineType, PlLine


@dataclass(frozen=True)
class Figures:
    prev_year: float | None = None
    prev_year_accum: float | None = None
    accum: float | None = None
    target: float | None = None
    forecast: float | None = None

    @classmethod
    def of(cls, line: PlLine) -> "Figures":
        return cls(
            prev_year=line.prev_year,
            prev_year_accum=line.prev_year_accum,
            accum=line.accum,
            target=line.target,
            forecast=line.forecast,
        )


FIGURE_FIELDS: tuple[str, ...] = tuple(item.name for item in fields(Figures))


def net_of_vat(value: float | None, vat_divisor: float = VAT_DIVISOR) -> float | None:
    if value is None:
        return None
    return finite_or_none(value / vat_divisor)


def difference(minuend: float | None, *subtrahends: float | None) -> float | None:
    """`minuend - sum(subtrahends)` with null operands read as zero; None if all are null."""
    if minuend is None and all(value is None for value in subtrahends):
        return None
    return finite_or_none(to_float(minuend) - sum(to_float(value) for value in subtrahends))


def run_rate_forecast(accum: float | None, accum_days: int, month_days: int) -> float | None:
    if accum is None or accum_days <= 0:
        return None
    return finite_or_none(accum / accum_days * month_days)


def variable_cost_forecast(
    target: float | None,
    reference_target: float | None,
    reference_forecast: float | None,
) -> float | None:
    """Target cost scaled by the reference revenue's forecast-to-target ratio."""
    if target is None or reference_target is None or reference_forecast is None:
        return None
    if reference_target <= 0 or reference_forecast <= 0:
        return None
    return finite_or_none(target / reference_target * reference_forecast)


def rollup(children: Sequence[Figures], line_type: LineType) -> Figures:
    target = sum_or_zero(child.target for child in children)
    forecast = sum_or_zero(child.forecast for child in children)
    if line_type is LineType.OPEX_SUM:
        forecast = target

    prev_year_accum = sum_present(child.prev_year_accum for child in children)
    if prev_year_accum is None and line_type is not LineType.COGS_SUM:
        prev_year_accum = 0.0

    return Figures(
        prev_year=sum_or_zero(child.prev_year for child in children),
        prev_year_accum=prev_year_accum,
        accum=sum_or_zero(child.accum for child in children),
        target=target,
        forecast=forecast,
    )


def channel_rollup(children: Sequence[Figures]) -> Figures:
    return Figures(
        prev_year=sum_present(child.prev_year for child in children),
        prev_year_accum=sum_present(child.prev_year_accum for child in children),
        accum=sum_present(child.accum for child in children),
        target=sum_present(child.target for child in children),
        forecast=sum_present(child.forecast for child in children),
    )


def gross_profit(revenue_vat_inc: Figures, cogs: Figures, vat_divisor: float = VAT_DIVISOR) -> Figures:
    values = {
        name: difference(net_of_vat(getattr(revenue_vat_inc, name), vat_divisor), getattr(cogs, name))
        for name in FIGURE_FIELDS
    }
    return Figures(**values)


def direct_profit(gross: Figures, direct_costs: Figures) -> Figures:
    values = {name: difference(getattr(gross, name), getattr(direct_costs, name)) for name in FIGURE_FIELDS}
    return Figures(**values)


def operating_profit(gross: Figures, direct_costs: Figures, opex: Figures) -> Figures:
    values = {
        name: difference(getattr(gross, name), getattr(direct_costs, name), getattr(opex, name))
        for name in FIGURE_FIELDS
    }
    return Figures(**values)


def profit_figures(line_type: LineType, dependencies: Sequence[Figures]) -> Figures:
    if line_type is LineType.GROSS_PROFIT:
        revenue, cogs = dependencies
        return gross_profit(revenue, cogs)
    if line_type is LineType.DIRECT_PROFIT:
        gross, direct_costs = dependencies
        return direct_profit(gross, direct_costs)
    if line_type is LineType.OPERATING_PROFIT:
        gross, direct_costs, opex = dependencies
        return operating_profit(gross, direct_costs, opex)
    raise ValueError(f"Not a profit line type: {line_type}")


def apply_figures(line: PlLine, figures: Figures) -> PlLine:
    line.prev_year = figures.prev_year
    line.prev_year_accum = figures.prev_year_accum
    line.accum = figures.accum
    line.target = figures.target
    line.forecast = figures.forecast
    return apply_rates(line)


def apply_rates(line: PlLine) -> PlLine:
    line.yoy_rate = yoy_rate(line.forecast, line.prev_year)
    line.achv_rate = achv_rate(line.forecast, line.target)
    line.prev_year_progress_rate = progress_rate(line.prev_year_accum, line.prev_year)
    return line
