"""Channel forecast policies and the per-channel breakdown table.

Dealer channels are forecast to plan. Direct channels are interpolated from
the prior year's progress rate, and channel cost of goods follows the
tag-price cost ratio of the same channel.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Sequence

from plforecast.application.formulas import Figures, net_of_vat
from plforecast.application.reporting.metrics import finite_or_none, safe_divide
from plforecast.application.reporting.selectors import line_field
from plforecast.application.seasonal import adjust_progress_rate
from plforecast.config import VAT_DIVISOR
from plforecast.domain.definitions import (
    ACT_SALE_VAT_INC_ID,
    CHANNEL_LABELS,
    COGS_ID,
    TAG_SALE_ID,
    channel_line_id,
)
from plforecast.domain.models import SALES_CHANNELS, Channel, ChannelFigures, PlLine


def channel_progress_rate(
    figures: ChannelFigures,
    year_month: str | None = None,
    cutoff_date: date | None = None,
) -> float | None:
    """Prior-year cumulative / prior-year full month, holiday adjusted when a period is given."""
    if figures.prev_year_accum is None or figures.prev_year is None or figures.prev_year == 0:
        return None
    if year_month and cutoff_date is not None:
        rate: float | None = adjust_progress_rate(
            year_month, cutoff_date, figures.prev_year_accum, figures.prev_year
        ).rate
    else:
        rate = safe_divide(figures.prev_year_accum, figures.prev_year)
    if rate is None or rate <= 0:
        return None
    return finite_or_none(rate)


def direct_channel_forecast(accum: float | None, rate: float | None) -> float | None:
    return safe_divide(accum, rate)


def channel_sales_forecast(
    channel: Channel,
    figures: ChannelFigures,
    year_month: str | None = None,
    cutoff_date: date | None = None,
) -> float | None:
    if channel.is_dealer:
        return figures.target
    return direct_channel_forecast(figures.accum, channel_progress_rate(figures, year_month, cutoff_date))


def tag_cost_ratio(cogs: float | None, tag_sale: float | None, vat_divisor: float = VAT_DIVISOR) -> float | None:
    """Cost of goods relative to tag-price sales, both on a VAT-included basis."""
    if cogs is None:
        return None
    return safe_divide(cogs * vat_divisor, tag_sale)


def channel_cogs_forecast(
    channel: Channel,
    cogs: ChannelFigures,
    tag_sale: ChannelFigures,
    tag_sale_forecast: float | None,
    vat_divisor: float = VAT_DIVISOR,
) -> float | None:
    if channel.is_dealer:
        return cogs.target
    ratio = tag_cost_ratio(cogs.accum, tag_sale.accum, vat_divisor)
    if ratio is None or tag_sale_forecast is None:
        return None
    return finite_or_none(tag_sale_forecast * ratio / vat_divisor)


def channel_figures(figures: ChannelFigures, forecast: float | None) -> Figures:
    return Figures(
        prev_year=figures.prev_year,
        prev_year_accum=figures.prev_year_accum,
        accum=figures.accum,
        target=figures.target,
        forecast=forecast,
    )


def _discount_rate(vat_inc: float | None, tag_sale: float | None) -> float | None:
    ratio = safe_divide(vat_inc, tag_sale)
    return None if ratio is None else 1 - ratio


def _gross_profit(vat_exc: float | None, cogs: float | None) -> float | None:
    if vat_exc is None or cogs is None:
        return None
    return finite_or_none(vat_exc - cogs)


def _breakdown_row(channel: Channel, tag_sale: float | None, vat_inc: float | None, cogs: float | None) -> Dict[str, Any]:
    vat_exc = net_of_vat(vat_inc)
    gross_profit = _gross_profit(vat_exc, cogs)
    return {
        "channel": channel.value,
        "label": CHANNEL_LABELS[channel],
        "tagSale": tag_sale,
        "actSaleVatInc": vat_inc,
        "actSaleVatExc": vat_exc,
        "cogs": cogs,
        "discountRate": _discount_rate(vat_inc, tag_sale),
        "cogsRate": safe_divide(cogs, vat_exc),
        "tagCogsRate": tag_cost_ratio(cogs, tag_sale),
        "grossProfit": gross_profit,
        "grossProfitRate": safe_divide(gross_profit, vat_exc),
    }


def build_channel_breakdown(lines: Sequence[PlLine], field: str = "forecast") -> List[Dict[str, Any]]:
    """Per-channel sales, cost and margin rows read from an evaluated tree."""
    rows: List[Dict[str, Any]] = []
    for channel in SALES_CHANNELS:
        rows.append(
            _breakdown_row(
                channel,
                tag_sale=line_field(lines, channel_line_id(TAG_SALE_ID, channel), field),
                vat_inc=line_field(lines, channel_line_id(ACT_SALE_VAT_INC_ID, channel), field),
                cogs=line_field(lines, channel_line_id(COGS_ID, channel), field),
            )
        )
    rows.append(
        _breakdown_row(
            Channel.TOTAL,
            tag_sale=line_field(lines, TAG_SALE_ID, field),
            vat_inc=line_field(lines, ACT_SALE_VAT_INC_ID, field),
            cogs=line_field(lines, COGS_ID, field),
        )
    )
    return rows
