"""Card summary and chart payloads derived from an evaluated P&L tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

from plforecast.application.reporting.metrics import safe_divide, to_float
from plforecast.application.reporting.selectors import index_lines
from plforecast.config import ENTITY_LABELS
from plforecast.domain.definitions import (
    ACT_SALE_VAT_EXC_ID,
    ACT_SALE_VAT_INC_ID,
    COGS_SUM_ID,
    DIRECT_COST_SUM_ID,
    GROSS_PROFIT_ID,
    OPERATING_PROFIT_ID,
    OPEX_SUM_ID,
    TAG_SALE_ID,
)
from plforecast.domain.models import PlLine


@dataclass(frozen=True)
class CardData:
    accum_value: float
    accum_rate: float | None
    forecast_value: float
    forecast_rate: float | None
    target_rate: float | None
    yoy_rate: float | None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accumValue": self.accum_value,
            "accumRate": self.accum_rate,
            "forecastValue": self.forecast_value,
            "forecastRate": self.forecast_rate,
            "targetRate": self.target_rate,
            "yoyRate": self.yoy_rate,
        }


@dataclass(frozen=True)
class ProgressCard:
    accum_rate: float | None
    forecast_rate: float | None

    def to_dict(self) -> Dict[str, Any]:
        return {"accumRate": self.accum_rate, "forecastRate": self.forecast_rate}


@dataclass(frozen=True)
class CardSummary:
    act_sale: CardData
    direct_profit: CardData
    operating_profit: CardData
    direct_profit_progress: ProgressCard

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actSale": self.act_sale.to_dict(),
            "directProfit": self.direct_profit.to_dict(),
            "operatingProfit": self.operating_profit.to_dict(),
            "directProfitProgress": self.direct_profit_progress.to_dict(),
        }


def _value(lines: Mapping[str, PlLine], line_id: str, field: str) -> float:
    line = lines.get(line_id)
    if line is None:
        return 0.0
    return to_float(getattr(line, field))


def _rate_if_positive(num: float, den: float) -> float | None:
    return safe_divide(num, den) if den > 0 else None


def _discount_rate(vat_inc: float, tag_sale: float) -> float | None:
    ratio = _rate_if_positive(vat_inc, tag_sale)
    return None if ratio is None else 1 - ratio


def build_card_summary(lines: Sequence[PlLine]) -> CardSummary:
    """Actual sales, direct profit, operating profit and direct profit progress cards.

    Absent lines read as zero; ratios stay None when their base is not positive.
    """
    indexed = index_lines(lines)

    def direct_profit(field: str) -> float:
        return _value(indexed, GROSS_PROFIT_ID, field) - _value(indexed, DIRECT_COST_SUM_ID, field)

    dp_accum = direct_profit("accum")
    dp_forecast = direct_profit("forecast")
    dp_prev_year = direct_profit("prev_year")
    dp_target = direct_profit("target")

    sale_accum = _value(indexed, ACT_SALE_VAT_INC_ID, "accum")
    sale_forecast = _value(indexed, ACT_SALE_VAT_INC_ID, "forecast")
    vat_exc_accum = _value(indexed, ACT_SALE_VAT_EXC_ID, "accum")
    vat_exc_forecast = _value(indexed, ACT_SALE_VAT_EXC_ID, "forecast")
    op_accum = _value(indexed, OPERATING_PROFIT_ID, "accum")
    op_forecast = _value(indexed, OPERATING_PROFIT_ID, "forecast")

    act_sale_line = indexed.get(ACT_SALE_VAT_INC_ID)
    op_line = indexed.get(OPERATING_PROFIT_ID)
    dp_yoy = safe_divide(dp_forecast, dp_prev_year)

    return CardSummary(
        act_sale=CardData(
            accum_value=sale_accum,
            accum_rate=_discount_rate(sale_accum, _value(indexed, TAG_SALE_ID, "accum")),
            forecast_value=sale_forecast,
            forecast_rate=_discount_rate(sale_forecast, _value(indexed, TAG_SALE_ID, "forecast")),
            target_rate=act_sale_line.achv_rate if act_sale_line else None,
            yoy_rate=act_sale_line.yoy_rate if act_sale_line else None,
        ),
        direct_profit=CardData(
            accum_value=dp_accum,
            accum_rate=_rate_if_positive(dp_accum, vat_exc_accum),
            forecast_value=dp_forecast,
            forecast_rate=_rate_if_positive(dp_forecast, vat_exc_forecast),
            target_rate=safe_divide(dp_forecast, dp_target),
            yoy_rate=None if dp_yoy is None else dp_yoy - 1,
        ),
        operating_profit=CardData(
            accum_value=op_accum,
            accum_rate=_rate_if_positive(op_accum, vat_exc_accum),
            forecast_value=op_forecast,
            forecast_rate=_rate_if_positive(op_forecast, vat_exc_forecast),
            target_rate=op_line.achv_rate if op_line else None,
            yoy_rate=op_line.yoy_rate if op_line else None,
        ),
        direct_profit_progress=ProgressCard(
            accum_rate=safe_divide(dp_accum, dp_target),
            forecast_rate=safe_divide(dp_forecast, dp_target),
        ),
    )


def build_waterfall(lines: Sequence[PlLine]) -> List[Dict[str, Any]]:
    """Seven-step forecast bridge from net revenue to operating profit."""
    indexed = index_lines(lines)
    gross = _value(indexed, GROSS_PROFIT_ID, "forecast")
    direct_costs = _value(indexed, DIRECT_COST_SUM_ID, "forecast")
    return [
        {"name": "실판매출", "value": _value(indexed, ACT_SALE_VAT_EXC_ID, "forecast"), "type": "positive"},
        {"name": "매출원가", "value": -_value(indexed, COGS_SUM_ID, "forecast"), "type": "negative"},
        {"name": "매출총이익", "value": gross, "type": "subtotal"},
        {"name": "직접비", "value": -direct_costs, "type": "negative"},
        {"name": "직접이익", "value": gross - direct_costs, "type": "subtotal"},
        {"name": "영업비", "value": -_value(indexed, OPEX_SUM_ID, "forecast"), "type": "negative"},
        {"name": "영업이익", "value": _value(indexed, OPERATING_PROFIT_ID, "forecast"), "type": "total"},
    ]


def build_entity_breakdown(entity_lines: Mapping[str, Sequence[PlLine]]) -> Dict[str, List[Dict[str, Any]]]:
    """Per-entity sales/operating profit bars and achievement/yoy radar points."""
    sales: List[Dict[str, Any]] = []
    radar: List[Dict[str, Any]] = []
    for entity, lines in entity_lines.items():
        indexed = index_lines(lines)
        label = ENTITY_LABELS.get(entity, entity)
        act_sale = indexed.get(ACT_SALE_VAT_INC_ID)
        sales.append(
            {
                "entity": label,
                "entityCode": entity,
                "sales": _value(indexed, ACT_SALE_VAT_INC_ID, "forecast"),
                "operatingProfit": _value(indexed, OPERATING_PROFIT_ID, "forecast"),
            }
        )
        radar.append(
            {
                "entity": label,
                "target": to_float(act_sale.achv_rate if act_sale else None) * 100,
                "prevYear": (to_float(act_sale.yoy_rate if act_sale else None) + 1) * 100,
            }
        )
    return {"entitySales": sales, "entityRadar": radar}
