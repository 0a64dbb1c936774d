"""Text rendering helpers for the forecast summary."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from plforecast.application.reporting.metrics import fmt_k, fmt_pct, fmt_pp, trend

_TREND_KR = {"up": "개선", "down": "하락", "flat": "보합", "unknown": "판단불가"}


def _delta(current: float | None, base: float | None) -> float | None:
    if current is None or base is None:
        return None
    return current - base


def forecast_overall_comment(entity_label: str, summary: Dict[str, Any]) -> str:
    """One-paragraph Korean headline built from a card summary payload."""
    act_sale = summary.get("actSale", {})
    direct_profit = summary.get("directProfit", {})
    operating_profit = summary.get("operatingProfit", {})

    direction = _TREND_KR[trend(act_sale.get("yoyRate"))]
    discount_change = _delta(act_sale.get("forecastRate"), act_sale.get("accumRate"))
    return (
        f"{entity_label} 실판(V+) 월말 예상 {fmt_k(act_sale.get('forecastValue'))}"
        f"(목표 {fmt_pct(act_sale.get('targetRate'))}, 전년비 {fmt_pct(act_sale.get('yoyRate'))})로 {direction}. "
        f"할인율 {fmt_pct(act_sale.get('forecastRate'))}(누적 대비 {fmt_pp(discount_change)}). "
        f"직접이익 {fmt_k(direct_profit.get('forecastValue'))}(이익율 {fmt_pct(direct_profit.get('forecastRate'))}), "
        f"영업이익 {fmt_k(operating_profit.get('forecastValue'))}(이익율 {fmt_pct(operating_profit.get('forecastRate'))})."
    )


def channel_detail_comment(rows: Sequence[Dict[str, Any]]) -> str:
    lines: List[str] = []
    for row in rows:
        if row.get("actSaleVatInc") is None:
            continue
        lines.append(
            f"{row.get('label', '')}: 실판 {fmt_k(row.get('actSaleVatInc'))}, "
            f"할인율 {fmt_pct(row.get('discountRate'))}, 매출총이익율 {fmt_pct(row.get('grossProfitRate'))}"
        )
    if not lines:
        return "채널 데이터가 없습니다."
    return " | ".join(lines)
