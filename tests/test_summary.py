from __future__ import annotations

import pytest

from plforecast.application.evaluator import ForecastEvaluator
from plforecast.application.reporting.rendering import channel_detail_comment, forecast_overall_comment
from plforecast.application.summary import build_card_summary, build_entity_breakdown, build_waterfall


@pytest.fixture
def lines_m(mappings, targets, raw_m):
    return ForecastEvaluator(mappings, targets).evaluate(raw_m, "M").lines


def test_card_summary(lines_m):
    summary = build_card_summary(lines_m)

    assert summary.act_sale.forecast_value == pytest.approx(1017.0)
    assert summary.act_sale.forecast_rate == pytest.approx(1 - 1017.0 / 1800.0)
    assert summary.act_sale.accum_rate == pytest.approx(1 - 339.0 / 600.0)
    assert summary.act_sale.target_rate == pytest.approx(1017.0 / 1130.0)

    assert summary.direct_profit.forecast_value == pytest.approx(174.0)
    assert summary.direct_profit.forecast_rate == pytest.approx(174.0 / 900.0)
    assert summary.direct_profit.target_rate == pytest.approx(174.0 / 160.0)

    assert summary.operating_profit.forecast_value == pytest.approx(104.0)
    assert summary.direct_profit_progress.forecast_rate == pytest.approx(174.0 / 160.0)


def test_card_summary_on_empty_tree_has_no_rates():
    summary = build_card_summary([])

    assert summary.act_sale.forecast_value == 0.0
    assert summary.act_sale.forecast_rate is None
    assert summary.direct_profit.yoy_rate is None
    assert summary.direct_profit_progress.accum_rate is None
    assert set(summary.to_dict()) == {"actSale", "directProfit", "operatingProfit", "directProfitProgress"}


def test_waterfall_steps(lines_m):
    steps = build_waterfall(lines_m)

    assert [step["type"] for step in steps] == [
        "positive",
        "negative",
        "subtotal",
        "negative",
        "subtotal",
        "negative",
        "total",
    ]
    assert [step["value"] for step in steps] == pytest.approx([900.0, -300.0, 600.0, -426.0, 174.0, -70.0, 104.0])


def test_entity_breakdown(mappings, targets, raw_m, raw_i):
    evaluator = ForecastEvaluator(mappings, targets)
    breakdown = build_entity_breakdown(
        {"M": evaluator.evaluate(raw_m, "M").lines, "I": evaluator.evaluate(raw_i, "I").lines}
    )

    sales = breakdown["entitySales"]
    assert [row["entityCode"] for row in sales] == ["M", "I"]
    assert sales[0]["sales"] == pytest.approx(1017.0)
    radar = breakdown["entityRadar"][0]
    assert radar["target"] == pytest.approx(1017.0 / 1130.0 * 100)
    assert radar["prevYear"] == pytest.approx(1017.0 / 1000.0 * 100)


def test_overall_comment_mentions_entity_and_direction(lines_m):
    comment = forecast_overall_comment("MLB", build_card_summary(lines_m).to_dict())

    assert comment.startswith("MLB 실판(V+)")
    assert "개선" in comment
    assert "%p" in comment


def test_channel_comment_without_rows():
    assert channel_detail_comment([]) == "채널 데이터가 없습니다."
