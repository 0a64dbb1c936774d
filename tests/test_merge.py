from __future__ import annotations

import pytest

from plforecast.application.evaluator import ForecastEvaluator
from plforecast.application.merge import merge_line_trees
from plforecast.application.reporting.selectors import index_lines
from plforecast.domain.models import PlLine


@pytest.fixture
def entity_trees(mappings, targets, raw_m, raw_i):
    evaluator = ForecastEvaluator(mappings, targets)
    return [evaluator.evaluate(raw_m, "M").lines, evaluator.evaluate(raw_i, "I").lines]


def test_plain_lines_are_summed_by_id(entity_trees):
    merged = index_lines(merge_line_trees(entity_trees))
    m_lines, i_lines = (index_lines(tree) for tree in entity_trees)

    for line_id in ("tag-sale", "act-sale-vat-inc", "act-sale-vat-exc", "direct-royalty"):
        assert merged[line_id].accum == pytest.approx(m_lines[line_id].accum + i_lines[line_id].accum)
        assert merged[line_id].forecast == pytest.approx(m_lines[line_id].forecast + i_lines[line_id].forecast)
        assert merged[line_id].target == pytest.approx(m_lines[line_id].target + i_lines[line_id].target)


def test_calculated_lines_are_rederived(entity_trees):
    merged = index_lines(merge_line_trees(entity_trees))

    revenue = merged["act-sale-vat-inc"].forecast
    cogs = merged["cogs-sum"].forecast
    assert merged["gross-profit"].forecast == pytest.approx(revenue / 1.13 - cogs)
    assert merged["direct-profit"].forecast == pytest.approx(
        merged["gross-profit"].forecast - merged["direct-cost-sum"].forecast
    )
    assert merged["operating-profit"].forecast == pytest.approx(
        merged["gross-profit"].forecast - merged["direct-cost-sum"].forecast - merged["opex-sum"].forecast
    )
    assert merged["opex-sum"].forecast == merged["opex-sum"].target


def test_rates_are_not_summed(entity_trees):
    merged = index_lines(merge_line_trees(entity_trees))
    revenue = merged["act-sale-vat-inc"]

    assert revenue.yoy_rate == pytest.approx(revenue.forecast / revenue.prev_year - 1)
    assert revenue.achv_rate == pytest.approx(revenue.forecast / revenue.target)


def test_null_fields_stay_null_only_when_no_entity_has_a_value(entity_trees):
    merged = index_lines(merge_line_trees(entity_trees))

    assert merged["direct-logistics"].target is None
    assert merged["direct-logistics"].forecast is None
    # M has an advertising plan, I does not.
    assert merged["opex-advertising"].target == pytest.approx(70.0)


def test_unmatched_lines_are_skipped(entity_trees):
    extra = PlLine(id="not-in-first-tree", label="extra", level=0, is_parent=False, is_calculated=False, accum=5.0)
    merged = merge_line_trees([entity_trees[0], [*entity_trees[1], extra]])

    assert "not-in-first-tree" not in index_lines(merged)
    assert len(merged) == len(entity_trees[0])


def test_single_tree_merge_is_identity_for_figures(entity_trees):
    merged = index_lines(merge_line_trees(entity_trees[:1]))
    original = index_lines(entity_trees[0])

    for line_id in ("tag-sale", "gross-profit", "operating-profit", "direct-cost-sum"):
        assert merged[line_id].forecast == pytest.approx(original[line_id].forecast)
        assert merged[line_id].accum == pytest.approx(original[line_id].accum)


def test_empty_input_merges_to_empty_tree():
    assert merge_line_trees([]) == []


@pytest.fixture
def channel_trees(mappings, targets, raw_m, raw_i, channel_data):
    evaluator = ForecastEvaluator(mappings, targets)
    return [
        evaluator.evaluate(raw_m, "M", channel_data).lines,
        evaluator.evaluate(raw_i, "I", channel_data).lines,
    ]


def test_channel_parents_equal_sum_of_merged_children(channel_trees):
    merged = index_lines(merge_line_trees(channel_trees))

    for parent_id in ("tag-sale", "act-sale-vat-inc", "cogs"):
        children = merged[parent_id].children or []
        assert len(children) == 4
        assert merged[parent_id].accum == pytest.approx(sum(child.accum for child in children))
        assert merged[parent_id].forecast == pytest.approx(sum(child.forecast for child in children))
    assert merged["tag-sale"].accum == pytest.approx(2 * 950.0)


def test_rederived_gross_profit_differs_from_sum_of_entities(channel_trees):
    merged = index_lines(merge_line_trees(channel_trees))
    m_lines, i_lines = (index_lines(tree) for tree in channel_trees)

    # Entity gross profit history comes from account sums; the merged one from the merged channel rollups.
    entity_sum = m_lines["gross-profit"].prev_year + i_lines["gross-profit"].prev_year
    assert entity_sum == pytest.approx(1400.0 / 1.13 - 500.0)
    assert merged["gross-profit"].prev_year == pytest.approx(2500.0 / 1.13 - 1100.0)
    assert merged["gross-profit"].prev_year != pytest.approx(entity_sum)
    assert merged["gross-profit"].prev_year == pytest.approx(
        merged["act-sale-vat-inc"].prev_year / 1.13 - merged["cogs-sum"].prev_year
    )
