"""Forecast Tree Evaluator: definition tree + raw actuals/targets -> computed P&L tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from plforecast.application.channel import channel_cogs_forecast, channel_figures, channel_sales_forecast
from plforecast.application.formulas import (
    Figures,
    apply_figures,
    channel_rollup,
    net_of_vat,
    profit_figures,
    rollup,
    run_rate_forecast,
    variable_cost_forecast,
)
from plforecast.application.reporting.metrics import to_float
from plforecast.config import DEALER_SUPPORT_ITEMS, VAT_DIVISOR
from plforecast.domain.accounts import sum_by_level, target_value
from plforecast.domain.definitions import (
    CHANNEL_BY_LINE_ID,
    CHANNEL_METRIC_BY_TYPE,
    CHANNEL_METRIC_BY_PARENT_ID,
    DEFAULT_TREE,
    DIRECT_COST_REFERENCE,
    DefinitionNode,
    DefinitionTree,
    is_dealer_support,
)
from plforecast.domain.models import (
    AccountMapping,
    CalcContext,
    ChannelData,
    ChannelMetric,
    CostCategory,
    LineDefinition,
    LineType,
    PlLine,
    RawInputs,
    TargetRow,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    lines: List[PlLine]
    context: CalcContext


class ForecastEvaluator:
    """Evaluates every line of the definition tree for one entity in dependency order."""

    def __init__(
        self,
        mappings: Sequence[AccountMapping],
        targets: Sequence[TargetRow],
        tree: DefinitionTree = DEFAULT_TREE,
        vat_divisor: float = VAT_DIVISOR,
    ) -> None:
        self.mappings = list(mappings)
        self.targets = list(targets)
        self.tree = tree
        self.vat_divisor = vat_divisor

    def evaluate(
        self,
        raw: RawInputs,
        entity_key: str,
        channel_data: ChannelData | None = None,
    ) -> EvaluationResult:
        results = self.evaluate_figures(raw, entity_key, channel_data)
        lines = [self._build_line(index, results, channel_data) for index in self.tree.roots]
        logger.debug("Evaluated %d lines for entity %s", len(results), entity_key)
        return EvaluationResult(lines=lines, context=self._context(results))

    def evaluate_line(
        self,
        line_id: str,
        raw: RawInputs,
        entity_key: str,
        channel_data: ChannelData | None = None,
    ) -> PlLine:
        """Computed subtree for one definition; its dependencies are evaluated as well."""
        index = self.tree.index_of(line_id)
        results = self.evaluate_figures(raw, entity_key, channel_data)
        return self._build_line(index, results, channel_data)

    def evaluate_figures(
        self,
        raw: RawInputs,
        entity_key: str,
        channel_data: ChannelData | None = None,
    ) -> List[Figures]:
        results: List[Optional[Figures]] = [None] * len(self.tree)
        for index in self.tree.evaluation_order:
            node = self.tree.node(index)
            results[index] = self._evaluate_node(node, raw, entity_key, channel_data, results)
        return [figures if figures is not None else Figures() for figures in results]

    def _evaluate_node(
        self,
        node: DefinitionNode,
        raw: RawInputs,
        entity_key: str,
        channel_data: ChannelData | None,
        results: Sequence[Optional[Figures]],
    ) -> Figures:
        line_type = node.definition.type
        if line_type is None:
            figures = self._leaf(node, raw, entity_key, results)
        elif line_type is LineType.VAT_EXCLUDED:
            figures = self._vat_excluded(node, raw, entity_key, results)
        elif line_type.is_rollup:
            figures = rollup([self._result(results, child) for child in node.children], line_type)
        elif line_type.is_profit:
            dependencies = [self._dependency_figures(dep, raw, results) for dep in node.dependencies]
            figures = profit_figures(line_type, dependencies)
        else:
            figures = self._channel(node, raw, channel_data, results)

        parent_metric = CHANNEL_METRIC_BY_PARENT_ID.get(node.id)
        if parent_metric is not None and node.children and _has_metric(channel_data, parent_metric):
            figures = channel_rollup([self._result(results, child) for child in node.children])
        return figures

    @staticmethod
    def _result(results: Sequence[Optional[Figures]], index: int) -> Figures:
        figures = results[index]
        return figures if figures is not None else Figures()

    def _raw_sums(self, definition: LineDefinition, raw: RawInputs) -> Figures:
        exclude = () if is_dealer_support(definition) else DEALER_SUPPORT_ITEMS
        levels = (definition.level1, definition.level2, definition.level3)
        return Figures(
            prev_year=sum_by_level(raw.prev_year, self.mappings, *levels, exclude_items=exclude),
            prev_year_accum=sum_by_level(raw.prev_year_accum, self.mappings, *levels, exclude_items=exclude),
            accum=sum_by_level(raw.accum, self.mappings, *levels, exclude_items=exclude),
        )

    def _target(self, definition: LineDefinition, entity_key: str) -> float | None:
        return target_value(self.targets, entity_key, definition.level1, definition.level2, definition.level3)

    def _leaf(
        self,
        node: DefinitionNode,
        raw: RawInputs,
        entity_key: str,
        results: Sequence[Optional[Figures]],
    ) -> Figures:
        definition = node.definition
        if not definition.level1:
            return Figures()

        sums = self._raw_sums(definition, raw)
        target = self._target(definition, entity_key)
        if definition.cost_category is None:
            forecast = run_rate_forecast(sums.accum, raw.accum_days, raw.month_days)
        elif definition.cost_category is CostCategory.OPEX:
            forecast = target
        elif definition.id not in DIRECT_COST_REFERENCE:
            forecast = target
        else:
            reference = self._reference_revenue(node, results)
            forecast = variable_cost_forecast(target, reference.target, reference.forecast)

        return Figures(
            prev_year=sums.prev_year,
            prev_year_accum=sums.prev_year_accum,
            accum=sums.accum,
            target=target,
            forecast=forecast,
        )

    def _reference_revenue(self, node: DefinitionNode, results: Sequence[Optional[Figures]]) -> Figures:
        # Channel reference when it has figures, otherwise total revenue (the first dependency).
        if not node.dependencies:
            return Figures()
        for dep in reversed(node.dependencies):
            figures = self._result(results, dep)
            if figures.target is not None and figures.forecast is not None:
                return figures
        return self._result(results, node.dependencies[0])

    def _vat_excluded(
        self,
        node: DefinitionNode,
        raw: RawInputs,
        entity_key: str,
        results: Sequence[Optional[Figures]],
    ) -> Figures:
        """Net-of-VAT line; its forecast follows the VAT-included forecast, not its own run-rate.

        Run-rate of its own accum is used only when the revenue line has no forecast.
        """
        sums = self._raw_sums(node.definition, raw)
        revenue_forecast = None
        if node.dependencies:
            revenue_forecast = self._result(results, node.dependencies[0]).forecast
        if revenue_forecast is not None:
            forecast = net_of_vat(revenue_forecast, self.vat_divisor)
        else:
            forecast = run_rate_forecast(sums.accum, raw.accum_days, raw.month_days)
        return Figures(
            prev_year=sums.prev_year,
            prev_year_accum=sums.prev_year_accum,
            accum=sums.accum,
            target=self._target(node.definition, entity_key),
            forecast=forecast,
        )

    def _dependency_figures(self, index: int, raw: RawInputs, results: Sequence[Optional[Figures]]) -> Figures:
        """History from raw account sums, plan and forecast from the evaluated dependency."""
        computed = self._result(results, index)
        node = self.tree.node(index)
        if node.definition.type is not None and node.definition.type.is_profit:
            return computed

        leaves = self.tree.leaf_descendants(index)
        sums = [self._raw_sums(leaf.definition, raw) for leaf in leaves]
        return Figures(
            prev_year=sum(to_float(item.prev_year) for item in sums),
            prev_year_accum=sum(to_float(item.prev_year_accum) for item in sums),
            accum=sum(to_float(item.accum) for item in sums),
            target=computed.target,
            forecast=computed.forecast,
        )

    def _channel(
        self,
        node: DefinitionNode,
        raw: RawInputs,
        channel_data: ChannelData | None,
        results: Sequence[Optional[Figures]],
    ) -> Figures:
        if channel_data is None or node.definition.type is None:
            return Figures()
        metric = CHANNEL_METRIC_BY_TYPE[node.definition.type]
        if not channel_data.has_metric(metric):
            return Figures()
        channel = CHANNEL_BY_LINE_ID[node.id]
        figures = channel_data.figures(metric, channel)

        if metric is ChannelMetric.COGS:
            tag_sale = channel_data.figures(ChannelMetric.TAG_SALE, channel)
            if node.dependencies:
                tag_sale_forecast = self._result(results, node.dependencies[0]).forecast
            else:
                tag_sale_forecast = channel_sales_forecast(channel, tag_sale, raw.year_month, raw.cutoff_date)
            forecast = channel_cogs_forecast(channel, figures, tag_sale, tag_sale_forecast, self.vat_divisor)
        else:
            forecast = channel_sales_forecast(channel, figures, raw.year_month, raw.cutoff_date)
        return channel_figures(figures, forecast)

    def _build_line(self, index: int, results: Sequence[Figures], channel_data: ChannelData | None) -> PlLine:
        node = self.tree.node(index)
        definition = node.definition
        children: List[PlLine] | None = None
        if definition.children:
            children = [
                self._build_line(child, results, channel_data)
                for child in node.children
                if _shows_line(self.tree.node(child), channel_data)
            ] or None

        line = PlLine(
            id=definition.id,
            label=definition.label,
            level=definition.level,
            is_parent=definition.is_parent,
            is_calculated=definition.is_calculated,
            children=children,
            default_expanded=definition.default_expanded,
        )
        return apply_figures(line, results[index])

    def _context(self, results: Sequence[Figures]) -> CalcContext:
        values: dict[str, float] = {}
        for node in self.tree:
            figures = results[node.index]
            line_type = node.definition.type
            if line_type is LineType.VAT_EXCLUDED:
                values["vat_exc_forecast"] = to_float(figures.forecast)
                values["vat_exc_target"] = to_float(figures.target)
            elif line_type is LineType.COGS_SUM:
                values["cogs_sum_forecast"] = to_float(figures.forecast)
            elif line_type is LineType.GROSS_PROFIT:
                values["gross_profit_forecast"] = to_float(figures.forecast)
                if node.dependencies:
                    revenue = results[node.dependencies[0]]
                    values["act_sale_vat_inc_forecast"] = to_float(revenue.forecast)
            elif line_type is LineType.DIRECT_COST_SUM:
                values["direct_cost_sum_forecast"] = to_float(figures.forecast)
            elif line_type is LineType.OPEX_SUM:
                values["opex_sum_forecast"] = to_float(figures.forecast)
        return CalcContext(**values)


def _has_metric(channel_data: ChannelData | None, metric: ChannelMetric) -> bool:
    return channel_data is not None and channel_data.has_metric(metric)


def _shows_line(node: DefinitionNode, channel_data: ChannelData | None) -> bool:
    """Channel lines appear only when their metric has channel rows."""
    line_type = node.definition.type
    if line_type is None or not line_type.is_channel:
        return True
    return _has_metric(channel_data, CHANNEL_METRIC_BY_TYPE[line_type])


def evaluate_lines(
    raw: RawInputs,
    mappings: Sequence[AccountMapping],
    targets: Sequence[TargetRow],
    entity_key: str,
    channel_data: ChannelData | None = None,
    tree: DefinitionTree = DEFAULT_TREE,
) -> EvaluationResult:
    return ForecastEvaluator(mappings, targets, tree=tree).evaluate(raw, entity_key, channel_data)
