"""Application service for the monthly P&L forecast use case."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Sequence

from plforecast.application.channel import build_channel_breakdown
from plforecast.application.evaluator import ForecastEvaluator
from plforecast.application.merge import merge_line_trees
from plforecast.application.reporting.rendering import channel_detail_comment, forecast_overall_comment
from plforecast.application.reporting.selectors import find_line
from plforecast.application.seasonal import ProgressRate, adjust_progress_rate
from plforecast.application.summary import CardSummary, build_card_summary, build_entity_breakdown, build_waterfall
from plforecast.config import ALL_ENTITIES, ENTITY_CODES, ENTITY_LABELS
from plforecast.domain.definitions import ACT_SALE_VAT_INC_ID, DEFAULT_TREE, DefinitionTree
from plforecast.domain.models import (
    AccountMapping,
    CalcContext,
    ChannelData,
    ChannelMetric,
    EntityActuals,
    PlLine,
    TargetRow,
)
from plforecast.periods import accum_days, month_days

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForecastRequest:
    year_month: str
    cutoff_date: date
    entity: str
    mappings: Sequence[AccountMapping]
    targets: Sequence[TargetRow]
    actuals: Mapping[str, EntityActuals]
    channel_data: Mapping[str, ChannelData] = field(default_factory=dict)


@dataclass(frozen=True)
class ForecastResult:
    year_month: str
    entity: str
    cutoff_date: date
    accum_days: int
    month_days: int
    lines: List[PlLine]
    summary: CardSummary
    charts: Dict[str, Any]
    channel_breakdown: List[Dict[str, Any]]
    progress_rate: ProgressRate
    contexts: Dict[str, CalcContext]
    comment: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ym": self.year_month,
            "entity": self.entity,
            "lastDt": self.cutoff_date.isoformat(),
            "accumDays": self.accum_days,
            "monthDays": self.month_days,
            "lines": [line.to_dict() for line in self.lines],
            "summary": self.summary.to_dict(),
            "charts": self.charts,
            "channelBreakdown": self.channel_breakdown,
            "progressRate": {
                "rate": self.progress_rate.rate,
                "adjusted": self.progress_rate.adjusted,
                "season": self.progress_rate.season.value if self.progress_rate.season else None,
            },
            "comment": self.comment,
        }


def validate_entity(entity: str) -> str:
    key = str(entity or "").strip()
    if key == ALL_ENTITIES or key in ENTITY_CODES:
        return key
    raise ValueError(f"Unknown entity key: {entity!r} (expected one of {ALL_ENTITIES}, {', '.join(ENTITY_CODES)})")


def revenue_progress_rate(lines: Sequence[PlLine], year_month: str, cutoff_date: date) -> ProgressRate:
    """Seasonally adjusted prior-year progress of total revenue (VAT included)."""
    revenue = find_line(lines, ACT_SALE_VAT_INC_ID)
    if revenue is None or revenue.prev_year is None or revenue.prev_year_accum is None:
        return ProgressRate(rate=0.0, adjusted=False)
    return adjust_progress_rate(year_month, cutoff_date, revenue.prev_year_accum, revenue.prev_year)


def shared_channel_metrics(channel_data: Mapping[str, ChannelData], scope: Sequence[str]) -> frozenset[ChannelMetric]:
    """Channel metrics every entity in scope has rows for.

    Consolidation sums trees line by line, so each entity must be evaluated
    with the same channel lines. A metric missing for any entity falls back
    to account totals for all of them.
    """
    available = [channel_data[code].metrics if code in channel_data else frozenset() for code in scope]
    if not available:
        return frozenset()
    shared = frozenset.intersection(*available)
    partial = frozenset.union(*available) - shared
    if partial:
        logger.warning(
            "Channel rows for %s are missing in some of %s; using account totals instead",
            ", ".join(sorted(metric.value for metric in partial)),
            ", ".join(scope),
        )
    return shared


def run_pl_forecast(request: ForecastRequest, tree: DefinitionTree = DEFAULT_TREE) -> ForecastResult:
    """Evaluate each entity in scope, consolidate when needed, and build the summary payloads."""
    entity = validate_entity(request.entity)
    scope = ENTITY_CODES if entity == ALL_ENTITIES else (entity,)
    days_in_month = month_days(request.year_month)
    evaluator = ForecastEvaluator(request.mappings, request.targets, tree=tree)
    channel_metrics = shared_channel_metrics(request.channel_data, scope)

    entity_lines: Dict[str, List[PlLine]] = {}
    contexts: Dict[str, CalcContext] = {}
    elapsed_by_entity: Dict[str, int] = {}
    for code in scope:
        actuals = request.actuals.get(code, EntityActuals())
        cutoff = actuals.last_date or request.cutoff_date
        elapsed = accum_days(request.year_month, cutoff)
        raw = actuals.to_raw(elapsed, days_in_month, request.year_month, cutoff)
        channel_data = request.channel_data[code].restricted(channel_metrics) if channel_metrics else None
        result = evaluator.evaluate(raw, code, channel_data)
        entity_lines[code] = result.lines
        contexts[code] = result.context
        elapsed_by_entity[code] = elapsed
        logger.debug("Entity %s evaluated (accum_days=%d)", code, elapsed)

    if entity == ALL_ENTITIES:
        lines = merge_line_trees([entity_lines[code] for code in scope], tree=tree)
    else:
        lines = entity_lines[entity]

    summary = build_card_summary(lines)
    charts: Dict[str, Any] = {"waterfall": build_waterfall(lines)}
    if entity == ALL_ENTITIES:
        charts.update(build_entity_breakdown(entity_lines))

    breakdown = build_channel_breakdown(lines) if channel_metrics else []
    progress = revenue_progress_rate(lines, request.year_month, request.cutoff_date)

    comment = forecast_overall_comment(ENTITY_LABELS.get(entity, entity), summary.to_dict())
    if breakdown:
        comment = f"{comment} {channel_detail_comment(breakdown)}"

    logger.info(
        "P&L forecast %s entity=%s lines=%d seasonal=%s",
        request.year_month,
        entity,
        len(lines),
        progress.adjusted,
    )
    return ForecastResult(
        year_month=request.year_month,
        entity=entity,
        cutoff_date=request.cutoff_date,
        accum_days=max(elapsed_by_entity.values()),
        month_days=days_in_month,
        lines=lines,
        summary=summary,
        charts=charts,
        channel_breakdown=breakdown,
        progress_rate=progress,
        contexts=contexts,
        comment=comment,
    )
