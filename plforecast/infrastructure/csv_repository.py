"""Infrastructure adapter for the CSV input tables (mappings, targets, actuals, channels)."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Dict, List, Sequence

import polars as pl

from plforecast.config import ENTITY_CODES, PARSE_ERROR_THRESHOLD
from plforecast.domain.models import (
    AccountMapping,
    Channel,
    ChannelData,
    ChannelFigures,
    ChannelMetric,
    EntityActuals,
    TargetRow,
)

logger = logging.getLogger(__name__)

MAPPING_COLUMNS = ("level1", "level2", "level3", "ITEM")
LEVEL_COLUMNS = ("level1", "level2", "level3")
ACTUAL_COLUMNS = ("ENTITY", "ITEM", "PREV_YEAR", "PREV_YEAR_ACCUM", "ACCUM")
ACTUAL_METRICS = ("PREV_YEAR", "PREV_YEAR_ACCUM", "ACCUM")
CHANNEL_COLUMNS = ("ENTITY", "METRIC", "CHANNEL", "PREV_YEAR", "PREV_YEAR_ACCUM", "ACCUM", "TARGET")
CHANNEL_METRICS = ("PREV_YEAR", "PREV_YEAR_ACCUM", "ACCUM", "TARGET")
NULL_MARKERS = ["", "-"]


def _read_csv(path: str | Path) -> pl.DataFrame:
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Input file not found: {csv_path}")
    frame = pl.read_csv(csv_path, infer_schema=False, encoding="utf8-lossy")
    return frame.rename({column: column.strip().lstrip("\ufeff") for column in frame.columns})


def _require_columns(df: pl.DataFrame, required: Sequence[str], context: str) -> None:
    missing = [column for column in required if column not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns in {context}: {', '.join(missing)}")


def _metric_text_expr(column_name: str) -> pl.Expr:
    return pl.col(column_name).cast(pl.Utf8, strict=False).str.strip_chars().str.strip_chars('"')


def _metric_parsed_expr(column_name: str) -> pl.Expr:
    text_expr = _metric_text_expr(column_name)
    return (
        pl.when(text_expr.is_in(NULL_MARKERS))
        .then(None)
        .otherwise(text_expr.str.replace_all(",", "").cast(pl.Float64, strict=False))
    )


def _metric_parse_error_expr(column_name: str) -> pl.Expr:
    text_expr = _metric_text_expr(column_name)
    return (
        (text_expr.is_not_null() & ~text_expr.is_in(NULL_MARKERS) & _metric_parsed_expr(column_name).is_null())
        .cast(pl.UInt32)
        .alias(f"__parse_error_{column_name}")
    )


def _metric_expr(column_name: str) -> pl.Expr:
    return _metric_parsed_expr(column_name).alias(column_name)


def _dimension_expr(column_name: str) -> pl.Expr:
    return pl.col(column_name).cast(pl.Utf8, strict=False).str.strip_chars().fill_null("").alias(column_name)


def _validate_metric_parse_errors(
    df: pl.DataFrame,
    metric_columns: Sequence[str],
    context: str,
    threshold: float = PARSE_ERROR_THRESHOLD,
) -> None:
    if df.is_empty() or threshold <= 0:
        return
    targets = [column for column in metric_columns if column in df.columns]
    if not targets:
        return

    checks_df = df.select([_metric_parse_error_expr(column) for column in targets])
    row_count = int(df.height)
    failures: list[str] = []
    for column in targets:
        count_value = checks_df.select(pl.col(f"__parse_error_{column}").sum()).to_series(0)[0]
        parse_error_count = int(count_value or 0)
        parse_error_ratio = parse_error_count / row_count if row_count > 0 else 0.0
        if parse_error_ratio > threshold:
            failures.append(f"{column}={parse_error_ratio:.2%} ({parse_error_count}/{row_count})")

    if failures:
        joined = ", ".join(failures)
        raise ValueError(
            f"Data quality check failed in {context}: metric parse error ratio exceeds {threshold:.2%} ({joined})"
        )


def load_account_mappings(path: str | Path) -> List[AccountMapping]:
    df = _read_csv(path)
    _require_columns(df, MAPPING_COLUMNS, "account mapping")
    df = df.select([_dimension_expr(column) for column in MAPPING_COLUMNS]).filter(pl.col("ITEM") != "")
    mappings = [AccountMapping.from_row(row) for row in df.iter_rows(named=True)]
    logger.debug("Loaded %d account mappings from %s", len(mappings), path)
    return mappings


def load_targets(
    path: str | Path,
    entities: Sequence[str] = ENTITY_CODES,
    threshold: float = PARSE_ERROR_THRESHOLD,
) -> List[TargetRow]:
    """Wide target table: level columns plus one column per entity; '-' and blanks are null."""
    df = _read_csv(path)
    _require_columns(df, LEVEL_COLUMNS, "targets")
    entity_columns = [entity for entity in entities if entity in df.columns]
    if not entity_columns:
        raise ValueError(f"Missing entity columns in targets: expected any of {', '.join(entities)}")
    _validate_metric_parse_errors(df, entity_columns, context="targets", threshold=threshold)

    df = df.select(
        [_dimension_expr(column) for column in LEVEL_COLUMNS] + [_metric_expr(column) for column in entity_columns]
    )
    rows = [
        TargetRow(
            level1=row["level1"],
            level2=row["level2"],
            level3=row["level3"],
            values={entity: row[entity] for entity in entity_columns},
        )
        for row in df.iter_rows(named=True)
    ]
    logger.debug("Loaded %d target rows from %s", len(rows), path)
    return rows


def _parse_last_date(value: str | None) -> date | None:
    text = (value or "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.warning("Ignoring malformed LAST_DT value: %s", value)
        return None


def load_actuals(path: str | Path, threshold: float = PARSE_ERROR_THRESHOLD) -> Dict[str, EntityActuals]:
    """Long actuals table (one row per entity and item) grouped into per-entity item maps."""
    df = _read_csv(path)
    _require_columns(df, ACTUAL_COLUMNS, "actuals")
    _validate_metric_parse_errors(df, ACTUAL_METRICS, context="actuals", threshold=threshold)

    has_last_date = "LAST_DT" in df.columns
    df = (
        df.select(
            [_dimension_expr("ENTITY"), _dimension_expr("ITEM")]
            + [_metric_expr(column).fill_null(0.0) for column in ACTUAL_METRICS]
            + ([_dimension_expr("LAST_DT")] if has_last_date else [])
        )
        .filter((pl.col("ENTITY") != "") & (pl.col("ITEM") != ""))
        .group_by(["ENTITY", "ITEM"], maintain_order=True)
        .agg(
            [pl.col(column).sum() for column in ACTUAL_METRICS]
            + ([pl.col("LAST_DT").max()] if has_last_date else [])
        )
    )

    actuals: Dict[str, EntityActuals] = {}
    for scoped_df in df.partition_by("ENTITY", maintain_order=True):
        entity = str(scoped_df.select(pl.col("ENTITY")).to_series(0)[0])
        items = scoped_df.get_column("ITEM").to_list()
        last_date = None
        if has_last_date:
            last_date = _parse_last_date(scoped_df.select(pl.col("LAST_DT").max()).to_series(0)[0])
        actuals[entity] = EntityActuals(
            prev_year=dict(zip(items, scoped_df.get_column("PREV_YEAR").to_list())),
            prev_year_accum=dict(zip(items, scoped_df.get_column("PREV_YEAR_ACCUM").to_list())),
            accum=dict(zip(items, scoped_df.get_column("ACCUM").to_list())),
            last_date=last_date,
        )
    logger.debug("Loaded actuals for %d entities from %s", len(actuals), path)
    return actuals


def load_channel_data(path: str | Path, threshold: float = PARSE_ERROR_THRESHOLD) -> Dict[str, ChannelData]:
    """Per-entity channel figures; unknown metric or channel codes are skipped with a warning."""
    df = _read_csv(path)
    _require_columns(df, CHANNEL_COLUMNS, "channel data")
    _validate_metric_parse_errors(df, CHANNEL_METRICS, context="channel data", threshold=threshold)
    df = df.select(
        [_dimension_expr(column) for column in ("ENTITY", "METRIC", "CHANNEL")]
        + [_metric_expr(column) for column in CHANNEL_METRICS]
    )

    metric_by_code = {metric.value: metric for metric in ChannelMetric}
    channel_by_code = {channel.value: channel for channel in Channel if channel is not Channel.TOTAL}
    tables: Dict[str, Dict[ChannelMetric, Dict[Channel, ChannelFigures]]] = {}
    skipped = 0
    for row in df.iter_rows(named=True):
        metric = metric_by_code.get(row["METRIC"])
        channel = channel_by_code.get(row["CHANNEL"])
        if not row["ENTITY"] or metric is None or channel is None:
            skipped += 1
            continue
        tables.setdefault(row["ENTITY"], {}).setdefault(metric, {})[channel] = ChannelFigures.from_row(row)
    if skipped:
        logger.warning("Skipped %d channel rows with unknown entity, metric or channel", skipped)

    return {
        entity: ChannelData(
            tag_sale=table.get(ChannelMetric.TAG_SALE, {}),
            act_sale_vat_inc=table.get(ChannelMetric.ACT_SALE_VAT_INC, {}),
            cogs=table.get(ChannelMetric.COGS, {}),
        )
        for entity, table in tables.items()
    }
