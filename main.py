"""Monthly P&L forecast entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
from datetime import date, timedelta
from pathlib import Path

import polars as pl

from plforecast.application import ForecastRequest, run_pl_forecast
from plforecast.config import ALL_ENTITIES, DATA_DIR, ENTITY_CODES, OUTPUT_DIR, configure_logging
from plforecast.infrastructure import (
    lines_frame,
    load_account_mappings,
    load_actuals,
    load_channel_data,
    load_targets,
    records_frame,
    save_output_workbook,
    save_summary_json,
)
from plforecast.periods import format_year_month, month_days, parse_year_month

logger = logging.getLogger(__name__)


def _default_cutoff(year_month: str) -> date:
    year, month = parse_year_month(year_month)
    month_end = date(year, month, month_days(year_month))
    return min(date.today() - timedelta(days=1), month_end)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Monthly P&L forecast from partial-month actuals")
    parser.add_argument("--data-dir", type=Path, default=DATA_DIR, help="Directory holding the input CSV files")
    parser.add_argument(
        "--ym",
        default=format_year_month(date.today() - timedelta(days=1)),
        help="Reporting month (YYYY-MM)",
    )
    parser.add_argument("--cutoff", type=date.fromisoformat, help="Last posted day (YYYY-MM-DD)")
    parser.add_argument(
        "--entity",
        default=ALL_ENTITIES,
        choices=[ALL_ENTITIES, *ENTITY_CODES],
        help="Entity code, or 'all' for the consolidated forecast",
    )
    parser.add_argument("--output-dir", type=Path, default=OUTPUT_DIR, help="Where JSON and Excel outputs go")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    configure_logging(logging.DEBUG if args.verbose else None)

    data_dir: Path = args.data_dir
    channel_path = data_dir / "channels.csv"
    request = ForecastRequest(
        year_month=args.ym,
        cutoff_date=args.cutoff or _default_cutoff(args.ym),
        entity=args.entity,
        mappings=load_account_mappings(data_dir / "account_mapping.csv"),
        targets=load_targets(data_dir / "targets.csv"),
        actuals=load_actuals(data_dir / "actuals.csv"),
        channel_data=load_channel_data(channel_path) if channel_path.exists() else {},
    )
    result = run_pl_forecast(request)
    payload = result.to_dict()

    output_dir: Path = args.output_dir
    stem = f"pl_forecast_{result.year_month}_{result.entity}"
    output_json_path = output_dir / f"{stem}.json"
    output_excel_path = output_dir / f"{stem}.xlsx"
    save_summary_json(output_json_path, payload)

    sheets: dict[str, pl.DataFrame] = {
        "lines": lines_frame(result.lines),
        "waterfall": records_frame(result.charts["waterfall"]),
    }
    if result.channel_breakdown:
        sheets["channels"] = records_frame(result.channel_breakdown)
    if "entitySales" in result.charts:
        sheets["entities"] = records_frame(result.charts["entitySales"])
    excel_saved, excel_error_message = save_output_workbook(output_excel_path, sheets)

    print(json.dumps(payload["summary"], indent=2, ensure_ascii=False))
    print(result.comment)
    logger.info("Saved JSON: %s", output_json_path)
    if excel_saved:
        logger.info("Saved Excel: %s", output_excel_path)
    else:
        logger.warning("Excel save skipped (file may be open/locked): %s", excel_error_message)


if __name__ == "__main__":
    main()
