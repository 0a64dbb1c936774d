"""Infrastructure adapter for forecast export targets (JSON summary and Excel workbook)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Sequence

import polars as pl

from plforecast.application.reporting.selectors import flatten_lines
from plforecast.domain.models import PlLine

logger = logging.getLogger(__name__)

LINE_FRAME_SCHEMA: Dict[str, Any] = {
    "id": pl.Utf8,
    "parent_id": pl.Utf8,
    "label": pl.Utf8,
    "level": pl.Int64,
    "is_calculated": pl.Boolean,
    "prev_year": pl.Float64,
    "prev_year_accum": pl.Float64,
    "prev_year_progress_rate": pl.Float64,
    "target": pl.Float64,
    "accum": pl.Float64,
    "forecast": pl.Float64,
    "yoy_rate": pl.Float64,
    "achv_rate": pl.Float64,
}


def lines_frame(lines: Sequence[PlLine]) -> pl.DataFrame:
    """One row per line in display order, with its parent id."""
    rows = [
        {
            "id": line.id,
            "parent_id": parent_id,
            "label": line.label,
            "level": line.level,
            "is_calculated": line.is_calculated,
            "prev_year": line.prev_year,
            "prev_year_accum": line.prev_year_accum,
            "prev_year_progress_rate": line.prev_year_progress_rate,
            "target": line.target,
            "accum": line.accum,
            "forecast": line.forecast,
            "yoy_rate": line.yoy_rate,
            "achv_rate": line.achv_rate,
        }
        for line, parent_id in flatten_lines(lines)
    ]
    return pl.DataFrame(rows, schema=LINE_FRAME_SCHEMA)


def records_frame(records: Sequence[Dict[str, Any]]) -> pl.DataFrame:
    if not records:
        return pl.DataFrame()
    return pl.DataFrame(list(records), infer_schema_length=None)


def save_summary_json(path: Path, summary: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary, indent=2, ensure_ascii=False), encoding="utf-8")


def _import_workbook() -> Any:
    try:
        from openpyxl import Workbook
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("openpyxl is required for Excel fallback output.") from exc
    return Workbook


def _excel_cell_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (int, bool, str)):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return value
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return value


def _write_with_polars(path: Path, sheets: Dict[str, pl.DataFrame]) -> bool:
    # Multi-sheet workbooks go through openpyxl; polars writes one worksheet per file.
    if len(sheets) != 1:
        return False
    sheet_name, frame = next(iter(sheets.items()))
    try:
        frame.write_excel(path, worksheet=sheet_name)
    except Exception as exc:
        logger.debug("Polars Excel writer unavailable, falling back to openpyxl: %s", exc)
        return False
    return True


def _write_with_openpyxl(path: Path, sheets: Dict[str, pl.DataFrame]) -> None:
    Workbook = _import_workbook()
    workbook = Workbook()
    workbook.remove(workbook.active)

    for sheet_name, frame in sheets.items():
        worksheet = workbook.create_sheet(title=str(sheet_name)[:31])
        worksheet.append(frame.columns)
        for row in frame.iter_rows(named=False):
            worksheet.append([_excel_cell_value(value) for value in row])

    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)


def write_output_excel(path: str | Path, sheets: Dict[str, pl.DataFrame]) -> None:
    """Write output Excel with Polars-first and openpyxl fallback."""
    excel_path = Path(path)
    excel_path.parent.mkdir(parents=True, exist_ok=True)

    if _write_with_polars(excel_path, sheets):
        return
    _write_with_openpyxl(excel_path, sheets)


def save_output_workbook(path: Path, sheets: dict[str, pl.DataFrame]) -> tuple[bool, str]:
    try:
        write_output_excel(path, sheets)
    except PermissionError as exc:
        return False, str(exc)
    return True, ""
