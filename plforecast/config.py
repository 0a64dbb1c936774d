"""Runtime settings and static constants for the P&L forecast."""

from __future__ import annotations

import logging
import os
from pathlib import Path

ENTITY_CODES: tuple[str, ...] = ("M", "I", "X", "V", "W")
ALL_ENTITIES = "all"
ENTITY_LABELS: dict[str, str] = {
    ALL_ENTITIES: "전체",
    "M": "MLB",
    "I": "MLB KIDS",
    "X": "DISCOVERY",
    "V": "DUVETICA",
    "W": "SUPRA",
}

VAT_DIVISOR = 1.13
DEALER_SUPPORT_ITEMS: tuple[str, ...] = ("OUTSRC_PROC_CST", "SMPL_BUY_CST", "MILE_SALE_AMT")
DEALER_SUPPORT_LEVEL2 = "대리상지원금"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_error_threshold() -> float:
    raw = os.getenv("PLF_PARSE_ERROR_THRESHOLD", "0.01")
    try:
        threshold = float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid PLF_PARSE_ERROR_THRESHOLD: {raw}") from exc
    if threshold < 0 or threshold > 1:
        raise ValueError(f"PLF_PARSE_ERROR_THRESHOLD must be in [0, 1], got {threshold}")
    return threshold


def _log_level() -> int:
    raw = os.getenv("PLF_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(raw)
    if not isinstance(level, int):
        raise ValueError(f"Invalid PLF_LOG_LEVEL: {raw}")
    return level


PARSE_ERROR_THRESHOLD = _parse_error_threshold()
LOG_LEVEL = _log_level()
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("PLF_DATA_DIR", str(PROJECT_ROOT / "data" / "sample")))
OUTPUT_DIR = Path(os.getenv("PLF_OUTPUT_DIR", str(PROJECT_ROOT / "output")))


def configure_logging(level: int | None = None) -> None:
    logging.basicConfig(level=LOG_LEVEL if level is None else level, format=LOG_FORMAT)
