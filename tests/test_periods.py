from __future__ import annotations

import importlib
from datetime import date

import pytest

from plforecast import config
from plforecast.periods import accum_days, format_year_month, month_days, parse_year_month, prev_year_month


def test_month_helpers():
    assert parse_year_month("2026-02") == (2026, 2)
    assert month_days("2024-02") == 29
    assert month_days("2026-02") == 28
    assert prev_year_month("2026-01") == "2025-01"
    assert format_year_month(date(2026, 3, 5)) == "2026-03"


def test_accum_days_clamps_to_reporting_month():
    assert accum_days("2026-03", date(2026, 3, 12)) == 12
    assert accum_days("2026-03", date(2026, 2, 28)) == 0
    assert accum_days("2026-03", date(2026, 4, 2)) == 31


@pytest.mark.parametrize("value", ["2026", "2026-13", "26/03", ""])
def test_malformed_year_month_is_rejected(value):
    with pytest.raises(ValueError):
        parse_year_month(value)


def test_invalid_parse_error_threshold_is_rejected(monkeypatch):
    monkeypatch.setenv("PLF_PARSE_ERROR_THRESHOLD", "1.5")
    with pytest.raises(ValueError, match="PLF_PARSE_ERROR_THRESHOLD"):
        importlib.reload(config)
    monkeypatch.delenv("PLF_PARSE_ERROR_THRESHOLD")
    importlib.reload(config)


def test_invalid_log_level_is_rejected(monkeypatch):
    monkeypatch.setenv("PLF_LOG_LEVEL", "chatty")
    with pytest.raises(ValueError, match="PLF_LOG_LEVEL"):
        importlib.reload(config)
    monkeypatch.delenv("PLF_LOG_LEVEL")
    importlib.reload(config)
