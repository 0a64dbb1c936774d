from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from plforecast.domain.models import Channel, ChannelMetric
from plforecast.infrastructure.csv_repository import (
    load_account_mappings,
    load_actuals,
    load_channel_data,
    load_targets,
)


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_account_mappings(tmp_path):
    path = _write(
        tmp_path / "mapping.csv",
        "level1,level2,level3,ITEM\nTag매출,,,TAG_SALE_AMT\n직접비, 로열티 ,,ROYALTY_CST\n직접비,기타,,\n",
    )
    mappings = load_account_mappings(path)

    assert [mapping.item for mapping in mappings] == ["TAG_SALE_AMT", "ROYALTY_CST"]
    assert mappings[1].level2 == "로열티"
    assert mappings[0].level3 == ""


def test_load_targets_strips_separators_and_null_markers(tmp_path):
    path = _write(
        tmp_path / "targets.csv",
        'level1,level2,level3,M,I\n실판(V+),,,"1,130,000",-\n매출원가,,,400,\n',
    )
    rows = load_targets(path)

    assert rows[0].value("M") == pytest.approx(1_130_000.0)
    assert rows[0].value("I") is None
    assert rows[1].value("I") is None
    assert rows[1].value("X") is None


def test_load_targets_rejects_unparseable_values(tmp_path):
    path = _write(tmp_path / "targets.csv", "level1,level2,level3,M\n실판(V+),,,abc\n매출원가,,,400\n")

    with pytest.raises(ValueError, match="Data quality check failed"):
        load_targets(path, threshold=0.01)


def test_load_targets_requires_entity_columns(tmp_path):
    path = _write(tmp_path / "targets.csv", "level1,level2,level3,Q\n실판(V+),,,1\n")

    with pytest.raises(ValueError, match="entity columns"):
        load_targets(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_actuals(tmp_path / "absent.csv")


def test_load_actuals_groups_by_entity(tmp_path):
    path = _write(
        tmp_path / "actuals.csv",
        "ENTITY,ITEM,PREV_YEAR,PREV_YEAR_ACCUM,ACCUM,LAST_DT\n"
        "M,ACT_SALE_AMT,1000,500,339,2026-03-10\n"
        "M,ACT_SALE_AMT,10,5,1,2026-03-11\n"
        "M,COGS_AMT,350,175,,2026-03-11\n"
        "I,ACT_SALE_AMT,400,200,113,2026-03-12\n",
    )
    actuals = load_actuals(path)

    assert set(actuals) == {"M", "I"}
    assert actuals["M"].accum["ACT_SALE_AMT"] == pytest.approx(340.0)
    assert actuals["M"].prev_year["ACT_SALE_AMT"] == pytest.approx(1010.0)
    assert actuals["M"].accum["COGS_AMT"] == 0.0
    assert actuals["M"].last_date == date(2026, 3, 11)
    assert actuals["I"].prev_year_accum["ACT_SALE_AMT"] == pytest.approx(200.0)


def test_load_actuals_requires_columns(tmp_path):
    path = _write(tmp_path / "actuals.csv", "ENTITY,ITEM,ACCUM\nM,ACT_SALE_AMT,1\n")

    with pytest.raises(ValueError, match="PREV_YEAR"):
        load_actuals(path)


def test_load_channel_data(tmp_path):
    path = _write(
        tmp_path / "channels.csv",
        "ENTITY,METRIC,CHANNEL,PREV_YEAR,PREV_YEAR_ACCUM,ACCUM,TARGET\n"
        'M,tagSale,onlineDirect,400,80,200,"1,000"\n'
        "M,cogs,offlineDealer,140,70,80,-\n"
        "M,unknownMetric,onlineDirect,1,1,1,1\n",
    )
    data = load_channel_data(path)["M"]

    online = data.figures(ChannelMetric.TAG_SALE, Channel.ONLINE_DIRECT)
    assert online.accum == pytest.approx(200.0)
    assert online.target == pytest.approx(1000.0)
    assert data.figures(ChannelMetric.COGS, Channel.OFFLINE_DEALER).target is None
    assert data.figures(ChannelMetric.ACT_SALE_VAT_INC, Channel.ONLINE_DIRECT).accum is None


def test_sample_data_loads():
    sample_dir = Path(__file__).resolve().parent.parent / "data" / "sample"

    assert len(load_account_mappings(sample_dir / "account_mapping.csv")) == 22
    assert {"M", "I", "X"} <= set(load_actuals(sample_dir / "actuals.csv"))
    assert "M" in load_channel_data(sample_dir / "channels.csv")
    assert load_targets(sample_dir / "targets.csv")[0].value("W") is None
