from __future__ import annotations

from datetime import date

import pytest

from plforecast.domain.models import (
    AccountMapping,
    Channel,
    ChannelData,
    ChannelFigures,
    EntityActuals,
    RawInputs,
    TargetRow,
)

MAPPING_ROWS = [
    ("Tag매출", "", "", "TAG_SALE_AMT"),
    ("실판(V+)", "", "", "ACT_SALE_AMT"),
    ("실판(V-)", "", "", "VAT_EXC_ACT_SALE_AMT"),
    ("매출원가", "", "", "COGS_AMT"),
    ("직접비", "로열티", "", "ROYALTY_CST"),
    ("직접비", "임차료", "", "SHOP_RENT_CST"),
    ("직접비", "대리상지원금", "외주가공비", "OUTSRC_PROC_CST"),
    ("직접비", "기타", "", "SMPL_BUY_CST"),
    ("영업비", "광고선전비", "", "AD_CST"),
]

TARGET_ROWS = [
    ("Tag매출", "", "", {"M": 2000.0, "I": 1000.0}),
    ("실판(V+)", "", "", {"M": 1130.0, "I": 565.0}),
    ("실판(V-)", "", "", {"M": 1000.0, "I": 500.0}),
    ("매출원가", "", "", {"M": 400.0, "I": 200.0}),
    ("직접비", "로열티", "", {"M": 100.0, "I": 50.0}),
    ("직접비", "임차료", "", {"M": 300.0, "I": 150.0}),
    ("직접비", "플랫폼수수료", "", {"M": 40.0, "I": 20.0}),
    ("영업비", "광고선전비", "", {"M": 70.0, "I": None}),
]

M_ACCUM = {
    "TAG_SALE_AMT": 600.0,
    "ACT_SALE_AMT": 339.0,
    "VAT_EXC_ACT_SALE_AMT": 300.0,
    "COGS_AMT": 100.0,
    "ROYALTY_CST": 20.0,
    "SHOP_RENT_CST": 90.0,
    "OUTSRC_PROC_CST": 5.0,
    "SMPL_BUY_CST": 7.0,
    "AD_CST": 25.0,
}
M_PREV_YEAR = {
    "TAG_SALE_AMT": 1800.0,
    "ACT_SALE_AMT": 1000.0,
    "VAT_EXC_ACT_SALE_AMT": 885.0,
    "COGS_AMT": 350.0,
    "ROYALTY_CST": 80.0,
    "SHOP_RENT_CST": 290.0,
    "OUTSRC_PROC_CST": 10.0,
    "SMPL_BUY_CST": 12.0,
    "AD_CST": 60.0,
}
I_ACCUM = {
    "TAG_SALE_AMT": 300.0,
    "ACT_SALE_AMT": 113.0,
    "VAT_EXC_ACT_SALE_AMT": 100.0,
    "COGS_AMT": 40.0,
    "ROYALTY_CST": 8.0,
    "SHOP_RENT_CST": 45.0,
    "AD_CST": 9.0,
}
I_PREV_YEAR = {
    "TAG_SALE_AMT": 900.0,
    "ACT_SALE_AMT": 400.0,
    "VAT_EXC_ACT_SALE_AMT": 354.0,
    "COGS_AMT": 150.0,
    "ROYALTY_CST": 30.0,
    "SHOP_RENT_CST": 140.0,
    "AD_CST": 25.0,
}


def _half(values: dict[str, float]) -> dict[str, float]:
    return {item: value / 2 for item, value in values.items()}


@pytest.fixture
def mappings() -> list[AccountMapping]:
    return [AccountMapping(level1=l1, level2=l2, level3=l3, item=item) for l1, l2, l3, item in MAPPING_ROWS]


@pytest.fixture
def targets() -> list[TargetRow]:
    return [TargetRow(level1=l1, level2=l2, level3=l3, values=values) for l1, l2, l3, values in TARGET_ROWS]


@pytest.fixture
def raw_m() -> RawInputs:
    return RawInputs(
        prev_year=M_PREV_YEAR,
        prev_year_accum=_half(M_PREV_YEAR),
        accum=M_ACCUM,
        accum_days=10,
        month_days=30,
    )


@pytest.fixture
def raw_i() -> RawInputs:
    return RawInputs(
        prev_year=I_PREV_YEAR,
        prev_year_accum=_half(I_PREV_YEAR),
        accum=I_ACCUM,
        accum_days=10,
        month_days=30,
    )


@pytest.fixture
def actuals() -> dict[str, EntityActuals]:
    return {
        "M": EntityActuals(
            prev_year=M_PREV_YEAR,
            prev_year_accum=_half(M_PREV_YEAR),
            accum=M_ACCUM,
            last_date=date(2026, 3, 10),
        ),
        "I": EntityActuals(
            prev_year=I_PREV_YEAR,
            prev_year_accum=_half(I_PREV_YEAR),
            accum=I_ACCUM,
            last_date=date(2026, 3, 12),
        ),
    }


@pytest.fixture
def channel_data() -> ChannelData:
    return ChannelData(
        tag_sale={
            Channel.ONLINE_DIRECT: ChannelFigures(prev_year=400.0, prev_year_accum=80.0, accum=200.0, target=900.0),
            Channel.ONLINE_DEALER: ChannelFigures(prev_year=450.0, prev_year_accum=90.0, accum=100.0, target=500.0),
            Channel.OFFLINE_DIRECT: ChannelFigures(prev_year=1000.0, prev_year_accum=500.0, accum=300.0, target=800.0),
            Channel.OFFLINE_DEALER: ChannelFigures(prev_year=650.0, prev_year_accum=320.0, accum=350.0, target=700.0),
        },
        act_sale_vat_inc={
            Channel.ONLINE_DIRECT: ChannelFigures(prev_year=200.0, prev_year_accum=40.0, accum=113.0, target=400.0),
            Channel.ONLINE_DEALER: ChannelFigures(prev_year=250.0, prev_year_accum=50.0, accum=60.0, target=300.0),
            Channel.OFFLINE_DIRECT: ChannelFigures(prev_year=500.0, prev_year_accum=250.0, accum=226.0, target=450.0),
            Channel.OFFLINE_DEALER: ChannelFigures(prev_year=300.0, prev_year_accum=150.0, accum=170.0, target=339.0),
        },
        cogs={
            Channel.ONLINE_DIRECT: ChannelFigures(prev_year=90.0, prev_year_accum=18.0, accum=50.0, target=200.0),
            Channel.ONLINE_DEALER: ChannelFigures(prev_year=100.0, prev_year_accum=20.0, accum=25.0, target=120.0),
            Channel.OFFLINE_DIRECT: ChannelFigures(prev_year=220.0, prev_year_accum=110.0, accum=70.0, target=180.0),
            Channel.OFFLINE_DEALER: ChannelFigures(prev_year=140.0, prev_year_accum=70.0, accum=80.0, target=160.0),
        },
    )
