"""Domain models for P&L line definitions, computed lines and raw inputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import AbstractSet, Any, Iterator, Mapping


def _to_optional_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class LineType(str, Enum):
    """Formula variant of a line; a definition without a type is a plain leaf."""

    VAT_EXCLUDED = "vatExcluded"
    COGS_SUM = "cogsSum"
    DIRECT_COST_SUM = "directCostSum"
    OPEX_SUM = "opexSum"
    GROSS_PROFIT = "grossProfit"
    DIRECT_PROFIT = "directProfit"
    OPERATING_PROFIT = "operatingProfit"
    CHANNEL_VAT_INC = "channelVatInc"
    CHANNEL_TAG_SALE = "channelTagSale"
    CHANNEL_COGS = "channelCogs"

    @property
    def is_rollup(self) -> bool:
        return self in (LineType.COGS_SUM, LineType.DIRECT_COST_SUM, LineType.OPEX_SUM)

    @property
    def is_channel(self) -> bool:
        return self in (LineType.CHANNEL_VAT_INC, LineType.CHANNEL_TAG_SALE, LineType.CHANNEL_COGS)

    @property
    def is_profit(self) -> bool:
        return self in (LineType.GROSS_PROFIT, LineType.DIRECT_PROFIT, LineType.OPERATING_PROFIT)


class CostCategory(str, Enum):
    DIRECT = "direct"
    OPEX = "opex"


class Channel(str, Enum):
    ONLINE_DIRECT = "onlineDirect"
    ONLINE_DEALER = "onlineDealer"
    OFFLINE_DIRECT = "offlineDirect"
    OFFLINE_DEALER = "offlineDealer"
    TOTAL = "total"

    @property
    def is_dealer(self) -> bool:
        return self in (Channel.ONLINE_DEALER, Channel.OFFLINE_DEALER)

    @property
    def is_direct(self) -> bool:
        return self in (Channel.ONLINE_DIRECT, Channel.OFFLINE_DIRECT)


SALES_CHANNELS: tuple[Channel, ...] = (
    Channel.ONLINE_DIRECT,
    Channel.ONLINE_DEALER,
    Channel.OFFLINE_DIRECT,
    Channel.OFFLINE_DEALER,
)


class ChannelMetric(str, Enum):
    TAG_SALE = "tagSale"
    ACT_SALE_VAT_INC = "actSaleVatInc"
    COGS = "cogs"


@dataclass(frozen=True)
class LineDefinition:
    """Static, hand-authored income statement row."""

    id: str
    label: str
    level: int
    is_parent: bool = False
    is_calculated: bool = False
    level1: str | None = None
    level2: str | None = None
    level3: str | None = None
    cost_category: CostCategory | None = None
    type: LineType | None = None
    children: tuple["LineDefinition", ...] = ()
    depends_on: tuple[str, ...] = ()
    default_expanded: bool = False

    def walk(self) -> Iterator["LineDefinition"]:
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass
class PlLine:
    """Computed counterpart of a LineDefinition. None means not computable."""

    id: str
    label: str
    level: int
    is_parent: bool
    is_calculated: bool
    prev_year: float | None = None
    prev_year_accum: float | None = None
    prev_year_progress_rate: float | None = None
    target: float | None = None
    accum: float | None = None
    forecast: float | None = None
    yoy_rate: float | None = None
    achv_rate: float | None = None
    children: list["PlLine"] | None = None
    default_expanded: bool = False

    def walk(self) -> Iterator["PlLine"]:
        yield self
        for child in self.children or []:
            yield from child.walk()

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "level": self.level,
            "isParent": self.is_parent,
            "isCalculated": self.is_calculated,
            "prevYear": self.prev_year,
            "prevYearAccum": self.prev_year_accum,
            "prevYearProgressRate": self.prev_year_progress_rate,
            "target": self.target,
            "accum": self.accum,
            "forecast": self.forecast,
            "yoyRate": self.yoy_rate,
            "achvRate": self.achv_rate,
            "defaultExpanded": self.default_expanded,
        }
        if self.children is not None:
            payload["children"] = [child.to_dict() for child in self.children]
        return payload


@dataclass(frozen=True)
class RawInputs:
    """Pre-aggregated warehouse actuals for one entity, keyed by account item."""

    prev_year: Mapping[str, float]
    prev_year_accum: Mapping[str, float]
    accum: Mapping[str, float]
    accum_days: int
    month_days: int
    year_month: str | None = None
    cutoff_date: date | None = None


@dataclass(frozen=True)
class EntityActuals:
    """Item totals loaded for one entity; `last_date` is the entity's latest posted day."""

    prev_year: Mapping[str, float] = field(default_factory=dict)
    prev_year_accum: Mapping[str, float] = field(default_factory=dict)
    accum: Mapping[str, float] = field(default_factory=dict)
    last_date: date | None = None

    def to_raw(self, accum_days: int, month_days: int, year_month: str | None = None, cutoff_date: date | None = None) -> RawInputs:
        return RawInputs(
            prev_year=self.prev_year,
            prev_year_accum=self.prev_year_accum,
            accum=self.accum,
            accum_days=accum_days,
            month_days=month_days,
            year_month=year_month,
            cutoff_date=cutoff_date,
        )


@dataclass(frozen=True)
class AccountMapping:
    level1: str
    level2: str
    level3: str
    item: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "AccountMapping":
        return cls(
            level1=str(row.get("level1", "") or "").strip(),
            level2=str(row.get("level2", "") or "").strip(),
            level3=str(row.get("level3", "") or "").strip(),
            item=str(row.get("ITEM", row.get("item", "")) or "").strip(),
        )


@dataclass(frozen=True)
class TargetRow:
    level1: str
    level2: str
    level3: str
    values: Mapping[str, float | None] = field(default_factory=dict)

    def value(self, entity: str) -> float | None:
        return self.values.get(entity)


@dataclass(frozen=True)
class ChannelFigures:
    prev_year: float | None = None
    prev_year_accum: float | None = None
    accum: float | None = None
    target: float | None = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ChannelFigures":
        return cls(
            prev_year=_to_optional_float(row.get("PREV_YEAR")),
            prev_year_accum=_to_optional_float(row.get("PREV_YEAR_ACCUM")),
            accum=_to_optional_float(row.get("ACCUM")),
            target=_to_optional_float(row.get("TARGET")),
        )


EMPTY_CHANNEL_FIGURES = ChannelFigures()


@dataclass(frozen=True)
class ChannelData:
    """Per-channel actual/target/prior-year figures for one entity."""

    tag_sale: Mapping[Channel, ChannelFigures] = field(default_factory=dict)
    act_sale_vat_inc: Mapping[Channel, ChannelFigures] = field(default_factory=dict)
    cogs: Mapping[Channel, ChannelFigures] = field(default_factory=dict)

    def _table(self, metric: ChannelMetric) -> Mapping[Channel, ChannelFigures]:
        return {
            ChannelMetric.TAG_SALE: self.tag_sale,
            ChannelMetric.ACT_SALE_VAT_INC: self.act_sale_vat_inc,
            ChannelMetric.COGS: self.cogs,
        }[metric]

    def figures(self, metric: ChannelMetric, channel: Channel) -> ChannelFigures:
        return self._table(metric).get(channel, EMPTY_CHANNEL_FIGURES)

    def has_metric(self, metric: ChannelMetric) -> bool:
        return bool(self._table(metric))

    @property
    def metrics(self) -> frozenset[ChannelMetric]:
        """Metrics with at least one channel row."""
        return frozenset(metric for metric in ChannelMetric if self.has_metric(metric))

    def restricted(self, metrics: AbstractSet[ChannelMetric]) -> "ChannelData":
        """Copy that keeps only the rows of the given metrics."""
        return ChannelData(
            tag_sale=self.tag_sale if ChannelMetric.TAG_SALE in metrics else {},
            act_sale_vat_inc=self.act_sale_vat_inc if ChannelMetric.ACT_SALE_VAT_INC in metrics else {},
            cogs=self.cogs if ChannelMetric.COGS in metrics else {},
        )


@dataclass(frozen=True)
class CalcContext:
    """Intermediate forecasts published by one entity's evaluation pass."""

    vat_exc_forecast: float = 0.0
    vat_exc_target: float = 0.0
    act_sale_vat_inc_forecast: float = 0.0
    cogs_sum_forecast: float = 0.0
    gross_profit_forecast: float = 0.0
    direct_cost_sum_forecast: float = 0.0
    opex_sum_forecast: float = 0.0
