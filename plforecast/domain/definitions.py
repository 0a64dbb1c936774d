"""Static income-statement definition and its indexed dependency graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence

import networkx as nx

from plforecast.config import DEALER_SUPPORT_LEVEL2
from plforecast.domain.models import (
    SALES_CHANNELS,
    Channel,
    ChannelMetric,
    CostCategory,
    LineDefinition,
    LineType,
)

CHANNEL_SUFFIXES: dict[Channel, str] = {
    Channel.ONLINE_DIRECT: "online-direct",
    Channel.ONLINE_DEALER: "online-dealer",
    Channel.OFFLINE_DIRECT: "offline-direct",
    Channel.OFFLINE_DEALER: "offline-dealer",
}
CHANNEL_LABELS: dict[Channel, str] = {
    Channel.ONLINE_DIRECT: "온라인직영",
    Channel.ONLINE_DEALER: "온라인대리상",
    Channel.OFFLINE_DIRECT: "오프라인직영",
    Channel.OFFLINE_DEALER: "오프라인대리상",
    Channel.TOTAL: "합계",
}
CHANNEL_METRIC_BY_TYPE: dict[LineType, ChannelMetric] = {
    LineType.CHANNEL_TAG_SALE: ChannelMetric.TAG_SALE,
    LineType.CHANNEL_VAT_INC: ChannelMetric.ACT_SALE_VAT_INC,
    LineType.CHANNEL_COGS: ChannelMetric.COGS,
}

TAG_SALE_ID = "tag-sale"
ACT_SALE_VAT_INC_ID = "act-sale-vat-inc"
ACT_SALE_VAT_EXC_ID = "act-sale-vat-exc"
COGS_ID = "cogs"
COGS_SUM_ID = "cogs-sum"
GROSS_PROFIT_ID = "gross-profit"
DIRECT_COST_SUM_ID = "direct-cost-sum"
DIRECT_PROFIT_ID = "direct-profit"
OPEX_SUM_ID = "opex-sum"
OPERATING_PROFIT_ID = "operating-profit"

# Parents whose totals are re-derived from their channel children when that metric has channel rows.
CHANNEL_METRIC_BY_PARENT_ID: dict[str, ChannelMetric] = {
    TAG_SALE_ID: ChannelMetric.TAG_SALE,
    ACT_SALE_VAT_INC_ID: ChannelMetric.ACT_SALE_VAT_INC,
    COGS_ID: ChannelMetric.COGS,
}

# Revenue channel that scales each variable direct cost; ids not listed are fixed direct costs.
DIRECT_COST_REFERENCE: dict[str, Channel] = {
    "direct-royalty": Channel.TOTAL,
    "direct-logistics": Channel.TOTAL,
    "direct-platform-fee": Channel.ONLINE_DIRECT,
    "direct-store-fee": Channel.OFFLINE_DIRECT,
    "direct-other": Channel.TOTAL,
}


def channel_line_id(parent_id: str, channel: Channel) -> str:
    return f"{parent_id}-{CHANNEL_SUFFIXES[channel]}"


def _channel_children(parent_id: str, line_type: LineType, level: int) -> tuple[LineDefinition, ...]:
    children: list[LineDefinition] = []
    for channel in SALES_CHANNELS:
        depends_on: tuple[str, ...] = ()
        if line_type is LineType.CHANNEL_COGS:
            depends_on = (channel_line_id(TAG_SALE_ID, channel),)
        children.append(
            LineDefinition(
                id=channel_line_id(parent_id, channel),
                label=CHANNEL_LABELS[channel],
                level=level,
                type=line_type,
                depends_on=depends_on,
            )
        )
    return tuple(children)


def _direct_cost(line_id: str, label: str, level2: str) -> LineDefinition:
    reference = DIRECT_COST_REFERENCE.get(line_id)
    depends_on: tuple[str, ...] = ()
    if reference is not None:
        depends_on = (ACT_SALE_VAT_EXC_ID,)
        if reference is not Channel.TOTAL:
            depends_on += (channel_line_id(ACT_SALE_VAT_INC_ID, reference),)
    return LineDefinition(
        id=line_id,
        label=label,
        level=1,
        level1="직접비",
        level2=level2,
        cost_category=CostCategory.DIRECT,
        depends_on=depends_on,
    )


def _opex(line_id: str, label: str, level2: str) -> LineDefinition:
    return LineDefinition(
        id=line_id,
        label=label,
        level=1,
        level1="영업비",
        level2=level2,
        cost_category=CostCategory.OPEX,
    )


LINE_DEFINITIONS: tuple[LineDefinition, ...] = (
    LineDefinition(
        id=TAG_SALE_ID,
        label="Tag매출",
        level=0,
        is_parent=True,
        level1="Tag매출",
        children=_channel_children(TAG_SALE_ID, LineType.CHANNEL_TAG_SALE, level=1),
    ),
    LineDefinition(
        id=ACT_SALE_VAT_INC_ID,
        label="실판(V+)",
        level=0,
        is_parent=True,
        level1="실판(V+)",
        children=_channel_children(ACT_SALE_VAT_INC_ID, LineType.CHANNEL_VAT_INC, level=1),
    ),
    LineDefinition(
        id=ACT_SALE_VAT_EXC_ID,
        label="실판(V-)",
        level=0,
        level1="실판(V-)",
        type=LineType.VAT_EXCLUDED,
        depends_on=(ACT_SALE_VAT_INC_ID,),
    ),
    LineDefinition(
        id=COGS_SUM_ID,
        label="매출원가 합계",
        level=0,
        is_parent=True,
        is_calculated=True,
        type=LineType.COGS_SUM,
        children=(
            LineDefinition(
                id=COGS_ID,
                label="매출원가",
                level=1,
                is_parent=True,
                level1="매출원가",
                children=_channel_children(COGS_ID, LineType.CHANNEL_COGS, level=2),
            ),
            LineDefinition(id="valuation-loss", label="평가감", level=1, level1="평가감"),
        ),
    ),
    LineDefinition(
        id=GROSS_PROFIT_ID,
        label="매출총이익",
        level=0,
        is_calculated=True,
        type=LineType.GROSS_PROFIT,
        depends_on=(ACT_SALE_VAT_INC_ID, COGS_SUM_ID),
    ),
    LineDefinition(
        id=DIRECT_COST_SUM_ID,
        label="직접비 합계",
        level=0,
        is_parent=True,
        is_calculated=True,
        type=LineType.DIRECT_COST_SUM,
        children=(
            _direct_cost("direct-royalty", "로열티", "로열티"),
            _direct_cost("direct-logistics", "물류비", "물류비"),
            _direct_cost("direct-platform-fee", "플랫폼수수료", "플랫폼수수료"),
            _direct_cost("direct-store-fee", "매장수수료", "매장수수료"),
            _direct_cost("direct-dealer-support", "대리상지원금", DEALER_SUPPORT_LEVEL2),
            _direct_cost("direct-rent", "매장임차료", "임차료"),
            _direct_cost("direct-depreciation", "감가상각비", "감가상각비"),
            _direct_cost("direct-labor", "매장인건비", "인건비"),
            _direct_cost("direct-other", "기타직접비", "기타"),
        ),
    ),
    LineDefinition(
        id=DIRECT_PROFIT_ID,
        label="직접이익",
        level=0,
        is_calculated=True,
        type=LineType.DIRECT_PROFIT,
        depends_on=(GROSS_PROFIT_ID, DIRECT_COST_SUM_ID),
    ),
    LineDefinition(
        id=OPEX_SUM_ID,
        label="영업비 합계",
        level=0,
        is_parent=True,
        is_calculated=True,
        type=LineType.OPEX_SUM,
        children=(
            _opex("opex-labor", "인건비", "인건비"),
            _opex("opex-advertising", "광고선전비", "광고선전비"),
            _opex("opex-fees", "지급수수료", "지급수수료"),
            _opex("opex-rent", "임차료", "임차료"),
            _opex("opex-depreciation", "감가상각비", "감가상각비"),
            _opex("opex-other", "기타영업비", "기타"),
        ),
    ),
    LineDefinition(
        id=OPERATING_PROFIT_ID,
        label="영업이익",
        level=0,
        is_calculated=True,
        type=LineType.OPERATING_PROFIT,
        depends_on=(GROSS_PROFIT_ID, DIRECT_COST_SUM_ID, OPEX_SUM_ID),
    ),
)

CHANNEL_BY_LINE_ID: dict[str, Channel] = {
    channel_line_id(parent_id, channel): channel
    for parent_id in (TAG_SALE_ID, ACT_SALE_VAT_INC_ID, COGS_ID)
    for channel in SALES_CHANNELS
}


def is_dealer_support(definition: LineDefinition) -> bool:
    return definition.level2 == DEALER_SUPPORT_LEVEL2


@dataclass(frozen=True)
class DefinitionNode:
    index: int
    definition: LineDefinition
    parent: int | None
    children: tuple[int, ...]
    dependencies: tuple[int, ...]

    @property
    def id(self) -> str:
        return self.definition.id


class DefinitionTree:
    """Arena of definition nodes with dependencies resolved to integer indices."""

    def __init__(self, roots: Sequence[LineDefinition]) -> None:
        self._definitions: list[LineDefinition] = []
        self._parents: list[int | None] = []
        self._children: list[list[int]] = []
        self._index_by_id: dict[str, int] = {}

        self.roots: tuple[int, ...] = tuple(self._add(root, None) for root in roots)

        nodes: list[DefinitionNode] = []
        for index, definition in enumerate(self._definitions):
            dependencies: list[int] = []
            for dep_id in definition.depends_on:
                dep_index = self._index_by_id.get(dep_id)
                if dep_index is None:
                    raise ValueError(f"Line {definition.id!r} depends on unknown line {dep_id!r}")
                dependencies.append(dep_index)
            nodes.append(
                DefinitionNode(
                    index=index,
                    definition=definition,
                    parent=self._parents[index],
                    children=tuple(self._children[index]),
                    dependencies=tuple(dependencies),
                )
            )
        self.nodes: tuple[DefinitionNode, ...] = tuple(nodes)
        self.evaluation_order: tuple[int, ...] = self._topological_order()

    def _add(self, definition: LineDefinition, parent: int | None) -> int:
        if definition.id in self._index_by_id:
            raise ValueError(f"Duplicate line id: {definition.id!r}")
        index = len(self._definitions)
        self._definitions.append(definition)
        self._parents.append(parent)
        self._children.append([])
        self._index_by_id[definition.id] = index
        for child in definition.children:
            self._children[index].append(self._add(child, index))
        return index

    def _topological_order(self) -> tuple[int, ...]:
        # Edges run from each child and declared dependency to the node that reads it.
        graph = nx.DiGraph()
        graph.add_nodes_from(range(len(self.nodes)))
        for node in self.nodes:
            graph.add_edges_from((required, node.index) for required in node.children + node.dependencies)
        try:
            return tuple(nx.lexicographical_topological_sort(graph))
        except nx.NetworkXUnfeasible as exc:
            cycle = " -> ".join(self.nodes[source].id for source, _ in nx.find_cycle(graph))
            raise ValueError(f"Dependency cycle in line definitions: {cycle}") from exc

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[DefinitionNode]:
        return iter(self.nodes)

    def __contains__(self, line_id: object) -> bool:
        return line_id in self._index_by_id

    def index_of(self, line_id: str) -> int:
        try:
            return self._index_by_id[line_id]
        except KeyError as exc:
            raise ValueError(f"Unknown line id: {line_id!r}") from exc

    def node(self, index: int) -> DefinitionNode:
        return self.nodes[index]

    def leaf_descendants(self, index: int) -> list[DefinitionNode]:
        """Descendants (or the node itself) that carry an account filter."""
        node = self.nodes[index]
        if node.definition.level1:
            return [node]
        leaves: list[DefinitionNode] = []
        for child in node.children:
            leaves.extend(self.leaf_descendants(child))
        return leaves


DEFAULT_TREE = DefinitionTree(LINE_DEFINITIONS)
