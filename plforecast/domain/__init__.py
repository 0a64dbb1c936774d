"""Domain layer package."""

from .definitions import DEFAULT_TREE, LINE_DEFINITIONS, DefinitionNode, DefinitionTree
from .models import (
    AccountMapping,
    CalcContext,
    Channel,
    ChannelData,
    ChannelFigures,
    ChannelMetric,
    CostCategory,
    EntityActuals,
    LineDefinition,
    LineType,
    PlLine,
    RawInputs,
    TargetRow,
)

__all__ = [
    "AccountMapping",
    "CalcContext",
    "Channel",
    "ChannelData",
    "ChannelFigures",
    "ChannelMetric",
    "CostCategory",
    "EntityActuals",
    "DEFAULT_TREE",
    "DefinitionNode",
    "DefinitionTree",
    "LINE_DEFINITIONS",
    "LineDefinition",
    "LineType",
    "PlLine",
    "RawInputs",
    "TargetRow",
]
