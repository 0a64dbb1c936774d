"""Consolidation of per-entity P&L trees into one tree."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from plforecast.application.formulas import FIGURE_FIELDS, Figures, apply_figures, apply_rates, profit_figures, rollup
from plforecast.application.reporting.selectors import index_lines, walk_lines
from plforecast.domain.definitions import DEFAULT_TREE, DefinitionTree
from plforecast.domain.models import PlLine

logger = logging.getLogger(__name__)


def _blank_clone(line: PlLine) -> PlLine:
    children = None if line.children is None else [_blank_clone(child) for child in line.children]
    return PlLine(
        id=line.id,
        label=line.label,
        level=line.level,
        is_parent=line.is_parent,
        is_calculated=line.is_calculated,
        children=children,
        default_expanded=line.default_expanded,
    )


def _accumulate(merged: PlLine, line: PlLine) -> None:
    for name in FIGURE_FIELDS:
        value = getattr(line, name)
        if value is None:
            continue
        current = getattr(merged, name)
        setattr(merged, name, value if current is None else current + value)


def _rederive(merged_index: Dict[str, PlLine], tree: DefinitionTree) -> None:
    for index in tree.evaluation_order:
        node = tree.node(index)
        line = merged_index.get(node.id)
        line_type = node.definition.type
        if line is None or not node.definition.is_calculated or line_type is None:
            continue
        if line_type.is_rollup:
            figures = rollup([Figures.of(child) for child in line.children or []], line_type)
        elif line_type.is_profit:
            dependencies = []
            for dep in node.dependencies:
                dep_line = merged_index.get(tree.node(dep).id)
                dependencies.append(Figures.of(dep_line) if dep_line is not None else Figures())
            figures = profit_figures(line_type, dependencies)
        else:
            continue
        apply_figures(line, figures)


def merge_line_trees(trees: Sequence[Sequence[PlLine]], tree: DefinitionTree = DEFAULT_TREE) -> List[PlLine]:
    """Sum entity trees by line id and re-derive calculated lines from the merged figures.

    The first tree defines the shape. Lines another tree lacks, or carries
    in addition, are skipped rather than treated as an error.
    """
    if not trees:
        return []

    merged = [_blank_clone(line) for line in trees[0]]
    merged_index = index_lines(merged)
    skipped = 0
    for entity_lines in trees:
        for line in walk_lines(entity_lines):
            target = merged_index.get(line.id)
            if target is None:
                skipped += 1
                continue
            if target.is_calculated:
                continue
            _accumulate(target, line)

    _rederive(merged_index, tree)
    for line in walk_lines(merged):
        apply_rates(line)

    logger.debug("Merged %d entity trees (%d lines, %d unmatched)", len(trees), len(merged_index), skipped)
    return merged
