"""Account-hierarchy filters over raw item maps and the target table."""

from __future__ import annotations

from typing import Collection, Mapping, Sequence

from plforecast.config import ALL_ENTITIES, ENTITY_CODES
from plforecast.domain.models import AccountMapping, TargetRow


def _matches(row: AccountMapping | TargetRow, level1: str | None, level2: str | None, level3: str | None) -> bool:
    if level1 and row.level1 != level1:
        return False
    if level2 and row.level2 != level2:
        return False
    if level3 and row.level3 != level3:
        return False
    return True


def items_by_level(
    mappings: Sequence[AccountMapping],
    level1: str | None = None,
    level2: str | None = None,
    level3: str | None = None,
) -> list[str]:
    return [row.item for row in mappings if _matches(row, level1, level2, level3)]


def sum_by_level(
    data: Mapping[str, float],
    mappings: Sequence[AccountMapping],
    level1: str | None = None,
    level2: str | None = None,
    level3: str | None = None,
    exclude_items: Collection[str] = (),
) -> float:
    total = 0.0
    for item in items_by_level(mappings, level1, level2, level3):
        if item in exclude_items:
            continue
        total += float(data.get(item) or 0.0)
    return total


def target_value(
    targets: Sequence[TargetRow],
    entity: str,
    level1: str | None = None,
    level2: str | None = None,
    level3: str | None = None,
) -> float | None:
    """Sum of the entity column over matching rows; None when no row carries a value."""
    if entity == ALL_ENTITIES:
        return target_value_all(targets, level1, level2, level3)

    total = 0.0
    has_value = False
    for row in targets:
        if not _matches(row, level1, level2, level3):
            continue
        value = row.value(entity)
        if value is not None:
            total += value
            has_value = True
    return total if has_value else None


def target_value_all(
    targets: Sequence[TargetRow],
    level1: str | None = None,
    level2: str | None = None,
    level3: str | None = None,
    entities: Sequence[str] = ENTITY_CODES,
) -> float | None:
    total = 0.0
    has_value = False
    for entity in entities:
        value = target_value(targets, entity, level1, level2, level3)
        if value is not None:
            total += value
            has_value = True
    return total if has_value else None
