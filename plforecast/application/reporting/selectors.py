"""Line lookup helpers over computed P&L trees."""

from __future__ import annotations

from typing import Dict, Iterator, List, Sequence

from plforecast.domain.models import PlLine


def walk_lines(lines: Sequence[PlLine]) -> Iterator[PlLine]:
    for line in lines:
        yield from line.walk()


def index_lines(lines: Sequence[PlLine]) -> Dict[str, PlLine]:
    """Map every line id in the tree to its line; the first occurrence wins."""
    indexed: Dict[str, PlLine] = {}
    for line in walk_lines(lines):
        indexed.setdefault(line.id, line)
    return indexed


def find_line(lines: Sequence[PlLine], line_id: str) -> PlLine | None:
    for line in walk_lines(lines):
        if line.id == line_id:
            return line
    return None


def line_field(lines: Sequence[PlLine], line_id: str, field: str) -> float | None:
    line = find_line(lines, line_id)
    if line is None:
        return None
    return getattr(line, field)


def flatten_lines(lines: Sequence[PlLine]) -> List[tuple[PlLine, str | None]]:
    """Depth-first (line, parent_id) pairs in display order."""
    rows: List[tuple[PlLine, str | None]] = []

    def _visit(line: PlLine, parent_id: str | None) -> None:
        rows.append((line, parent_id))
        for child in line.children or []:
            _visit(child, line.id)

    for line in lines:
        _visit(line, None)
    return rows
