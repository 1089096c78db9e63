from __future__ import annotations

import logging
from typing import Any

from ..models.grid import Grid
from ..models.mapping import MappingSet

"""Row transformer: Grid + MappingSet -> target-shaped rows.

Each bound target field is resolved on its own. A missing column or a short (ragged)
row yields None for that field only; the rest of the row and all following rows are
still produced.
"""

__all__ = [
    "TransformedRow",
    "resolve_columns",
    "transform_row",
    "transform_all",
]

logger = logging.getLogger(__name__)

TransformedRow = dict[str, Any]


def resolve_columns(grid: Grid, mapping_set: MappingSet) -> dict[str, int | None]:
    """Map each bound target field to its column position (None if the header is absent)."""
    positions: dict[str, int | None] = {}
    for target, source in mapping_set.bound():
        idx = grid.column_index(source)
        if idx is None:
            logger.warning(f"source column not found in header: {source!r} (target={target})")
        positions[target] = idx
    return positions


def transform_row(grid: Grid, row_index: int, positions: dict[str, int | None]) -> TransformedRow:
    out: TransformedRow = {}
    for target, idx in positions.items():
        out[target] = None if idx is None else grid.cell(row_index, idx)
    return out


def transform_all(grid: Grid, mapping_set: MappingSet) -> list[TransformedRow]:
    """Transform every data row, in file order. Unbound target fields are absent."""
    positions = resolve_columns(grid, mapping_set)
    return [transform_row(grid, i, positions) for i in range(grid.row_count)]
