from __future__ import annotations

from ..models.grid import Grid
from ..models.mapping import MappingSet
from .transformer import TransformedRow, resolve_columns, transform_row

"""Preview: the first few rows, transformed with the current (possibly incomplete) mapping."""

__all__ = [
    "PREVIEW_LIMIT",
    "preview",
]

PREVIEW_LIMIT = 5


def preview(grid: Grid, mapping_set: MappingSet, limit: int = PREVIEW_LIMIT) -> list[TransformedRow]:
    """Return exactly ``min(grid.row_count, limit)`` transformed rows from the top of the grid."""
    if limit < 0:
        raise ValueError(f"preview limit must be >= 0, got {limit}")
    positions = resolve_columns(grid, mapping_set)
    count = min(grid.row_count, limit)
    return [transform_row(grid, i, positions) for i in range(count)]
