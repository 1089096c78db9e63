from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

"""Grid model: the normalized header/data-row matrix produced by the file parser.

Both delimited text and spreadsheet input end up here, so every later stage
(mapping, preview, transform) works on one shape regardless of file kind.
"""

__all__ = [
    "Grid",
]


@dataclass(frozen=True)
class Grid:
    """Header row plus data rows, aligned by position.

    Rows may be ragged (shorter or longer than the header). A cell beyond the end of a
    row reads as ``None``; it is never an error.
    """
    header_row: tuple[str | None, ...]  # None = 空ヘッダセル (位置は保持)
    data_rows: tuple[tuple[Any, ...], ...]  # ヘッダ行を除いたデータ行

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]]) -> Grid:
        """Build a Grid treating the first row as the header row."""
        if not rows:
            raise ValueError("grid requires at least a header row")
        header = tuple(_header_text(c) for c in rows[0])
        data = tuple(tuple(r) for r in rows[1:])
        return cls(header_row=header, data_rows=data)

    @property
    def headers(self) -> list[str]:
        """Non-empty header names, in column order (candidate source columns)."""
        return [h for h in self.header_row if h]

    @property
    def row_count(self) -> int:
        return len(self.data_rows)

    def column_index(self, name: str) -> int | None:
        """Position of the first header equal to ``name``; duplicates resolve first-match-wins."""
        for idx, header in enumerate(self.header_row):
            if header is not None and header == name:
                return idx
        return None

    def cell(self, row_index: int, column_index: int) -> Any:
        row = self.data_rows[row_index]
        if column_index < 0 or column_index >= len(row):
            return None
        return row[column_index]

    def head(self, limit: int) -> Iterable[tuple[Any, ...]]:
        return self.data_rows[:limit]


def _header_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    if text.strip() == "":
        return None
    return text
