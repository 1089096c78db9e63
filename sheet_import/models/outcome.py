from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

"""Import outcome models.

ImportOutcome is what a sink reports after a commit: how many rows it accepted and the
rows it rejected. Rejections are data, not exceptions; a commit with row errors is a
normal, finished commit.

Row numbers are 1-based data-row indices (the first row after the header is row 1).
"""

__all__ = [
    "RowError",
    "ImportOutcome",
    "OutcomeShapeError",
]


class OutcomeShapeError(ValueError):
    """Raised when a sink result cannot be read as an ImportOutcome."""


@dataclass(frozen=True)
class RowError:
    row: int
    message: str


@dataclass(frozen=True)
class ImportOutcome:
    """Terminal result of one commit attempt."""
    success_count: int
    errors: tuple[RowError, ...] = ()

    def __post_init__(self) -> None:
        if self.success_count < 0:
            raise OutcomeShapeError(f"success_count must be >= 0, got {self.success_count}")

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def skipped(self, total_rows: int) -> int:
        """Rows neither accepted nor rejected by the sink (never negative)."""
        return max(0, total_rows - self.success_count - self.error_count)

    @staticmethod
    def coerce(raw: Any) -> ImportOutcome:
        """Read a sink result into an ImportOutcome.

        Accepts an ImportOutcome as-is, or a mapping shaped like
        ``{"successCount": 3, "errors": [{"row": 4, "message": "..."}]}``
        (``success_count`` and ``success`` are accepted as aliases).
        """
        if isinstance(raw, ImportOutcome):
            return raw
        if not isinstance(raw, Mapping):
            raise OutcomeShapeError(f"unsupported outcome type: {type(raw).__name__}")

        count: Any = None
        for key in ("successCount", "success_count", "success"):
            if key in raw:
                count = raw[key]
                break
        if isinstance(count, bool) or not isinstance(count, int):
            raise OutcomeShapeError(f"success count missing or not an integer: {count!r}")

        errors: list[RowError] = []
        for item in raw.get("errors") or []:
            if isinstance(item, RowError):
                errors.append(item)
                continue
            if not isinstance(item, Mapping) or "row" not in item:
                raise OutcomeShapeError(f"malformed row error: {item!r}")
            try:
                row = int(item["row"])
            except (TypeError, ValueError) as e:
                raise OutcomeShapeError(f"row error has non-integer row: {item['row']!r}") from e
            errors.append(RowError(row=row, message=str(item.get("message", ""))))
        return ImportOutcome(success_count=count, errors=tuple(errors))
