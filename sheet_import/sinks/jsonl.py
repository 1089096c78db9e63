from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from ..models.outcome import ImportOutcome, RowError
from ..services.progress import ProgressTracker

"""JSON Lines sink used by the CLI.

Accepted rows are appended to a .jsonl file, one object per line. A row is rejected
(reported as a RowError, not raised) when one of the required fields is blank.
Row numbers are 1-based data-row indices.
"""

__all__ = [
    "JsonLinesSink",
]

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


class JsonLinesSink:
    def __init__(self, path: Path, required_fields: Iterable[str] = ()) -> None:
        self.path = path
        self.required_fields = tuple(required_fields)

    def validate(self, row: dict[str, Any]) -> str | None:
        for name in self.required_fields:
            if _is_blank(row.get(name)):
                return f"missing required field '{name}'"
        return None

    async def __call__(self, rows: list[dict[str, Any]]) -> ImportOutcome:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        errors: list[RowError] = []
        written = 0
        with self.path.open("a", encoding="utf-8") as f, ProgressTracker(len(rows)) as progress:
            for number, row in enumerate(rows, start=1):
                problem = self.validate(row)
                if problem is not None:
                    errors.append(RowError(row=number, message=problem))
                else:
                    # datetime 等は str で退避
                    f.write(json.dumps(row, ensure_ascii=False, default=str) + "\n")
                    written += 1
                progress.advance()
            progress.set_postfix(ok=written, rejected=len(errors))
        logger.debug(f"jsonl sink wrote {written} rows to {self.path}")
        return ImportOutcome(success_count=written, errors=tuple(errors))
