from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record per rejected row (or per failed commit, with row=-1 as the sentinel for
"no particular row").
"""

__all__ = [
    "ErrorRecord",
    "ROW_REJECTED",
    "COMMIT_FAILED",
]

ROW_REJECTED = "ROW_REJECTED"
COMMIT_FAILED = "COMMIT_FAILED"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: uploaded file name
        row: 1-based data row number, -1 when the error is not tied to a row
        error_type: UPPER_SNAKE_CASE classification
        message: message reported by the sink (or the failure description)
    """
    timestamp: str
    file: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
