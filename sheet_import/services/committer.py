from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import COMMIT_FAILED, ROW_REJECTED, ErrorRecord
from ..models.outcome import ImportOutcome, OutcomeShapeError
from .transformer import TransformedRow

"""Commit service: hand transformed rows to the caller's sink and read back the outcome.

Two failure levels:
- row errors reported inside a resolved outcome are normal results; they are logged,
  buffered to the error log and returned
- the sink raising (or returning something that is not an outcome) is a CommitFailure;
  there is no partial outcome in that case and no retry here

Row contents are never inspected; validation belongs to the sink.
"""

__all__ = [
    "Sink",
    "CommitFailure",
    "commit",
]

logger = logging.getLogger(__name__)

Sink = Callable[[list[TransformedRow]], Awaitable[Any]]


class CommitFailure(Exception):
    """Raised when the sink call itself fails."""


async def commit(
    rows: Sequence[TransformedRow],
    sink: Sink,
    *,
    file_name: str = "",
    error_log: ErrorLogBuffer | None = None,
) -> ImportOutcome:
    """Await ``sink(rows)`` and return its result as an ImportOutcome.

    Parameters
    ----------
    rows: 変換済み行 (そのまま sink へ渡す)
    sink: 非同期 callable。ImportOutcome もしくは {successCount, errors} 形の dict を返す
    file_name: エラーログ記録用のファイル名
    error_log: 指定時、行エラー / コミット失敗を記録 (flush は呼び出し側)
    """
    batch = list(rows)
    logger.info(f"committing {len(batch)} rows")
    try:
        raw = await sink(batch)
    except Exception as e:
        _record(error_log, file_name, -1, COMMIT_FAILED, str(e))
        logger.error(f"commit failed: {e}")
        raise CommitFailure(str(e) or type(e).__name__) from e

    try:
        outcome = ImportOutcome.coerce(raw)
    except OutcomeShapeError as e:
        _record(error_log, file_name, -1, COMMIT_FAILED, str(e))
        logger.error(f"commit failed: sink returned malformed outcome: {e}")
        raise CommitFailure(f"sink returned malformed outcome: {e}") from e

    for err in outcome.errors:
        _record(error_log, file_name, err.row, ROW_REJECTED, err.message)
        logger.debug(f"row {err.row}: {err.message}")
    logger.info(f"commit finished: success={outcome.success_count} errors={outcome.error_count}")
    return outcome


def _record(buffer: ErrorLogBuffer | None, file_name: str, row: int, error_type: str, message: str) -> None:
    if buffer is not None:
        buffer.append(ErrorRecord.create(file_name, row, error_type, message))
