from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from ..config.loader import ImportDefinition
from ..excel.reader import ParseError, parse
from ..excel.template import build_template, template_file_name
from ..logging.error_log import ErrorLogBuffer
from ..models.grid import Grid
from ..models.mapping import FieldMapping
from ..models.outcome import ImportOutcome
from ..models.state import CompleteState, MappingState, SessionState, UploadState
from . import column_mapper
from .committer import CommitFailure, Sink
from .committer import commit as commit_rows
from .preview import PREVIEW_LIMIT
from .preview import preview as preview_rows
from .transformer import TransformedRow, transform_all

"""Import session: the upload → map → complete state machine.

One session serves one import dialog. Every file selection starts a new attempt
(attempt id + 1); reset() does the same and returns to upload. The attempt id is
checked after the sink call returns, so the outcome of an abandoned attempt is
handed back to its caller but never applied to the newer attempt's state.

Failure handling:
- ParseError: state stays at upload with the message, error re-raised
- incomplete mapping: commit() refuses (InvalidTransitionError); check is_complete first
- CommitFailure: state stays at map with the message, error re-raised; commit() may be
  retried without choosing the file again
- row errors: part of the outcome, state moves to complete
"""

__all__ = [
    "InvalidTransitionError",
    "ImportSession",
]

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised when an operation is not allowed in the current state."""


class ImportSession:
    def __init__(
        self,
        fields: Sequence[FieldMapping],
        *,
        title: str = "Import",
        template_rows: Sequence[Mapping[str, Any]] = (),
        preview_limit: int = PREVIEW_LIMIT,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.fields = tuple(fields)
        self.title = title
        self.template_rows = tuple(template_rows)
        self.preview_limit = preview_limit
        self.error_log = error_log
        self._attempt = 0
        self._state: SessionState = UploadState(attempt=0)
        self._inflight_attempt: int | None = None

    @classmethod
    def from_definition(cls, definition: ImportDefinition, error_log: ErrorLogBuffer | None = None) -> ImportSession:
        return cls(
            definition.fields,
            title=definition.title,
            template_rows=definition.template_rows,
            preview_limit=definition.preview_limit,
            error_log=error_log,
        )

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def attempt(self) -> int:
        return self._attempt

    @property
    def is_complete(self) -> bool:
        """Mapping gate: True once every required field has a source column."""
        if not isinstance(self._state, MappingState):
            return False
        return column_mapper.is_complete(self._state.mapping, self.fields)

    def missing_required(self) -> list[str]:
        if not isinstance(self._state, MappingState):
            return [f.target_field for f in self.fields if f.required]
        return column_mapper.missing_required(self._state.mapping, self.fields)

    def _require_mapping(self, action: str) -> MappingState:
        if not isinstance(self._state, MappingState):
            raise InvalidTransitionError(f"cannot {action} in state {self._state.step.value!r}")
        if self._inflight_attempt == self._attempt:
            raise InvalidTransitionError(f"cannot {action} while a commit is in progress")
        return self._state

    # ---------------------------------------------------------- transitions

    def reset(self) -> None:
        """Abandon the current attempt (file replaced, dialog closed or cancelled)."""
        self._attempt += 1
        self._state = UploadState(attempt=self._attempt)
        logger.debug(f"session reset -> attempt {self._attempt}")

    def choose_file(self, data: bytes, file_name: str) -> MappingState:
        """Parse the file and propose an automatic mapping.

        Choosing a file while mapping replaces the previous file (new attempt).
        """
        if isinstance(self._state, CompleteState):
            raise InvalidTransitionError("import already complete; reset before choosing a new file")
        if self._inflight_attempt == self._attempt:
            raise InvalidTransitionError("cannot replace the file while a commit is in progress")

        self._attempt += 1
        try:
            grid = parse(data, file_name)
        except ParseError as e:
            self._state = UploadState(attempt=self._attempt, message=f"Failed to parse file: {e}")
            logger.error(f"parse failed for {file_name}: {e}")
            raise

        mapping = column_mapper.auto_map(grid.header_row, self.fields)
        self._state = MappingState(
            attempt=self._attempt,
            file_name=file_name,
            data=data,
            headers=tuple(grid.headers),
            row_count=grid.row_count,
            mapping=mapping,
        )
        logger.info(f"{file_name}: {grid.row_count} data rows, columns={grid.headers}")
        return self._state

    def set_mapping(self, target_field: str, source_column: str | None) -> MappingState:
        state = self._require_mapping("change the mapping")
        mapping = column_mapper.set_mapping(state.mapping, target_field, source_column)
        self._state = replace(state, mapping=mapping, message=None)
        return self._state

    def _reparse(self, state: MappingState) -> Grid:
        # 共有ミュータブル状態を持たず、元ファイルから毎回再パース
        return parse(state.data, state.file_name)

    def preview(self, limit: int | None = None) -> list[TransformedRow]:
        state = self._require_mapping("preview")
        grid = self._reparse(state)
        return preview_rows(grid, state.mapping, self.preview_limit if limit is None else limit)

    async def commit(self, sink: Sink) -> ImportOutcome:
        """Transform every row and hand them to ``sink``.

        Returns the outcome. When the session was reset while the sink was running,
        the outcome is returned but the session state is left untouched.
        """
        state = self._require_mapping("commit")
        missing = column_mapper.missing_required(state.mapping, self.fields)
        if missing:
            raise InvalidTransitionError(f"required fields not mapped: {', '.join(missing)}")

        attempt = state.attempt
        rows = transform_all(self._reparse(state), state.mapping)
        self._inflight_attempt = attempt
        try:
            outcome = await commit_rows(rows, sink, file_name=state.file_name, error_log=self.error_log)
        except CommitFailure as e:
            if self._attempt == attempt and isinstance(self._state, MappingState):
                self._state = replace(self._state, message=f"Import failed: {e}")
            raise
        finally:
            if self._inflight_attempt == attempt:
                self._inflight_attempt = None
            if self.error_log is not None:
                self.error_log.flush()

        if self._attempt != attempt:
            logger.info(f"discarding outcome of abandoned attempt {attempt} (current={self._attempt})")
            return outcome
        self._state = CompleteState(
            attempt=attempt,
            file_name=state.file_name,
            total_rows=len(rows),
            outcome=outcome,
        )
        return outcome

    # -------------------------------------------------------------- template

    @property
    def template_file_name(self) -> str:
        return template_file_name(self.title)

    def template_bytes(self) -> bytes:
        """Blank template; usable in any state, before a file is chosen."""
        return build_template(self.template_rows, fallback_headers=[f.target_field for f in self.fields])
