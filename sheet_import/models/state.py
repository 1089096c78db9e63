from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .mapping import MappingSet
from .outcome import ImportOutcome

"""Import session states.

State transitions: upload → map → complete, with reset from any state back to upload.

Each state is its own frozen dataclass so that combinations such as "complete without
an outcome" or "mapping without a file" cannot be constructed.
"""

__all__ = [
    "Step",
    "UploadState",
    "MappingState",
    "CompleteState",
    "SessionState",
]


class Step(Enum):
    """Step names for display / logging."""
    UPLOAD = "upload"
    MAP = "map"
    COMPLETE = "complete"


@dataclass(frozen=True)
class UploadState:
    """Waiting for a file. ``message`` carries the last parse failure, if any."""
    attempt: int
    message: str | None = None

    @property
    def step(self) -> Step:
        return Step.UPLOAD


@dataclass(frozen=True)
class MappingState:
    """A file is parsed and the user is adjusting the mapping.

    The original bytes are kept so that preview and commit can re-parse the file
    instead of sharing a mutable grid.
    """
    attempt: int
    file_name: str
    data: bytes
    headers: tuple[str, ...]
    row_count: int
    mapping: MappingSet
    message: str | None = None  # 直前のコミット失敗メッセージ

    @property
    def step(self) -> Step:
        return Step.MAP


@dataclass(frozen=True)
class CompleteState:
    attempt: int
    file_name: str
    total_rows: int
    outcome: ImportOutcome

    @property
    def step(self) -> Step:
        return Step.COMPLETE


SessionState = Union[UploadState, MappingState, CompleteState]
