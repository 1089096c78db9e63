"""Domain models for the spreadsheet import pipeline.

This package contains the data shapes passed between the pipeline stages:
the parsed grid, the field mapping, the commit outcome and the session states.
"""

from .grid import Grid
from .mapping import FieldMapping, MappingSet, UnknownFieldError
from .outcome import ImportOutcome, OutcomeShapeError, RowError
from .state import CompleteState, MappingState, SessionState, Step, UploadState

__all__ = [
    # Parsed data
    "Grid",
    # Mapping models
    "FieldMapping",
    "MappingSet",
    "UnknownFieldError",
    # Commit results
    "ImportOutcome",
    "OutcomeShapeError",
    "RowError",
    # Session states
    "CompleteState",
    "MappingState",
    "SessionState",
    "Step",
    "UploadState",
]
