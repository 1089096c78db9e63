"""CSV / spreadsheet import pipeline: parse -> map -> preview -> transform -> commit."""

__version__ = "0.1.0"
