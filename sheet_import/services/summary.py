from __future__ import annotations

from ..models.outcome import ImportOutcome

"""Summary line rendering.

Format:
SUMMARY rows={total} success={success} failed={errors} skipped={skipped} elapsed_sec={elapsed}
"""

__all__ = [
    "render_summary_line",
    "render_row_errors",
]


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(total_rows: int, outcome: ImportOutcome, elapsed_seconds: float = 0.0) -> str:
    """Render the SUMMARY line for one commit.

    ``skipped`` counts rows the sink neither accepted nor rejected.

    Examples:
        >>> from sheet_import.models.outcome import ImportOutcome, RowError
        >>> render_summary_line(4, ImportOutcome(3, (RowError(4, "invalid date"),)), 2.0)
        'SUMMARY rows=4 success=3 failed=1 skipped=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY rows={total_rows} "
        f"success={outcome.success_count} "
        f"failed={outcome.error_count} "
        f"skipped={outcome.skipped(total_rows)} "
        f"elapsed_sec={_format_seconds(elapsed_seconds)}"
    )


def render_row_errors(outcome: ImportOutcome) -> list[str]:
    """One ``Row N: message`` line per rejected row, in the order the sink reported them."""
    return [f"Row {e.row}: {e.message}" for e in outcome.errors]
