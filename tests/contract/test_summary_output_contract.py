from __future__ import annotations

import re

from sheet_import.models.outcome import ImportOutcome, RowError
from sheet_import.services.summary import render_summary_line

"""SUMMARY line format contract."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+rows=([0-9]+)\s+success=([0-9]+)\s+failed=([0-9]+)\s+"
    r"skipped=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    assert SUMMARY_PATTERN.match("SUMMARY rows=4 success=3 failed=1 skipped=0 elapsed_sec=0.84")


def test_rendered_lines_match_contract():
    cases = [
        (0, ImportOutcome(0), 0.0),
        (4, ImportOutcome(3, (RowError(4, "invalid date"),)), 0.84),
        (100, ImportOutcome(90), 12.0),
        (5, ImportOutcome(1), 0.000042),
    ]
    for total, outcome, elapsed in cases:
        line = render_summary_line(total, outcome, elapsed)
        m = SUMMARY_PATTERN.match(line)
        assert m, line
        rows, success, failed, skipped = (int(m.group(i)) for i in range(1, 5))
        assert rows == total
        assert success + failed + skipped == rows
