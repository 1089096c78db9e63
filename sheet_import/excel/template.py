from __future__ import annotations

import io
import logging
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import pandas as pd

"""Blank template export.

The template is an .xlsx workbook whose header row is the key set of the first sample
row. It is independent of the import direction: it can be produced before any file
has been chosen.
"""

__all__ = [
    "TEMPLATE_SHEET_NAME",
    "build_template",
    "template_file_name",
    "write_template",
]

logger = logging.getLogger(__name__)

TEMPLATE_SHEET_NAME = "Template"


def template_file_name(title: str) -> str:
    """``"Import Training Attendance"`` -> ``"Import_Training_Attendance_template.xlsx"``."""
    stem = re.sub(r"\s+", "_", title.strip())
    return f"{stem}_template.xlsx"


def build_template(
    sample_rows: Sequence[Mapping[str, Any]],
    fallback_headers: Sequence[str] | None = None,
) -> bytes:
    """Build template workbook bytes.

    Parameters
    ----------
    sample_rows: ヘッダは先頭行のキー順。後続行は同じ順で書き出す (欠けたキーは空セル、余分なキーは無視)
    fallback_headers: sample_rows が空の場合に使うヘッダ (None なら空シート)
    """
    if sample_rows:
        columns = list(sample_rows[0].keys())
        records = [[row.get(c) for c in columns] for row in sample_rows]
    else:
        columns = list(fallback_headers or [])
        records = []
    df = pd.DataFrame(records, columns=columns)

    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=TEMPLATE_SHEET_NAME, index=False, header=bool(columns))
    logger.debug("template built: columns=%s rows=%d", columns, len(records))
    return buf.getvalue()


def write_template(
    directory: Path,
    title: str,
    sample_rows: Sequence[Mapping[str, Any]],
    fallback_headers: Sequence[str] | None = None,
) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / template_file_name(title)
    path.write_bytes(build_template(sample_rows, fallback_headers))
    logger.info(f"template written: {path}")
    return path
