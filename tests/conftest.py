# Shared pytest fixtures
from __future__ import annotations
import io
import tempfile
from pathlib import Path
from typing import Any, Callable

import pandas as pd
import pytest

from sheet_import.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        # テスト間で環境変数の上書きが漏れないように
        monkeypatch.delenv("SHEET_IMPORT_ERROR_LOG_DIR", raising=False)
        monkeypatch.delenv("SHEET_IMPORT_PREVIEW_LIMIT", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """title: Import Training Attendance
fields:
  - target_field: user_email
    required: true
    source_column_hint: email
  - target_field: user_name
    required: false
  - target_field: completed_at
  - target_field: score
template_rows:
  - user_email: john@example.com
    user_name: John Doe
    completed_at: "2025-01-01"
    score: 95
preview_limit: 5
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def xlsx_bytes() -> Callable[..., bytes]:
    """Build an .xlsx workbook in memory from raw rows (first row = header)."""
    def _make(rows: list[list[Any]], sheets: dict[str, list[list[Any]]] | None = None) -> bytes:
        buf = io.BytesIO()
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            all_sheets = {"Sheet1": rows}
            if sheets:
                all_sheets.update(sheets)
            for name, sheet_rows in all_sheets.items():
                pd.DataFrame(sheet_rows).to_excel(writer, sheet_name=name, header=False, index=False)
        return buf.getvalue()
    return _make


@pytest.fixture()
def clean_logging():
    reset_logging()
    yield
    reset_logging()
