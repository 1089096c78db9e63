from __future__ import annotations
import io
from pathlib import Path

import pandas as pd

from sheet_import.excel.template import TEMPLATE_SHEET_NAME, build_template, template_file_name, write_template


def _read(data: bytes) -> pd.DataFrame:
    return pd.read_excel(io.BytesIO(data), sheet_name=TEMPLATE_SHEET_NAME, header=None, dtype=str)


def test_template_file_name():
    assert template_file_name("Import Training Attendance") == "Import_Training_Attendance_template.xlsx"
    assert template_file_name("  Risk   Register ") == "Risk_Register_template.xlsx"


def test_build_template_headers_from_first_row_keys():
    data = build_template([
        {"user_email": "john@example.com", "score": 95},
        {"score": 80, "user_email": "jane@example.com", "extra": "ignored"},
    ])
    df = _read(data)
    assert df.iloc[0].tolist() == ["user_email", "score"]
    assert df.iloc[1].tolist() == ["john@example.com", "95"]
    # 後続行も先頭行のキー順
    assert df.iloc[2].tolist() == ["jane@example.com", "80"]
    assert df.shape == (3, 2)


def test_build_template_missing_key_is_empty_cell():
    df = _read(build_template([{"a": 1, "b": 2}, {"a": 3}]))
    assert df.iloc[2, 0] == "3"
    assert pd.isna(df.iloc[2, 1])


def test_build_template_empty_rows_uses_fallback_headers():
    df = _read(build_template([], fallback_headers=["user_email", "score"]))
    assert df.shape == (1, 2)
    assert df.iloc[0].tolist() == ["user_email", "score"]


def test_build_template_fully_empty():
    data = build_template([])
    xls = pd.ExcelFile(io.BytesIO(data))
    assert xls.sheet_names == [TEMPLATE_SHEET_NAME]
    assert xls.parse(TEMPLATE_SHEET_NAME, header=None).empty


def test_write_template(tmp_path: Path):
    path = write_template(tmp_path / "out", "Vendor Import", [{"vendor": "Acme"}])
    assert path.name == "Vendor_Import_template.xlsx"
    assert path.exists()
    assert _read(path.read_bytes()).iloc[0].tolist() == ["vendor"]
