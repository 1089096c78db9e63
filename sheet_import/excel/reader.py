from __future__ import annotations

import csv
import io
import logging
from collections.abc import Sequence
from pathlib import Path, PurePath
from typing import Any

import pandas as pd

from ..models.grid import Grid

"""File parser: raw upload bytes -> Grid.

- Delimited text is tokenized with the csv module, so quoted cells keep embedded
  delimiters and lose exactly one layer of quotes.
- Spreadsheets are read with pandas (openpyxl engine, xlrd for legacy .xls); only the
  first sheet is used, starting at its used range (leading empty rows/columns dropped).
- The first row is always the header row.
- Empty cells become None so column positions stay aligned.
- Parsing is a pure function of (bytes, kind): preview and commit both call it again
  on the original bytes.
"""

__all__ = [
    "ParseError",
    "DELIMITED",
    "SPREADSHEET",
    "detect_kind",
    "parse",
    "parse_file",
    "read_delimited",
    "read_first_sheet",
]

logger = logging.getLogger(__name__)

DELIMITED = "delimited"
SPREADSHEET = "spreadsheet"

# (kind, option): option は delimited なら区切り文字、spreadsheet なら pandas の engine
_SUFFIX_KINDS: dict[str, tuple[str, str]] = {
    ".csv": (DELIMITED, ","),
    ".txt": (DELIMITED, ","),
    ".tsv": (DELIMITED, "\t"),
    ".xlsx": (SPREADSHEET, "openpyxl"),
    ".xlsm": (SPREADSHEET, "openpyxl"),
    ".xls": (SPREADSHEET, "xlrd"),
}

_KEYWORD_KINDS: dict[str, tuple[str, str]] = {
    "csv": (DELIMITED, ","),
    "delimited": (DELIMITED, ","),
    "tsv": (DELIMITED, "\t"),
    "xlsx": (SPREADSHEET, "openpyxl"),
    "spreadsheet": (SPREADSHEET, "openpyxl"),
    "xls": (SPREADSHEET, "xlrd"),
}


class ParseError(Exception):
    """Raised when no grid can be extracted from the uploaded file."""


def detect_kind(file_name_or_kind: str) -> tuple[str, str]:
    """Resolve a file name or kind keyword to (kind, delimiter or engine).

    ``"members.CSV"`` and ``"csv"`` both resolve to ``("delimited", ",")``;
    ``"old.xls"`` resolves to ``("spreadsheet", "xlrd")``.
    """
    key = file_name_or_kind.strip().lower()
    if key in _KEYWORD_KINDS:
        return _KEYWORD_KINDS[key]
    suffix = PurePath(key).suffix
    if suffix in _SUFFIX_KINDS:
        return _SUFFIX_KINDS[suffix]
    raise ParseError(f"unsupported file type: {file_name_or_kind!r}")


def parse(data: bytes, file_name_or_kind: str) -> Grid:
    """Parse raw file bytes into a Grid.

    Parameters
    ----------
    data: アップロードされたファイルの生バイト列
    file_name_or_kind: ファイル名 (拡張子で判定) または種別キーワード

    Raises
    ------
    ParseError: unsupported kind, undecodable/corrupt content, no worksheet, no rows
    """
    kind, option = detect_kind(file_name_or_kind)
    if kind == DELIMITED:
        rows = read_delimited(data, option)
    else:
        rows = read_first_sheet(data, engine=option)
    if not rows:
        raise ParseError("no rows found")
    grid = Grid.from_rows(rows)
    logger.debug(
        "parsed %s: kind=%s columns=%d data_rows=%d",
        file_name_or_kind, kind, len(grid.header_row), grid.row_count,
    )
    return grid


def parse_file(path: Path) -> Grid:
    """Read ``path`` from disk and parse it, using its suffix as the kind."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ParseError(f"cannot read file {path}: {e}") from e
    return parse(data, path.name)


def read_delimited(data: bytes, delimiter: str = ",") -> list[list[Any]]:
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"file is not valid UTF-8 text: {e}") from e

    rows: list[list[Any]] = []
    # strict: 閉じられていない引用符で後続行を飲み込まず csv.Error にする
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)
    try:
        for raw in reader:
            rows.append([_cell(v) for v in raw])
    except csv.Error as e:
        raise ParseError(f"malformed delimited text at line {reader.line_num}: {e}") from e
    return _trim_trailing_empty(rows)


def read_first_sheet(data: bytes, engine: str = "openpyxl") -> list[list[Any]]:
    """Read the first worksheet as raw rows (no header interpretation).

    keep_default_na=False: "NA" / "null" などの文字列はそのまま文字列として扱う。
    dtype=str: 数値セルも文字列で返す (1 -> "1")。
    """
    try:
        xls = pd.ExcelFile(io.BytesIO(data), engine=engine)
    except Exception as e:  # zipfile / openpyxl / xlrd raise assorted types for corrupt input
        raise ParseError(f"unreadable spreadsheet: {e}") from e

    with xls:
        if not xls.sheet_names:
            raise ParseError("no worksheet found")
        first = xls.sheet_names[0]
        try:
            df = xls.parse(first, header=None, dtype=str, keep_default_na=False)
        except Exception as e:
            raise ParseError(f"unreadable worksheet {first!r}: {e}") from e

    rows = [[_cell(v) for v in raw] for raw in df.itertuples(index=False, name=None)]
    return _trim_trailing_empty(_trim_to_used_range(rows))


def _cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, str) and value == "":
        return None
    return value


def _trim_to_used_range(rows: list[list[Any]]) -> list[list[Any]]:
    # pandas は A1 から埋めて返すため、シートの使用範囲 (先頭の空行・空列を除いた位置) から開始
    start = 0
    while start < len(rows) and _is_empty(rows[start]):
        start += 1
    rows = rows[start:]
    filled = [next(i for i, v in enumerate(row) if v is not None) for row in rows if not _is_empty(row)]
    if not filled:
        return rows
    offset = min(filled)
    return [row[offset:] for row in rows]


def _trim_trailing_empty(rows: list[list[Any]]) -> list[list[Any]]:
    # 途中の空行は保持 (行番号の整合性)、末尾の空行のみ除去
    end = len(rows)
    while end > 0 and _is_empty(rows[end - 1]):
        end -= 1
    return rows[:end]


def _is_empty(row: Sequence[Any]) -> bool:
    return all(v is None for v in row)
