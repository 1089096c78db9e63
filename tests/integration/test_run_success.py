from __future__ import annotations

import json
from pathlib import Path

from sheet_import.cli.__main__ import main as cli_main

"""End-to-end run of an .xlsx file through the CLI."""


def test_run_xlsx_success(write_config: Path, temp_workdir: Path, xlsx_bytes, clean_logging, capsys):
    data = xlsx_bytes([
        ["EMAIL", "user_name", "score", "notes"],
        ["ada@x.com", "Ada", 90, "ignored"],
        [None, None, None, None],
        ["bob@x.com", "Bob", 75, ""],
    ])
    (temp_workdir / "data" / "attendance.xlsx").write_bytes(data)

    code = cli_main(["run", "data/attendance.xlsx", "--config", "config/import.yml"])
    out = capsys.readouterr().out

    # 空行は行として残り、シンク側で required 欠落として扱われる
    assert code == 2
    assert "SUMMARY rows=3 success=2 failed=1 skipped=0" in out
    written = [
        json.loads(line)
        for line in (temp_workdir / "data" / "attendance.jsonl").read_text(encoding="utf-8").splitlines()
    ]
    assert written == [
        {"user_email": "ada@x.com", "user_name": "Ada", "score": "90"},
        {"user_email": "bob@x.com", "user_name": "Bob", "score": "75"},
    ]
    assert not any("notes" in row for row in written)


def test_run_csv_all_rows_accepted(write_config: Path, temp_workdir: Path, clean_logging, capsys):
    (temp_workdir / "data" / "attendance.csv").write_text(
        "user_email,completed_at\na@x.com,2025-01-01\n", encoding="utf-8"
    )
    code = cli_main(["run", "data/attendance.csv", "--config", "config/import.yml"])
    assert code == 0
    assert not list((temp_workdir / "logs").glob("errors-*.log"))
