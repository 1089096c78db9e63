from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from sheet_import.config.loader import ConfigError, ImportDefinition, load_config
from sheet_import.excel.reader import ParseError, parse_file
from sheet_import.excel.template import write_template
from sheet_import.logging.error_log import ErrorLogBuffer
from sheet_import.logging.init import log_summary, setup_logging
from sheet_import.models.mapping import UnknownFieldError
from sheet_import.services import column_mapper
from sheet_import.services.committer import CommitFailure
from sheet_import.services.preview import preview
from sheet_import.services.session import ImportSession
from sheet_import.services.summary import render_row_errors, render_summary_line
from sheet_import.sinks.jsonl import JsonLinesSink

"""CLI entrypoint.

Subcommands:
- inspect: show headers, the automatic mapping (with --config) and the first rows
- template: write the blank template workbook for an import definition
- run: parse -> map -> transform -> commit into a JSON Lines file
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv (values override the process environment)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="sheet-import", description="CSV / spreadsheet importer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    insp = sub.add_parser("inspect", help="Print headers, auto-mapping and first rows then exit")
    insp.add_argument("file", type=Path)
    insp.add_argument("--config", type=Path, default=None, help="Import definition (YAML)")
    insp.add_argument("--limit", type=int, default=None, help="Number of preview rows")

    tmpl = sub.add_parser("template", help="Write the blank template workbook")
    tmpl.add_argument("--config", type=Path, required=True)
    tmpl.add_argument("--out", type=Path, default=Path("."), help="Output directory")

    run = sub.add_parser("run", help="Import a file")
    run.add_argument("file", type=Path)
    run.add_argument("--config", type=Path, required=True)
    run.add_argument(
        "--map", action="append", default=[], metavar="TARGET=SOURCE",
        help="Manual column mapping (repeatable); overrides the automatic mapping",
    )
    run.add_argument("--output", type=Path, default=None, help="Output .jsonl (default: <file stem>.jsonl)")
    return p.parse_args(argv)


def _parse_overrides(items: list[str]) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for item in items:
        target, sep, source = item.partition("=")
        if not sep or not target.strip():
            raise ValueError(f"invalid --map value (expected TARGET=SOURCE): {item!r}")
        pairs.append((target.strip(), source))
    return pairs


def _inspect_data(path: Path, cfg: ImportDefinition | None, limit: int | None) -> int:
    grid = parse_file(path)
    print(f"FILE: {path.name} rows={grid.row_count}")
    print(f"  headers={grid.headers}")
    if cfg is None:
        for raw in grid.head(limit if limit is not None else 3):
            print("    row=", list(raw))
        return EXIT_SUCCESS_ALL
    mapping = column_mapper.auto_map(grid.header_row, cfg.fields)
    print(f"  mapping={mapping.as_dict()}")
    missing = column_mapper.missing_required(mapping, cfg.fields)
    if missing:
        print(f"  unmapped_required={missing}")
    for row in preview(grid, mapping, cfg.preview_limit if limit is None else limit):
        print("    preview=", json.dumps(row, ensure_ascii=False, default=str))
    return EXIT_SUCCESS_ALL


def _run_import(args: argparse.Namespace, cfg: ImportDefinition) -> int:
    logger = setup_logging()
    session = ImportSession.from_definition(cfg, error_log=ErrorLogBuffer(cfg.error_log_dir))

    try:
        data = args.file.read_bytes()
    except OSError as e:
        logger.error(f"file: {e}")
        return EXIT_FATAL
    try:
        chosen = session.choose_file(data, args.file.name)
    except ParseError as e:
        logger.error(f"parse: {e}")
        return EXIT_FATAL

    try:
        for target, source in _parse_overrides(args.map):
            session.set_mapping(target, source)
    except (ValueError, UnknownFieldError) as e:
        logger.error(f"mapping: {e}")
        return EXIT_FATAL

    if not session.is_complete:
        logger.error(f"mapping: required fields not mapped: {', '.join(session.missing_required())}")
        return EXIT_FATAL

    for row in session.preview():
        logger.debug(f"preview {json.dumps(row, ensure_ascii=False, default=str)}")

    output = args.output or args.file.with_suffix(".jsonl")
    sink = JsonLinesSink(output, required_fields=cfg.required_fields)
    started = time.perf_counter()
    try:
        outcome = asyncio.run(session.commit(sink))
    except CommitFailure as e:
        logger.error(f"commit: {e}")
        return EXIT_FATAL
    elapsed = time.perf_counter() - started

    logger.info(f"output={output}")
    summary_line = render_summary_line(chosen.row_count, outcome, elapsed)
    # log_summary が "SUMMARY " を付与するため除去
    log_summary(summary_line[len("SUMMARY "):])
    for line in render_row_errors(outcome):
        logger.warning(line)
    return EXIT_PARTIAL_FAILURE if outcome.has_errors else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([...]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        setup_logging(debug=True)
        logger.debug("debug mode enabled")

    cfg: ImportDefinition | None = None
    if getattr(args, "config", None) is not None:
        try:
            cfg = load_config(args.config)
        except ConfigError as e:
            logger.error(f"config: {e}")
            return EXIT_FATAL

    if args.command == "inspect":
        try:
            return _inspect_data(args.file, cfg, args.limit)
        except ParseError as e:
            logger.error(f"parse: {e}")
            return EXIT_FATAL

    assert cfg is not None  # template / run require --config
    if args.command == "template":
        write_template(
            args.out, cfg.title, cfg.template_rows, fallback_headers=cfg.target_fields,
        )
        return EXIT_SUCCESS_ALL

    return _run_import(args, cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
