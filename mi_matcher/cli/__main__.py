from __future__ import annotations

import argparse
import os
import sys
import time
import zipfile
import zlib
from dataclasses import replace
from io import BytesIO
from pathlib import Path

from dotenv import load_dotenv

from mi_matcher.config.loader import DEFAULT_CONFIG_PATH, ConfigError, resolve_config
from mi_matcher.excel.writer import default_output_path, write_result_workbook
from mi_matcher.logging.error_log import ErrorLogBuffer
from mi_matcher.logging.init import log_summary, set_debug, setup_logging
from mi_matcher.models.archive_member import MemberStatus
from mi_matcher.models.config_models import MatcherConfig
from mi_matcher.models.error_record import ErrorRecord
from mi_matcher.services.observers import LoggingObserver
from mi_matcher.services.orchestrator import process_files
from mi_matcher.services.summary import render_preview, render_summary_line

"""CLI entrypoint.

Flow:
- Load .env, then config (--config > MI_MATCHER_CONFIG > config/matcher.yml)
- Read the MI file and the billing ZIP
- Extract + merge, print preview and SUMMARY line
- Write the merged workbook (unless --no-write)
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

CONFIG_ENV = "MI_MATCHER_CONFIG"


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv. 失敗時は警告のみで続行。"""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        print(f"WARN failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="mi-matcher",
        description="Append billing values to an MI spreadsheet by serial number",
    )
    p.add_argument("mi_file", type=Path, help="MI spreadsheet (.xlsx / .xls / .csv)")
    p.add_argument("billing_zip", type=Path, help="ZIP archive of billing spreadsheets / CSVs")
    p.add_argument("--config", type=Path, default=None, help="YAML config file")
    p.add_argument("--output", type=Path, default=None, help="Output .xlsx path")
    p.add_argument("--no-write", action="store_true", help="Do not write the output workbook")
    p.add_argument("--preview", type=int, default=None, metavar="N", help="Preview rows to print")
    p.add_argument("--join-column", type=int, default=None, metavar="N",
                   help="0-based MI column holding the serial number")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true",
                   help="Print detected columns & first rows of each billing file then exit")
    return p.parse_args(argv)


def _config_path(args: argparse.Namespace) -> tuple[Path, bool]:
    """Return (path, required). 明示指定 (引数/環境変数) の場合のみ存在必須。"""
    if args.config is not None:
        return args.config, True
    env_path = os.getenv(CONFIG_ENV)
    if env_path:
        return Path(env_path), True
    return DEFAULT_CONFIG_PATH, False


def _inspect_data(archive: bytes, cfg: MatcherConfig) -> int:
    from mi_matcher.errors import DecodeError
    from mi_matcher.excel.reader import read_table
    from mi_matcher.services.extractor import (
        detect_serial_column,
        list_eligible_members,
        resolve_value_column,
    )

    try:
        zf = zipfile.ZipFile(BytesIO(archive))
    except zipfile.BadZipFile as e:
        print(f"inspect: not a zip archive: {e}")
        return EXIT_FATAL
    with zf:
        members = list_eligible_members(zf)
        if not members:
            print("inspect: no eligible billing files")
            return 0
        for info in members:
            print(f"FILE: {info.filename} size={info.file_size}")
            try:
                rows = read_table(zf.read(info), info.filename)
            except (DecodeError, zipfile.BadZipFile, zlib.error, EOFError, OSError) as e:
                print(f"  read_error: {e}")
                continue
            if not rows:
                print("  (no rows)")
                continue
            headers = rows[0]
            value_index, value_header = resolve_value_column(headers)
            serial_index = detect_serial_column(headers, cfg.serial_header_keywords)
            print(f"  headers={headers}")
            print(f"  serial_col={serial_index} value_col={value_index} value_header={value_header!r}")
            # datetime 含む場合に備え isoformat で表示
            for r in rows[1:4]:
                print("    ", [v.isoformat() if hasattr(v, "isoformat") else v for v in r])
    return 0


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # NOTE: [] が渡された場合に sys.argv が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    config_path, required = _config_path(args)
    try:
        cfg = resolve_config(config_path, required=required)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    if args.join_column is not None:
        if args.join_column < 0:
            logger.error("config: --join-column must be >= 0")
            return EXIT_FATAL
        cfg = replace(cfg, join_column_index=args.join_column)

    for label, path in (("MI file", args.mi_file), ("billing archive", args.billing_zip)):
        if not path.is_file():
            logger.error(f"{label} not found: {path}")
            return EXIT_FATAL

    archive = args.billing_zip.read_bytes()
    if args.inspect_data:
        return _inspect_data(archive, cfg)

    logger.info(f"MI file: {args.mi_file} (join column index={cfg.join_column_index})")
    logger.info(f"billing archive: {args.billing_zip}")

    start = time.perf_counter()
    error_log = ErrorLogBuffer()
    observer = LoggingObserver(logger, error_log)
    result = process_files(
        args.mi_file.read_bytes(), args.mi_file.name, archive, cfg, observer
    )
    elapsed = time.perf_counter() - start

    if not result.success:
        logger.error(f"processing: {result.error}")
        error_log.append(
            ErrorRecord.create(
                file=args.mi_file.name,
                source="mi",
                error_type=result.error_type or "UNKNOWN",
                message=result.error or "",
            )
        )
        _flush_error_log(error_log, logger)
        return EXIT_FATAL

    preview_rows = args.preview if args.preview is not None else cfg.preview_rows
    if preview_rows > 0:
        print(render_preview(result, preview_rows))

    logger.info(f"{result.matched_count} matches found")

    if not args.no_write:
        output = args.output or default_output_path(cfg)
        try:
            write_result_workbook(result, output, sheet_name=cfg.output.sheet_name)
        except OSError as e:
            logger.error(f"output: failed to write {output}: {e}")
            return EXIT_FATAL
        logger.info(f"wrote {output}")

    _flush_error_log(error_log, logger)

    # log_summary が "SUMMARY " を付与するため除去して渡す
    summary_line = render_summary_line(observer.members, result, elapsed, observer.entries)
    log_summary(summary_line[len("SUMMARY "):])

    if observer.count(MemberStatus.FAILED) > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _flush_error_log(error_log: ErrorLogBuffer, logger) -> None:
    try:
        path = error_log.flush()
    except OSError as e:
        logger.warning(f"error log flush failed: {e}")
        return
    if path is not None:
        logger.info(f"error log: {path}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
