from __future__ import annotations

import zipfile
import zlib
from collections.abc import Sequence
from io import BytesIO
from pathlib import PurePosixPath
from typing import Any

from mi_matcher.errors import DecodeError, EmptyArchiveError
from mi_matcher.excel.reader import TABULAR_SUFFIXES, Row, read_table
from mi_matcher.models.archive_member import (
    SKIP_NO_SHEETS,
    SKIP_TOO_FEW_ROWS,
    SKIP_TOO_SMALL,
    ArchiveMember,
    MemberStatus,
)
from mi_matcher.models.billing import BillingDictionary, BillingRecord
from mi_matcher.models.config_models import MatcherConfig
from .observers import ExtractionObserver

"""Billing extractor: billing ZIP bytes -> BillingDictionary.

For every eligible member (first sheet only):
1. value column = last column of the header row
2. serial column = last header containing one of the serial keywords, else column 0
3. each data row with a usable serial is upserted (later rows / members win)

Per-member decode failures are reported to the observer and skipped; only an
empty dictionary at the end is fatal (EmptyArchiveError).
"""

__all__ = [
    "OS_GENERATED_NAMES",
    "is_eligible_member",
    "list_eligible_members",
    "cell_text",
    "detect_serial_column",
    "resolve_value_column",
    "collect_records",
    "extract_billing_data",
]

OS_GENERATED_NAMES = frozenset({"thumbs.db", "desktop.ini", ".ds_store"})
METADATA_DIRS = frozenset({"__MACOSX"})

BILLING_SOURCE = "billing archive"


def is_eligible_member(name: str, is_dir: bool = False) -> bool:
    """Return True for non-hidden tabular files (.xlsx / .xls / .csv)."""
    if is_dir or name.endswith("/"):
        return False
    path = PurePosixPath(name)
    if any(part in METADATA_DIRS for part in path.parts[:-1]):
        return False
    base = path.name
    if base.startswith(".") or base.startswith("~$"):
        return False
    if base.lower() in OS_GENERATED_NAMES:
        return False
    return path.suffix.lower() in TABULAR_SUFFIXES


def list_eligible_members(zf: zipfile.ZipFile) -> list[zipfile.ZipInfo]:
    """Eligible members in archive (central directory) order."""
    return [info for info in zf.infolist() if is_eligible_member(info.filename, info.is_dir())]


def cell_text(value: Any) -> str:
    """Cell -> trimmed text; None -> ''."""
    if value is None:
        return ""
    return str(value).strip()


def detect_serial_column(headers: Sequence[Any], keywords: Sequence[str]) -> int:
    """Index of the serial-number column.

    Defaults to 0. Scans left to right and keeps the *last* header whose
    lowercased text contains any keyword, so later matches override earlier ones.
    """
    serial_index = 0
    for index, header in enumerate(headers):
        if not isinstance(header, str) or not header:
            continue
        lowered = header.lower()
        if any(k in lowered for k in keywords):
            serial_index = index
    return serial_index


def resolve_value_column(headers: Sequence[Any]) -> tuple[int, str]:
    """Value column index (last header cell) and its label (``Column_<n>`` when blank)."""
    index = len(headers) - 1
    label = cell_text(headers[index]) if index >= 0 else ""
    if not label:
        label = f"Column_{index + 1}"
    return index, label


def collect_records(
    rows: Sequence[Row], dictionary: BillingDictionary, config: MatcherConfig
) -> tuple[int, int, int, str]:
    """Upsert the records of one decoded table into ``dictionary``.

    Returns:
        tuple: (records_upserted, serial_column, value_column, value_header)
    """
    headers = rows[0]
    value_index, value_header = resolve_value_column(headers)
    serial_index = detect_serial_column(headers, config.serial_header_keywords)
    null_values = set(config.null_serial_values)

    upserted = 0
    for row in rows[1:]:
        if not row:
            continue
        serial_no = cell_text(row[serial_index] if serial_index < len(row) else None)
        if not serial_no or serial_no in null_values:
            continue
        value = row[value_index] if value_index < len(row) else None
        # 同一キーは後勝ち (同一ファイル内・ファイル間とも)
        dictionary[serial_no] = BillingRecord(
            serial_no=serial_no,
            value=value,
            value_column_header=value_header,
        )
        upserted += 1
    return upserted, serial_index, value_index, value_header


def _process_member(
    zf: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    dictionary: BillingDictionary,
    config: MatcherConfig,
) -> ArchiveMember:
    name = info.filename
    size = info.file_size
    if size < config.min_member_bytes:
        return ArchiveMember(name=name, size=size, status=MemberStatus.SKIPPED, reason=SKIP_TOO_SMALL)

    try:
        data = zf.read(info)
        rows = read_table(data, name)
    except DecodeError as e:
        return ArchiveMember(name=name, size=size, status=MemberStatus.FAILED, reason=e.detail)
    except (
        zipfile.BadZipFile,
        zlib.error,
        EOFError,
        OSError,
        NotImplementedError,
        RuntimeError,
    ) as e:
        # 破損・途中で切れたメンバー / 未対応圧縮 / 暗号化
        return ArchiveMember(
            name=name, size=size, status=MemberStatus.FAILED, reason=str(e) or type(e).__name__
        )

    if rows is None:
        return ArchiveMember(name=name, size=size, status=MemberStatus.SKIPPED, reason=SKIP_NO_SHEETS)
    if len(rows) < 2:
        return ArchiveMember(
            name=name,
            size=size,
            status=MemberStatus.SKIPPED,
            reason=SKIP_TOO_FEW_ROWS,
            rows_read=max(len(rows) - 1, 0),
        )

    records, serial_index, value_index, value_header = collect_records(rows, dictionary, config)
    return ArchiveMember(
        name=name,
        size=size,
        status=MemberStatus.LOADED,
        rows_read=len(rows) - 1,
        records=records,
        serial_column=serial_index,
        value_column=value_index,
        value_header=value_header,
    )


def extract_billing_data(
    archive: bytes,
    config: MatcherConfig | None = None,
    observer: ExtractionObserver | None = None,
) -> BillingDictionary:
    """Build the billing dictionary from every eligible member of ``archive``.

    Args:
        archive: ZIP file bytes
        config: Matcher configuration (defaults when None)
        observer: Receives one ArchiveMember per eligible member

    Returns:
        Non-empty BillingDictionary (serial -> BillingRecord)

    Raises:
        DecodeError: ``archive`` is not a readable ZIP file
        EmptyArchiveError: no eligible member produced a record
    """
    cfg = config if config is not None else MatcherConfig()
    obs = observer if observer is not None else ExtractionObserver()

    try:
        zf = zipfile.ZipFile(BytesIO(archive))
    except zipfile.BadZipFile as e:
        raise DecodeError(BILLING_SOURCE, str(e)) from e

    dictionary: BillingDictionary = {}
    with zf:
        members = list_eligible_members(zf)
        obs.on_start(len(members))
        for info in members:
            obs.on_member(_process_member(zf, info, dictionary, cfg))
    obs.on_finish(len(dictionary))

    if not dictionary:
        raise EmptyArchiveError()
    return dictionary
