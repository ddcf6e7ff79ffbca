from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""ArchiveMember domain model and MemberStatus enum.

An ArchiveMember records what happened to one eligible file inside the billing
ZIP: whether it contributed records, was skipped by a guard, or failed to decode.
"""

__all__ = [
    "MemberStatus",
    "ArchiveMember",
    "SKIP_TOO_SMALL",
    "SKIP_NO_SHEETS",
    "SKIP_TOO_FEW_ROWS",
]

SKIP_TOO_SMALL = "too_small"
SKIP_NO_SHEETS = "no_sheets"
SKIP_TOO_FEW_ROWS = "too_few_rows"


class MemberStatus(Enum):
    """Status of a billing archive member after extraction.

    - LOADED: member decoded and its rows were scanned
    - SKIPPED: member excluded by a guard (size, no sheets, no data rows)
    - FAILED: member bytes could not be decoded
    """
    LOADED = "loaded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ArchiveMember:
    """Processing record for a single billing archive member."""
    name: str                          # ZIP 内パス
    size: int                          # 展開後バイト数
    status: MemberStatus
    reason: str | None = None          # SKIPPED/FAILED 時の理由
    rows_read: int = 0                 # ヘッダを除くデータ行数
    records: int = 0                   # 辞書へ upsert した件数
    serial_column: int | None = None
    value_column: int | None = None
    value_header: str | None = None
