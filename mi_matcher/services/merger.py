from __future__ import annotations

from mi_matcher.errors import EmptyInputError
from mi_matcher.excel.reader import read_table
from mi_matcher.models.billing import BillingDictionary
from mi_matcher.models.config_models import MatcherConfig
from mi_matcher.models.merge_result import MergeResult
from .extractor import cell_text

"""MI merger: MI table bytes + BillingDictionary -> MergeResult.

Single pass over the MI data rows. The join column is fixed by configuration
(join_column_index, default 5 = column F); it is not detected from headers.
"""

__all__ = [
    "billing_header",
    "merge_rows",
    "merge_mi_table",
]


def billing_header(dictionary: BillingDictionary, fallback: str) -> str:
    """Header of the appended column: the first-enumerated record's value header."""
    for record in dictionary.values():
        return record.value_column_header or fallback
    return fallback


def merge_rows(
    rows: list[list], dictionary: BillingDictionary, config: MatcherConfig | None = None
) -> MergeResult:
    """Merge already-decoded MI rows (header first) with ``dictionary``.

    Raises:
        EmptyInputError: fewer than 2 rows (no data row)
    """
    cfg = config if config is not None else MatcherConfig()
    if len(rows) < 2:
        raise EmptyInputError()

    headers = ["" if h is None else str(h) for h in rows[0]]
    original_width = len(headers)
    headers.append(billing_header(dictionary, cfg.fallback_header))

    join_index = cfg.join_column_index
    matched = 0
    unmatched = 0
    merged: list[list] = []
    for raw in rows[1:]:
        row = list(raw)
        # 元ヘッダの列数まで None で埋めてから追記
        while len(row) < original_width:
            row.append(None)
        serial_no = cell_text(row[join_index] if join_index < len(row) else None)
        record = dictionary.get(serial_no) if serial_no else None
        if record is not None:
            row.append(record.value)
            matched += 1
        else:
            row.append(None)
            unmatched += 1
        merged.append(row)

    return MergeResult(
        success=True,
        headers=headers,
        rows=merged,
        matched_count=matched,
        unmatched_count=unmatched,
    )


def merge_mi_table(
    mi_table: bytes,
    name: str,
    dictionary: BillingDictionary,
    config: MatcherConfig | None = None,
) -> MergeResult:
    """Decode the MI file (first sheet) and merge it with ``dictionary``.

    Raises:
        DecodeError: ``mi_table`` is not a readable workbook / CSV
        EmptyInputError: the MI table has no data rows (or no sheet)
    """
    rows = read_table(mi_table, name, keep_blank_rows=True)
    if rows is None:
        raise EmptyInputError()
    return merge_rows(rows, dictionary, config)
