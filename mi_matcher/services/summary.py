from __future__ import annotations

import pandas as pd

from mi_matcher.models.archive_member import ArchiveMember, MemberStatus
from mi_matcher.models.merge_result import MergeResult

"""SUMMARY line and result preview rendering.

SUMMARY format:
SUMMARY members={loaded}/{eligible} skipped={n} failed={n} keys={n}
rows={n} matched={n} unmatched={n} elapsed_sec={sec}
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
    "render_preview",
]


def format_seconds(value: float) -> str:
    """Render seconds without scientific notation; integers without a decimal point."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(
    members: list[ArchiveMember],
    result: MergeResult,
    elapsed_seconds: float,
    dictionary_entries: int = 0,
) -> str:
    """Render the SUMMARY line.

    Examples:
        >>> render_summary_line([], MergeResult(success=True), 2.0)
        'SUMMARY members=0/0 skipped=0 failed=0 keys=0 rows=0 matched=0 unmatched=0 elapsed_sec=2'
    """
    loaded = sum(1 for m in members if m.status is MemberStatus.LOADED)
    skipped = sum(1 for m in members if m.status is MemberStatus.SKIPPED)
    failed = sum(1 for m in members if m.status is MemberStatus.FAILED)
    return (
        f"SUMMARY members={loaded}/{len(members)} "
        f"skipped={skipped} "
        f"failed={failed} "
        f"keys={dictionary_entries} "
        f"rows={result.total_rows} "
        f"matched={result.matched_count} "
        f"unmatched={result.unmatched_count} "
        f"elapsed_sec={format_seconds(elapsed_seconds)}"
    )


def render_preview(result: MergeResult, limit: int = 10) -> str:
    """Text table of the first ``limit`` merged rows (headers as column names)."""
    if not result.success:
        return ""
    shown = result.rows[:limit]
    width = len(result.headers)
    # ヘッダ重複/空でも表示できるよう位置で列を作ってから名前を付ける
    df = pd.DataFrame([list(r[:width]) + [None] * (width - len(r)) for r in shown], columns=range(width))
    df.columns = result.headers
    text = df.to_string(index=False, na_rep="") if shown else "(no rows)"
    remaining = len(result.rows) - len(shown)
    if remaining > 0:
        text += f"\n... {remaining} more rows"
    return text
