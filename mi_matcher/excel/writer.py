from __future__ import annotations

from io import BytesIO
from pathlib import Path

import pandas as pd

from mi_matcher.models.config_models import MatcherConfig
from mi_matcher.models.merge_result import MergeResult

"""Result writer: MergeResult -> .xlsx workbook (single sheet, header row + data rows)."""

__all__ = [
    "DEFAULT_SHEET_NAME",
    "default_output_path",
    "result_to_frame",
    "result_to_bytes",
    "write_result_workbook",
]

DEFAULT_SHEET_NAME = "Processed_MI"


def default_output_path(config: MatcherConfig, directory: Path | None = None) -> Path:
    base = directory if directory is not None else Path(config.output.directory)
    return base / f"{config.output.file_name}.xlsx"


def result_to_frame(result: MergeResult) -> pd.DataFrame:
    """Build a DataFrame whose first row is the header row (no pandas header/index)."""
    if not result.success:
        raise ValueError(f"cannot export failed result: {result.error}")
    width = len(result.headers)
    table = [list(result.headers)]
    for row in result.rows:
        # 列数をヘッダに合わせる (ヘッダより長い行はそのまま残す)
        table.append(list(row) + [None] * (width - len(row)))
    return pd.DataFrame(table)


def _write(result: MergeResult, target, sheet_name: str) -> None:
    df = result_to_frame(result)
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)


def result_to_bytes(result: MergeResult, sheet_name: str = DEFAULT_SHEET_NAME) -> bytes:
    buf = BytesIO()
    _write(result, buf, sheet_name)
    return buf.getvalue()


def write_result_workbook(
    result: MergeResult, path: Path, sheet_name: str = DEFAULT_SHEET_NAME
) -> Path:
    """Write ``result`` to ``path`` (parent directories are created).

    Raises:
        ValueError: If ``result`` is a failure result
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    _write(result, path, sheet_name)
    return path
