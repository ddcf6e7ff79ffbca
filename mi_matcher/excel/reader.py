from __future__ import annotations

import csv
import math
from io import BytesIO, StringIO
from pathlib import PurePosixPath
from typing import Any

import numpy as np
import pandas as pd

from mi_matcher.errors import DecodeError

"""Table reader: spreadsheet / CSV bytes -> list of row lists (first sheet only).

Rows come back the way a row-array spreadsheet reader would hand them over:
- 1行目がヘッダ行、2行目以降がデータ行
- 全セル空の行は除外 (keep_blank_rows=True の場合は [] として残す。先頭/末尾の空行のみ除外)
- 行末の空セルは切り詰め (行ごとに長さが異なり得る)
- NaN / NaT -> None、整数値の float (1234.0) -> int
- CSV は列数の異なる行を許容し、数値として読めるセルは数値に変換
"""

__all__ = [
    "CSV_SUFFIXES",
    "SPREADSHEET_SUFFIXES",
    "TABULAR_SUFFIXES",
    "Row",
    "is_csv_name",
    "read_table",
    "normalize_cell",
    "coerce_number",
]

CSV_SUFFIXES = frozenset({".csv"})
SPREADSHEET_SUFFIXES = frozenset({".xlsx", ".xls"})
TABULAR_SUFFIXES = CSV_SUFFIXES | SPREADSHEET_SUFFIXES

Row = list[Any]

# CSV の文字コード候補 (先頭から順に試す)
_CSV_ENCODINGS = ("utf-8-sig", "cp1252")


def is_csv_name(name: str) -> bool:
    return PurePosixPath(name).suffix.lower() in CSV_SUFFIXES


def normalize_cell(value: Any) -> Any:
    """Convert a raw pandas cell to None / int / float / str / datetime."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, np.generic):
        # numpy scalar -> python scalar
        value = value.item()
    if isinstance(value, float):
        if math.isnan(value):
            return None
        return int(value) if value.is_integer() else value
    return value


def coerce_number(value: Any) -> Any:
    """CSV cell text -> number when the whole cell parses as a finite number, else unchanged."""
    if not isinstance(value, str):
        return value
    number = pd.to_numeric(value, errors="coerce")
    if pd.isna(number) or not math.isfinite(number):
        return value
    return number


def _frame_to_rows(df: pd.DataFrame, keep_blank_rows: bool = False) -> list[Row]:
    rows: list[Row] = []
    for raw in df.itertuples(index=False, name=None):
        row = [normalize_cell(v) for v in raw]
        while row and row[-1] is None:
            row.pop()
        if not row and not keep_blank_rows:
            continue
        rows.append(row)
    if keep_blank_rows:
        # 表の外側の空行は範囲外として扱う
        while rows and not rows[-1]:
            rows.pop()
        while rows and not rows[0]:
            rows.pop(0)
    return rows


def _decode_csv_text(data: bytes, name: str) -> str:
    last_error: UnicodeDecodeError | None = None
    for encoding in _CSV_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError as e:
            last_error = e
    raise DecodeError(name, str(last_error))


def _read_csv(data: bytes, name: str, keep_blank_rows: bool = False) -> pd.DataFrame:
    text = _decode_csv_text(data, name)
    try:
        # 行ごとの列数が異なっても読めるよう最大列数を先に数えて names に渡す
        width = max((len(r) for r in csv.reader(StringIO(text))), default=0)
    except csv.Error as e:
        raise DecodeError(name, str(e)) from e
    if width == 0:
        return pd.DataFrame()
    try:
        df = pd.read_csv(
            StringIO(text),
            header=None,
            names=list(range(width)),
            dtype=str,
            skip_blank_lines=not keep_blank_rows,
            # "NA" / "null" 等の文字列はそのまま残し、空セルのみ欠損扱い
            keep_default_na=False,
            na_values=[""],
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except (pd.errors.ParserError, ValueError) as e:
        raise DecodeError(name, str(e)) from e
    return df.map(coerce_number)


def _read_spreadsheet(data: bytes, name: str) -> pd.DataFrame | None:
    """Return the first sheet as a header-less DataFrame, or None if the workbook has no sheets."""
    try:
        xls = pd.ExcelFile(BytesIO(data))
    except Exception as e:  # openpyxl / xlrd はそれぞれ独自の例外を投げる
        raise DecodeError(name, str(e) or type(e).__name__) from e
    with xls:
        if not xls.sheet_names:
            return None
        try:
            return xls.parse(
                xls.sheet_names[0],
                header=None,
                keep_default_na=False,
                na_values=[""],
            )
        except Exception as e:
            raise DecodeError(name, str(e) or type(e).__name__) from e


def read_table(data: bytes, name: str, *, keep_blank_rows: bool = False) -> list[Row] | None:
    """Decode ``data`` as a table, choosing CSV or spreadsheet by the suffix of ``name``.

    Parameters
    ----------
    data: ファイルのバイト列
    name: ファイル名 (拡張子判定とエラーメッセージ用)
    keep_blank_rows: True なら表内の全空行を [] として残す (MI 側の行位置を保つため)

    Returns
    -------
    list of rows (header first), or None when the workbook contains no sheets.

    Raises
    ------
    DecodeError: bytes are not a readable CSV / workbook
    """
    if is_csv_name(name):
        df = _read_csv(data, name, keep_blank_rows)
    else:
        df = _read_spreadsheet(data, name)
        if df is None:
            return None
    return _frame_to_rows(df, keep_blank_rows)
