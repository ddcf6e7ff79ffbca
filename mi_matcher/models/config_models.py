from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the MI / billing matcher.

Defaults here are the values used when no YAML config file is present.
The loader in mi_matcher/config/loader.py only overrides what the file sets.
"""

__all__ = [
    "OutputConfig",
    "MatcherConfig",
    "DEFAULT_SERIAL_HEADER_KEYWORDS",
    "DEFAULT_NULL_SERIAL_VALUES",
]

DEFAULT_SERIAL_HEADER_KEYWORDS: tuple[str, ...] = ("serial", "new serial", "sr", "meter")
DEFAULT_NULL_SERIAL_VALUES: tuple[str, ...] = ("null", "undefined")


@dataclass(frozen=True)
class OutputConfig:
    """Where and how the merged workbook is written."""
    sheet_name: str = "Processed_MI"
    file_name: str = "MI_Processed_Result"  # 拡張子なし (.xlsx は writer が付与)
    directory: str = "."


@dataclass(frozen=True)
class MatcherConfig:
    """Root configuration object for extraction and merge.

    join_column_index is 0-based; the MI layout puts the serial number in
    column F, hence 5.
    """
    join_column_index: int = 5
    min_member_bytes: int = 100  # これ未満のアーカイブメンバーは空/破損とみなしスキップ
    serial_header_keywords: tuple[str, ...] = DEFAULT_SERIAL_HEADER_KEYWORDS
    null_serial_values: tuple[str, ...] = DEFAULT_NULL_SERIAL_VALUES
    fallback_header: str = "Billing_Data"
    preview_rows: int = 10
    output: OutputConfig = field(default_factory=OutputConfig)
