# Shared pytest fixtures
from __future__ import annotations

import tempfile
import zipfile
from collections.abc import Callable
from io import BytesIO
from pathlib import Path

import pandas as pd
import pytest

from mi_matcher.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("MI_MATCHER_CONFIG", raising=False)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    # setup_logging はグローバル状態を持つためテスト毎にリセット
    reset_logging()
    yield
    reset_logging()


def xlsx_bytes(rows: list[list[object]], sheet_name: str = "Sheet1") -> bytes:
    """Workbook bytes with ``rows`` written verbatim (first row = header row)."""
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return buf.getvalue()


def zip_bytes(members: dict[str, bytes]) -> bytes:
    """ZIP bytes with members written in dict order."""
    buf = BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


@pytest.fixture()
def make_xlsx() -> Callable[..., bytes]:
    return xlsx_bytes


@pytest.fixture()
def make_zip() -> Callable[[dict[str, bytes]], bytes]:
    return zip_bytes


MI_ROWS: list[list[object]] = [
    ["Site", "Region", "Account", "Type", "Installed", "New Serial No."],
    ["x1", "x2", "x3", "x4", "x5", "S1"],
    ["y1", "y2", "y3", "y4", "y5", "S2"],
    ["z1", "z2", "z3", "z4", "z5", "S3"],
]

BILLING_A: list[list[object]] = [
    ["Account", "Meter Serial", "Period", "Billed kWh"],
    ["B1", "S1", "2024-06", 42],
    ["B2", "S3", "2024-06", 7.5],
]

BILLING_B: list[list[object]] = [
    ["Account", "Meter Serial", "Period", "Billed kWh"],
    ["B9", "S9", "2024-06", 100],
]


@pytest.fixture()
def mi_rows() -> list[list[object]]:
    return [list(r) for r in MI_ROWS]


@pytest.fixture()
def billing_archive() -> bytes:
    return zip_bytes(
        {
            "billing_part1.xlsx": xlsx_bytes(BILLING_A),
            "billing_part2.xlsx": xlsx_bytes(BILLING_B),
        }
    )


@pytest.fixture()
def input_files(temp_workdir: Path, billing_archive: bytes) -> tuple[Path, Path]:
    """MI.xlsx + billing.zip written into temp_workdir/data."""
    mi = temp_workdir / "data" / "MI.xlsx"
    mi.write_bytes(xlsx_bytes(MI_ROWS))
    archive = temp_workdir / "data" / "billing.zip"
    archive.write_bytes(billing_archive)
    return mi, archive


@pytest.fixture()
def sample_config_yaml() -> str:
    return """join_column_index: 5
min_member_bytes: 100
serial_header_keywords: [serial, new serial, sr, meter]
null_serial_values: ["null", "undefined"]
fallback_header: Billing_Data
preview_rows: 5
output:
  sheet_name: Processed_MI
  file_name: MI_Processed_Result
  directory: ./out
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "matcher.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
