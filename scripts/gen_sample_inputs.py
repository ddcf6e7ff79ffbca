#!/usr/bin/env python3
"""Sample input generation for manual runs and timing checks.

Generates a matching pair of inputs for the matcher:
- MI workbook: 8 columns, serial number in column F (index 5)
- billing ZIP: N split billing files (.xlsx, optionally one .csv) whose last
  column carries the billing value; a configurable share of MI serials is
  present in the billing files
"""
from __future__ import annotations

import argparse
import sys
import zipfile
from io import BytesIO
from pathlib import Path

import numpy as np
import pandas as pd


def generate_serials(rows: int, seed: int = 42) -> list[str]:
    rng = np.random.default_rng(seed)
    numbers = rng.choice(np.arange(100_000, 999_999), size=rows, replace=False)
    return [f"SN{n}" for n in numbers]


def build_mi_frame(serials: list[str], seed: int = 42) -> pd.DataFrame:
    """MI table including its header row as row 0 (written with header=False)."""
    rng = np.random.default_rng(seed)
    header = ["Site", "Region", "Account", "Meter Type", "Installed", "New Serial No.", "Phase", "Notes"]
    body = []
    for i, serial in enumerate(serials):
        body.append([
            f"SITE-{i + 1:05d}",
            rng.choice(["North", "South", "East", "West"]),
            f"ACC{rng.integers(10_000, 99_999)}",
            rng.choice(["Smart", "Legacy"]),
            pd.Timestamp("2023-01-01") + pd.Timedelta(days=int(rng.integers(0, 700))),
            serial,
            rng.choice(["1P", "3P"]),
            "",
        ])
    return pd.DataFrame([header] + body)


def build_billing_frames(
    serials: list[str], files: int, match_ratio: float, seed: int = 42
) -> list[pd.DataFrame]:
    """Split the matched share of serials across ``files`` billing tables."""
    rng = np.random.default_rng(seed + 1)
    matched = [s for s in serials if rng.random() < match_ratio]
    header = ["Account", "Meter Serial", "Period", "Billed kWh"]
    frames = []
    for chunk in np.array_split(np.array(matched, dtype=object), files):
        body = [
            [f"B{rng.integers(1000, 9999)}", serial, "2024-06", round(float(rng.uniform(10, 2500)), 2)]
            for serial in chunk
        ]
        frames.append(pd.DataFrame([header] + body))
    return frames


def _xlsx_bytes(df: pd.DataFrame) -> bytes:
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return buf.getvalue()


def write_inputs(
    output_dir: Path, rows: int, files: int, match_ratio: float, with_csv: bool, seed: int
) -> tuple[Path, Path]:
    output_dir.mkdir(parents=True, exist_ok=True)
    serials = generate_serials(rows, seed)

    mi_path = output_dir / "MI.xlsx"
    mi_path.write_bytes(_xlsx_bytes(build_mi_frame(serials, seed)))

    zip_path = output_dir / "billing.zip"
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for i, df in enumerate(build_billing_frames(serials, files, match_ratio, seed), start=1):
            if with_csv and i == files:
                zf.writestr(f"billing_part{i}.csv", df.to_csv(header=False, index=False))
            else:
                zf.writestr(f"billing_part{i}.xlsx", _xlsx_bytes(df))
        # 除外されるべきメンバー (隠しファイル / ロックファイル)
        zf.writestr("__MACOSX/._billing_part1.xlsx", b"\x00" * 200)
        zf.writestr("~$billing_part1.xlsx", b"\x00" * 200)

    print(f"Created MI workbook: {mi_path} ({rows:,} rows)")
    print(f"Created billing archive: {zip_path} ({files} files, match ratio {match_ratio:.0%})")
    return mi_path, zip_path


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a sample MI workbook and billing ZIP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s samples/
  %(prog)s samples/ --rows 20000 --files 3 --match-ratio 0.8 --with-csv
        """,
    )
    parser.add_argument("output_dir", type=Path, help="Directory for MI.xlsx and billing.zip")
    parser.add_argument("--rows", type=int, default=1_000, help="MI data rows (default: 1,000)")
    parser.add_argument("--files", type=int, default=2, help="Billing split files (default: 2)")
    parser.add_argument("--match-ratio", type=float, default=0.9,
                        help="Share of MI serials present in billing (default: 0.9)")
    parser.add_argument("--with-csv", action="store_true", help="Write the last billing file as CSV")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0 or args.files <= 0:
        print("Error: --rows and --files must be positive", file=sys.stderr)
        return 1
    if not 0.0 <= args.match_ratio <= 1.0:
        print("Error: --match-ratio must be within [0, 1]", file=sys.stderr)
        return 1

    try:
        write_inputs(args.output_dir, args.rows, args.files, args.match_ratio, args.with_csv, args.seed)
    except Exception as e:
        print(f"\nError generating inputs: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
