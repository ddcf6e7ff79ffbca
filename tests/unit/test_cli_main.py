from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from mi_matcher.cli import main as cli_main
from mi_matcher.models.merge_result import MergeResult


def test_cli_success_writes_default_output(input_files, temp_workdir: Path, capsys):
    mi, archive = input_files
    code = cli_main([str(mi), str(archive)])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO 2 matches found" in out
    assert "SUMMARY members=2/2 skipped=0 failed=0 keys=3 rows=3 matched=2 unmatched=1" in out
    assert (temp_workdir / "MI_Processed_Result.xlsx").exists()


def test_cli_no_write(input_files, temp_workdir: Path, capsys):
    mi, archive = input_files
    code = cli_main([str(mi), str(archive), "--no-write", "--preview", "0"])
    out = capsys.readouterr().out
    assert code == 0
    assert not (temp_workdir / "MI_Processed_Result.xlsx").exists()
    assert "wrote" not in out


def test_cli_missing_input(temp_workdir: Path, capsys):
    code = cli_main(["missing.xlsx", "missing.zip"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR MI file not found: missing.xlsx" in out


def test_cli_negative_join_column(input_files, capsys):
    mi, archive = input_files
    code = cli_main([str(mi), str(archive), "--join-column", "-1"])
    assert code == 1
    assert "ERROR config: --join-column must be >= 0" in capsys.readouterr().out


def test_cli_join_column_override(input_files, capsys):
    mi, archive = input_files
    # 列 0 (Site) には serial が無いので全行不一致
    code = cli_main([str(mi), str(archive), "--join-column", "0", "--no-write"])
    out = capsys.readouterr().out
    assert code == 0
    assert "matched=0 unmatched=3" in out


def test_cli_uses_config_file(write_config: Path, input_files, temp_workdir: Path, capsys):
    mi, archive = input_files
    code = cli_main([str(mi), str(archive)])
    assert code == 0
    # config の output.directory: ./out
    assert (temp_workdir / "out" / "MI_Processed_Result.xlsx").exists()


def test_cli_explicit_config_missing(input_files, capsys):
    mi, archive = input_files
    code = cli_main([str(mi), str(archive), "--config", "nope.yml"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config: config file not found" in out


def test_cli_config_from_env(input_files, temp_workdir: Path, monkeypatch, capsys):
    mi, archive = input_files
    cfg = temp_workdir / "custom.yml"
    cfg.write_text("output:\n  file_name: FromEnv\n", encoding="utf-8")
    monkeypatch.setenv("MI_MATCHER_CONFIG", str(cfg))
    code = cli_main([str(mi), str(archive)])
    assert code == 0
    assert (temp_workdir / "FromEnv.xlsx").exists()


def test_cli_dotenv_sets_config_path(input_files, temp_workdir: Path, monkeypatch, capsys):
    mi, archive = input_files
    (temp_workdir / "dotenv.yml").write_text("output:\n  file_name: FromDotenv\n", encoding="utf-8")
    (temp_workdir / ".env").write_text("MI_MATCHER_CONFIG=dotenv.yml\n", encoding="utf-8")
    # .env が書き込む環境変数をテスト終了時に確実に消すため monkeypatch に記録させる
    monkeypatch.setenv("MI_MATCHER_CONFIG", "placeholder")
    monkeypatch.delenv("MI_MATCHER_CONFIG")
    code = cli_main([str(mi), str(archive)])
    assert code == 0
    assert (temp_workdir / "FromDotenv.xlsx").exists()


def test_cli_invalid_config(write_config: Path, input_files, capsys):
    write_config.write_text("unknown_key: 1\n", encoding="utf-8")
    mi, archive = input_files
    code = cli_main([str(mi), str(archive)])
    assert code == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_cli_processing_failure(input_files, temp_workdir: Path, capsys):
    mi, archive = input_files
    failure = MergeResult.failure("No valid data found in billing ZIP file", "EMPTY_ARCHIVE")
    with patch("mi_matcher.cli.__main__.process_files", return_value=failure):
        code = cli_main([str(mi), str(archive)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR processing: No valid data found in billing ZIP file" in out
    assert "SUMMARY" not in out
    assert not (temp_workdir / "MI_Processed_Result.xlsx").exists()
    # 失敗内容は error log にも残る
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_cli_write_failure(input_files, capsys):
    mi, archive = input_files
    with patch("mi_matcher.cli.__main__.write_result_workbook", side_effect=PermissionError("denied")):
        code = cli_main([str(mi), str(archive)])
    assert code == 1
    assert "ERROR output: failed to write" in capsys.readouterr().out


def test_cli_requires_two_positionals(capsys):
    with pytest.raises(SystemExit) as e:
        cli_main([])
    assert e.value.code == 2


def test_cli_debug_mode(input_files, capsys):
    mi, archive = input_files
    code = cli_main([str(mi), str(archive), "--debug", "--no-write"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG billing dictionary entries=3" in out


def test_cli_preview_printed(input_files, capsys):
    mi, archive = input_files
    code = cli_main([str(mi), str(archive), "--no-write", "--preview", "1"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Billed kWh" in out
    assert "... 2 more rows" in out
