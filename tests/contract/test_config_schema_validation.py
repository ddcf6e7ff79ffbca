from __future__ import annotations

import json
import pathlib

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

"""Config schema contract test."""

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[2]
SCHEMA_PATH = PROJECT_ROOT / "mi_matcher" / "config" / "config_schema.json"
EXAMPLE_PATH = PROJECT_ROOT / "config" / "matcher.example.yml"


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_config_schema_validates_example_file(schema):
    config = yaml.safe_load(EXAMPLE_PATH.read_text(encoding="utf-8"))
    jsonschema.validate(config, schema)


def test_config_schema_validates_from_sample_yaml(schema, sample_config_yaml: str):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), schema)


def test_config_schema_empty_config_is_valid(schema):
    # 全キー省略可 (既定値で動作)
    jsonschema.validate({}, schema)


def test_config_schema_rejects_extra_key(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"join_column_index": 5, "extra_field": "not allowed"}, schema)


def test_config_schema_rejects_negative_join_column(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"join_column_index": -1}, schema)


def test_config_schema_rejects_empty_keyword_list(schema):
    with pytest.raises(ValidationError):
        jsonschema.validate({"serial_header_keywords": []}, schema)


def test_config_schema_rejects_long_sheet_name(schema):
    # Excel のシート名は 31 文字まで
    with pytest.raises(ValidationError):
        jsonschema.validate({"output": {"sheet_name": "x" * 32}}, schema)
