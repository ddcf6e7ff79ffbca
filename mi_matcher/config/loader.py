from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from mi_matcher.models.config_models import MatcherConfig, OutputConfig

"""Config loader.

Responsibilities:
- Load YAML config (default config/matcher.yml)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults from MatcherConfig for every key the file omits
"""

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/matcher.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing / not valid JSON, or the
            config data fails validation (unknown keys, wrong types, ...).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> MatcherConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    defaults = MatcherConfig()
    out_raw = data.get("output", {})
    output = OutputConfig(
        sheet_name=out_raw.get("sheet_name", defaults.output.sheet_name),
        file_name=out_raw.get("file_name", defaults.output.file_name),
        directory=out_raw.get("directory", defaults.output.directory),
    )
    return MatcherConfig(
        join_column_index=data.get("join_column_index", defaults.join_column_index),
        min_member_bytes=data.get("min_member_bytes", defaults.min_member_bytes),
        # キーワードは小文字比較なのでここで正規化
        serial_header_keywords=tuple(
            k.lower() for k in data.get("serial_header_keywords", defaults.serial_header_keywords)
        ),
        null_serial_values=tuple(data.get("null_serial_values", defaults.null_serial_values)),
        fallback_header=data.get("fallback_header", defaults.fallback_header),
        preview_rows=data.get("preview_rows", defaults.preview_rows),
        output=output,
    )


def resolve_config(path: Path | None, *, required: bool) -> MatcherConfig:
    """Load ``path`` when it exists; otherwise fall back to defaults.

    ``required=True`` (path named explicitly by flag or env) turns a missing
    file into a ConfigError.
    """
    if path is None:
        return MatcherConfig()
    if not path.exists() and not required:
        return MatcherConfig()
    return load_config(path)
