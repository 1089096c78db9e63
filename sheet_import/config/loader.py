from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.mapping import FieldMapping

"""Import definition loader.

Responsibilities:
- Load the YAML import definition (title, fields, template rows, ...)
- Validate it against the bundled JSON schema (config/import_schema.json)
- Apply defaults and environment overrides
"""

__all__ = [
    "ConfigError",
    "ImportDefinition",
    "SCHEMA_PATH",
    "load_config",
    "ENV_ERROR_LOG_DIR",
    "ENV_PREVIEW_LIMIT",
]

SCHEMA_PATH = Path(__file__).with_name("import_schema.json")

DEFAULT_PREVIEW_LIMIT = 5
DEFAULT_ERROR_LOG_DIR = "./logs"

# 環境変数 (.env 経由でも可) が設定ファイルより優先
ENV_ERROR_LOG_DIR = "SHEET_IMPORT_ERROR_LOG_DIR"
ENV_PREVIEW_LIMIT = "SHEET_IMPORT_PREVIEW_LIMIT"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ImportDefinition:
    """Destination schema plus the options of one import flow."""
    title: str
    fields: tuple[FieldMapping, ...]
    template_rows: tuple[dict[str, Any], ...] = ()
    preview_limit: int = DEFAULT_PREVIEW_LIMIT
    error_log_dir: Path = field(default_factory=lambda: Path(DEFAULT_ERROR_LOG_DIR))

    @property
    def target_fields(self) -> list[str]:
        return [f.target_field for f in self.fields]

    @property
    def required_fields(self) -> list[str]:
        return [f.target_field for f in self.fields if f.required]


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing/invalid, or the data violates the schema
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


def _env_preview_limit(default: int) -> int:
    raw = os.getenv(ENV_PREVIEW_LIMIT)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{ENV_PREVIEW_LIMIT} must be an integer: {raw!r}") from e
    if value < 0:
        raise ConfigError(f"{ENV_PREVIEW_LIMIT} must be >= 0: {value}")
    return value


def load_config(path: Path) -> ImportDefinition:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    fields = tuple(FieldMapping.from_dict(raw) for raw in data["fields"])
    seen: set[str] = set()
    for f in fields:
        if f.target_field in seen:
            raise ConfigError(f"duplicate target_field: {f.target_field}")
        seen.add(f.target_field)

    log_dir = os.getenv(ENV_ERROR_LOG_DIR) or data.get("error_log_dir", DEFAULT_ERROR_LOG_DIR)
    return ImportDefinition(
        title=data["title"],
        fields=fields,
        template_rows=tuple(dict(r) for r in data.get("template_rows", [])),
        preview_limit=_env_preview_limit(data.get("preview_limit", DEFAULT_PREVIEW_LIMIT)),
        error_log_dir=Path(log_dir),
    )
