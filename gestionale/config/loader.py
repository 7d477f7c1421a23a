from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..excel.mappers import MAPPERS
from ..models.config_models import (
    ROW_ERROR_SKIP,
    DatabaseConfig,
    ImportConfig,
    SheetMappingConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate it against the bundled JSON schema (config_schema.json)
- Apply defaults (header_row=1, on_row_error=skip, timezone=UTC)
- Build the typed ImportConfig
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file does not exist or is not valid JSON,
            or if the config data fails schema validation (missing required
            keys, wrong types, unknown keys).
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


def _null_sentinels(raw: list[str] | None) -> set[str] | None:
    if not raw:
        return None
    return {s.strip().upper() for s in raw if s.strip()}


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    null_sentinels = _null_sentinels(data.get("null_sentinels"))
    sheet_mappings: dict[str, SheetMappingConfig] = {}
    for sheet_name, mapping in data["sheet_mappings"].items():
        entity = mapping.get("entity", mapping["table"])
        if entity not in MAPPERS:
            raise ConfigError(
                f"config validation failed: sheet '{sheet_name}' has no row mapper for '{entity}'"
            )
        sheet_mappings[sheet_name] = SheetMappingConfig(
            sheet_name=sheet_name,
            table_name=mapping["table"],
            entity=entity,
            null_sentinels=null_sentinels,
        )

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        source_directory=data["source_directory"],
        sheet_mappings=sheet_mappings,
        header_row=data.get("header_row", 1),
        on_row_error=data.get("on_row_error", ROW_ERROR_SKIP),
        timezone=data.get("timezone", "UTC"),
        database=db,
        null_sentinels=null_sentinels,
    )
