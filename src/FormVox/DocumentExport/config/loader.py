# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.config.loader",
#   "purpose": "Config file reading and layered file/env/CLI loading for DocumentExport.",
#   "sections": [
#     {
#       "id": "read-config-file",
#       "name": "read_config_file",
#       "anchor": "function-read-config-file",
#       "kind": "function"
#     },
#     {
#       "id": "load-config",
#       "name": "load_config",
#       "anchor": "function-load-config",
#       "kind": "function"
#     },
#     {
#       "id": "validate-config-file",
#       "name": "validate_config_file",
#       "anchor": "function-validate-config-file",
#       "kind": "function"
#     },
#     {
#       "id": "export-config-schema",
#       "name": "export_config_schema",
#       "anchor": "function-export-config-schema",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Configuration loading for the export engine.

``load_config`` reads the optional YAML/JSON file and hands it to
:class:`ExportConfig`, whose pydantic-settings sources layer the values:

1. **File**: the parsed YAML/JSON document
2. **Environment**: ``FVX_SECTION__FIELD`` variables, e.g.
   ``FVX_API__BASE_URL=https://staging.example`` or ``FVX_STORAGE__BACKEND=scoped``
3. **CLI**: ``cli_overrides`` passed as init values

Later layers win; nested sections are merged key by key.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Callable

import yaml

from .models import CONFIG_FILE_DATA, ExportConfig

LOGGER = logging.getLogger(__name__)

_PARSERS: dict[str, tuple[str, Callable[[str], Any], type[Exception]]] = {
    ".yaml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".yml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".json": ("JSON", json.loads, json.JSONDecodeError),
}


def read_config_file(path: str) -> dict[str, Any]:
    """Parse a YAML or JSON config file into a mapping.

    Raises:
        ValueError: If the file is missing, unreadable, malformed or not a mapping.
    """
    source = Path(path)
    parser = _PARSERS.get(source.suffix.lower())
    if parser is None:
        raise ValueError(f"Unsupported file format: {source.suffix}. Use .yaml or .json")
    label, parse, parse_error = parser

    try:
        text = source.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ValueError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise ValueError(f"Cannot read config file {path}: {exc}") from exc

    try:
        data = parse(text) if text.strip() else {}
    except parse_error as exc:
        raise ValueError(f"Invalid {label} in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_config(
    path: str | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> ExportConfig:
    """
    Build an :class:`ExportConfig` from file, environment and CLI overrides.

    Raises:
        ValueError: If the file cannot be read or the layered values are invalid
            (pydantic's ``ValidationError`` is a ``ValueError``).
    """
    file_data = read_config_file(path) if path else {}
    if path:
        LOGGER.info("Loaded config from %s", path)

    token = CONFIG_FILE_DATA.set(file_data)
    try:
        config = ExportConfig(**dict(cli_overrides or {}))
    except ValueError as exc:
        LOGGER.error("Configuration validation failed: %s", exc)
        raise
    finally:
        CONFIG_FILE_DATA.reset(token)

    LOGGER.debug("Configuration validated. Config hash: %s...", config.config_hash()[:8])
    return config


def validate_config_file(path: str) -> bool:
    """Validate a config file; raises on the first problem."""
    load_config(path=path)
    return True


def export_config_schema() -> dict[str, Any]:
    """JSON Schema of :class:`ExportConfig`."""
    return ExportConfig.model_json_schema()
