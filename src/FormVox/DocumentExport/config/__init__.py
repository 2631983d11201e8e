"""
DocumentExport Configuration Package

Public API for loading, validating, and introspecting export configuration.

Example:
    from FormVox.DocumentExport.config import load_config

    config = load_config(
        path="export.yaml",
        cli_overrides={"storage": {"backend": "scoped"}},
    )
"""

from .loader import (
    export_config_schema,
    load_config,
    read_config_file,
    validate_config_file,
)
from .models import (
    DETAIL_BASE_PATHS,
    DIRECTORY_PERMISSION_KEY,
    ApiConfig,
    ExportConfig,
    ExportPathsConfig,
    LoggingConfig,
    StorageConfig,
)

__all__ = [
    # Models
    "ExportConfig",
    "ApiConfig",
    "ExportPathsConfig",
    "StorageConfig",
    "LoggingConfig",
    "DETAIL_BASE_PATHS",
    "DIRECTORY_PERMISSION_KEY",
    # Loading/validation
    "load_config",
    "read_config_file",
    "validate_config_file",
    "export_config_schema",
]
