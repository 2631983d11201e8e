# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.config.models",
#   "purpose": "Pydantic settings models for the export engine.",
#   "sections": [
#     {
#       "id": "default-cache-dir",
#       "name": "default_cache_dir",
#       "anchor": "function-default-cache-dir",
#       "kind": "function"
#     },
#     {
#       "id": "default-documents-dir",
#       "name": "default_documents_dir",
#       "anchor": "function-default-documents-dir",
#       "kind": "function"
#     },
#     {
#       "id": "default-state-path",
#       "name": "default_state_path",
#       "anchor": "function-default-state-path",
#       "kind": "function"
#     },
#     {
#       "id": "apiconfig",
#       "name": "ApiConfig",
#       "anchor": "class-apiconfig",
#       "kind": "class"
#     },
#     {
#       "id": "exportpathsconfig",
#       "name": "ExportPathsConfig",
#       "anchor": "class-exportpathsconfig",
#       "kind": "class"
#     },
#     {
#       "id": "storageconfig",
#       "name": "StorageConfig",
#       "anchor": "class-storageconfig",
#       "kind": "class"
#     },
#     {
#       "id": "loggingconfig",
#       "name": "LoggingConfig",
#       "anchor": "class-loggingconfig",
#       "kind": "class"
#     },
#     {
#       "id": "configfilesettingssource",
#       "name": "ConfigFileSettingsSource",
#       "anchor": "class-configfilesettingssource",
#       "kind": "class"
#     },
#     {
#       "id": "exportconfig",
#       "name": "ExportConfig",
#       "anchor": "class-exportconfig",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Pydantic v2 Configuration Models for DocumentExport

Provides strict, typed configuration for the export engine:
- API client settings (base URL, token key, timeouts, detail routes)
- Export route candidates (historical prefixes)
- Storage backend selection and directories
- Logging
- Top-level ExportConfig as single source of truth

All models use extra="forbid" for strict validation. ExportConfig is a
pydantic-settings model: its sources are CLI overrides, then FVX_* environment
variables, then the config file (file < env < CLI precedence).

Default directories are per-user platform locations resolved with platformdirs.
"""

from __future__ import annotations

import hashlib
import json
from contextvars import ContextVar
from pathlib import Path
from typing import Any, ClassVar, List, Literal, Optional

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from FormVox.DocumentExport.paths import EXPORT_BASE_PATHS

DIRECTORY_PERMISSION_KEY = "@formvox_export_directory_uri"

DETAIL_BASE_PATHS: tuple[str, ...] = (
    "/form-fills",
    "/form_fills",
    "/formfills",
    "/api/form-fills",
    "/api/form_fills",
    "/api/formfills",
)


APP_NAME = "formvox"


def default_cache_dir() -> str:
    return str(Path(platformdirs.user_cache_dir(APP_NAME)) / "exports")


def default_documents_dir() -> str:
    return str(Path(platformdirs.user_documents_dir()) / "FormVox")


def default_state_path() -> str:
    return str(Path(platformdirs.user_state_dir(APP_NAME)) / "state.json")


class ApiConfig(BaseModel):
    """Configuration for the authenticated backend client."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    base_url: str = Field(default="https://api.scarch.cloud", description="Backend base URL")
    token_key: str = Field(default="token", description="Key-value store key of the bearer token")
    timeout_connect_s: float = Field(default=10.0, description="Connection timeout in seconds")
    timeout_read_s: float = Field(default=30.0, description="Default read timeout in seconds")
    preview_timeout_s: float = Field(
        default=120.0, description="Timeout for preview-class calls (export downloads)"
    )
    detail_base_paths: List[str] = Field(
        default_factory=lambda: list(DETAIL_BASE_PATHS),
        description="Form fill detail route prefixes, tried in order on 404",
    )
    user_agent: str = Field(default="FormVox/DocumentExport", description="User-Agent string")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v

    @field_validator("timeout_connect_s", "timeout_read_s", "preview_timeout_s")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Timeouts must be > 0")
        return v

    @field_validator("detail_base_paths")
    @classmethod
    def validate_detail_paths(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("detail_base_paths must not be empty")
        return v


class ExportPathsConfig(BaseModel):
    """Historical export route prefixes tried after the derived hint."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    baseline: List[str] = Field(
        default_factory=lambda: list(EXPORT_BASE_PATHS),
        description="Export prefixes, in the order they are tried",
    )
    derive_from_detail: bool = Field(
        default=True, description="Try the prefix derived from the detail URL first"
    )

    @field_validator("baseline")
    @classmethod
    def validate_baseline(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("baseline must not be empty")
        return v


class StorageConfig(BaseModel):
    """Storage backend and directories for exported files."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    backend: Literal["sandbox", "scoped"] = Field(
        default="sandbox",
        description="sandbox: app document directory; scoped: user-granted folder",
    )
    cache_dir: str = Field(
        default_factory=default_cache_dir,
        description="Cache directory for downloaded payloads",
    )
    documents_dir: str = Field(
        default_factory=default_documents_dir,
        description="Persistent document directory (sandbox backend)",
    )
    state_path: str = Field(
        default_factory=default_state_path,
        description="Durable key-value store file (token, directory grant)",
    )
    directory_key: str = Field(
        default=DIRECTORY_PERMISSION_KEY,
        description="Key under which the granted folder is cached",
    )
    max_name_attempts: int = Field(
        default=50, description="File names tried in a granted folder before giving up"
    )

    @field_validator("max_name_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_name_attempts must be >= 1")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_dir: Optional[str] = Field(default=None, description="Directory for JSONL logs")
    max_log_size_mb: int = Field(default=10, ge=1)


# Parsed config file contents for the ExportConfig being built; set by load_config.
CONFIG_FILE_DATA: ContextVar[dict[str, Any]] = ContextVar("formvox_config_file_data", default={})


class ConfigFileSettingsSource(PydanticBaseSettingsSource):
    """Settings source serving the YAML/JSON file read by ``load_config``."""

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        data = CONFIG_FILE_DATA.get()
        return data.get(field_name), field_name, isinstance(data.get(field_name), dict)

    def __call__(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in CONFIG_FILE_DATA.get().items()
            if value is not None
        }


class ExportConfig(BaseSettings):
    """
    Single source of truth for DocumentExport configuration.

    Built from CLI overrides (init kwargs), ``FVX_SECTION__FIELD`` environment
    variables and the config file, in that priority order.
    """

    model_config = SettingsConfigDict(
        env_prefix="FVX_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="forbid",
        validate_assignment=True,
    )

    api: ApiConfig = Field(default_factory=ApiConfig, description="Backend client configuration")
    paths: ExportPathsConfig = Field(
        default_factory=ExportPathsConfig, description="Export route candidates"
    )
    storage: StorageConfig = Field(default_factory=StorageConfig, description="Storage settings")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging settings")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, env_settings, ConfigFileSettingsSource(settings_cls)

    def config_hash(self) -> str:
        """Deterministic SHA256 of the normalized config."""
        normalized = json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(normalized.encode()).hexdigest()
