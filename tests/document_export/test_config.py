"""Configuration models and file/env/CLI precedence."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import platformdirs
import pytest
import yaml
from pydantic import ValidationError

from FormVox.DocumentExport.config import (
    DETAIL_BASE_PATHS,
    DIRECTORY_PERMISSION_KEY,
    ExportConfig,
    export_config_schema,
    load_config,
    read_config_file,
    validate_config_file,
)
from FormVox.DocumentExport.paths import EXPORT_BASE_PATHS


def test_defaults():
    cfg = ExportConfig()
    assert cfg.api.base_url == "https://api.scarch.cloud"
    assert cfg.api.token_key == "token"
    assert cfg.api.preview_timeout_s == 120.0
    assert cfg.api.detail_base_paths == list(DETAIL_BASE_PATHS)
    assert cfg.paths.baseline == list(EXPORT_BASE_PATHS)
    assert cfg.storage.backend == "sandbox"
    assert cfg.storage.directory_key == DIRECTORY_PERMISSION_KEY == "@formvox_export_directory_uri"
    assert cfg.storage.max_name_attempts == 50


def test_unknown_keys_are_rejected():
    with pytest.raises(ValidationError):
        ExportConfig.model_validate({"api": {"base_ur": "https://x"}})


@pytest.mark.parametrize("url", ["ftp://example.org", "example.org"])
def test_base_url_must_be_http(url):
    with pytest.raises(ValidationError):
        ExportConfig.model_validate({"api": {"base_url": url}})


def test_base_url_trailing_slash_is_stripped():
    assert ExportConfig.model_validate({"api": {"base_url": "https://x.test/"}}).api.base_url == "https://x.test"


def test_precedence_file_env_cli(tmp_path, monkeypatch):
    path = tmp_path / "export.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "api": {"base_url": "https://file.test", "timeout_read_s": 5},
                "storage": {"backend": "scoped"},
            }
        )
    )
    monkeypatch.setenv("FVX_API__BASE_URL", "https://env.test")
    monkeypatch.setenv("FVX_API__TIMEOUT_READ_S", "7")

    cfg = load_config(str(path), cli_overrides={"api": {"timeout_read_s": 9}})

    assert cfg.api.base_url == "https://env.test"
    assert cfg.api.timeout_read_s == 9
    assert cfg.storage.backend == "scoped"


def test_json_file_and_hash_changes(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps({"paths": {"baseline": ["/v3/forms"]}}))

    cfg = load_config(str(path))

    assert cfg.paths.baseline == ["/v3/forms"]
    assert cfg.config_hash() != ExportConfig().config_hash()
    assert cfg.config_hash() == load_config(str(path)).config_hash()


def test_validate_config_file_errors(tmp_path):
    with pytest.raises(ValueError, match="not found"):
        validate_config_file(str(tmp_path / "missing.yaml"))
    bad = tmp_path / "export.toml"
    bad.write_text("x = 1")
    with pytest.raises(ValueError, match="Unsupported"):
        validate_config_file(str(bad))


def test_empty_baseline_is_invalid():
    with pytest.raises(ValidationError):
        ExportConfig.model_validate({"paths": {"baseline": []}})


def test_schema_lists_sections():
    schema = export_config_schema()
    assert {"api", "paths", "storage", "logging"} <= set(schema["properties"])


def test_default_directories_are_per_user_platform_dirs():
    storage = ExportConfig().storage
    temp_root = Path(tempfile.gettempdir())

    assert Path(storage.state_path) == Path(platformdirs.user_state_dir("formvox")) / "state.json"
    assert Path(storage.cache_dir).is_relative_to(platformdirs.user_cache_dir("formvox"))
    assert Path(storage.documents_dir).is_relative_to(platformdirs.user_documents_dir())
    for value in (storage.state_path, storage.documents_dir):
        assert not Path(value).is_relative_to(temp_root)


def test_env_overlay_without_file(monkeypatch):
    monkeypatch.setenv("FVX_STORAGE__BACKEND", "scoped")
    monkeypatch.setenv("FVX_PATHS__DERIVE_FROM_DETAIL", "false")

    cfg = load_config()

    assert cfg.storage.backend == "scoped"
    assert cfg.paths.derive_from_detail is False
    assert cfg.paths.baseline == list(EXPORT_BASE_PATHS)


def test_invalid_env_value_is_rejected(monkeypatch):
    monkeypatch.setenv("FVX_STORAGE__BACKEND", "cloud")
    with pytest.raises(ValidationError):
        load_config()


def test_cli_override_keeps_sibling_file_keys(tmp_path):
    path = tmp_path / "export.yaml"
    path.write_text(yaml.safe_dump({"storage": {"backend": "scoped", "max_name_attempts": 3}}))

    cfg = load_config(str(path), cli_overrides={"storage": {"max_name_attempts": 7}})

    assert cfg.storage.backend == "scoped"
    assert cfg.storage.max_name_attempts == 7


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "export.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValueError, match="mapping"):
        read_config_file(str(path))
