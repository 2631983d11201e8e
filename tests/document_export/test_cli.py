"""Typer CLI commands."""

from __future__ import annotations

import json

import pytest
import yaml
from typer.testing import CliRunner

from FormVox.DocumentExport import cli
from FormVox.DocumentExport.bootstrap import build_exporter
from tests.document_export.fakes import (
    PDF_BYTES,
    FakeBackend,
    FakePrinter,
    FakePrompter,
    FakeShareTarget,
    RecordingNotifier,
    pdf_response,
    status_response,
)

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "export.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "storage": {
                    "cache_dir": str(tmp_path / "cache"),
                    "documents_dir": str(tmp_path / "documents"),
                    "state_path": str(tmp_path / "state.json"),
                }
            }
        )
    )
    return path


@pytest.fixture
def fake_backend(monkeypatch):
    backend = FakeBackend()
    notifier = RecordingNotifier()

    def _build(cfg, **kwargs):
        kwargs.update(
            prompter=FakePrompter(),
            notifier=notifier,
            picker=None,
            share_target=FakeShareTarget(),
            printer=FakePrinter(),
            transport=backend.transport,
        )
        return build_exporter(cfg, **kwargs)

    monkeypatch.setattr(cli, "build_exporter", _build)
    backend.notifier = notifier
    return backend


def test_set_token_then_export_pdf(config_file, fake_backend, tmp_path):
    fake_backend.exports["/form-fills/42/export"] = pdf_response

    stored = runner.invoke(cli.app, ["set-token", "abc123", "--config", str(config_file)])
    exported = runner.invoke(cli.app, ["pdf", "42", "--name", "Rapport", "--config", str(config_file)])

    assert stored.exit_code == 0, stored.output
    assert json.loads((tmp_path / "state.json").read_text()) == {"token": "abc123"}
    assert exported.exit_code == 0, exported.output
    assert (tmp_path / "documents" / "Rapport_rempli.pdf").read_bytes() == PDF_BYTES
    assert fake_backend.export_requests[0].headers["Authorization"] == "Bearer abc123"


def test_failed_export_exits_non_zero(config_file, fake_backend):
    fake_backend.exports["/form-fills/42/export"] = status_response(401)
    runner.invoke(cli.app, ["set-token", "abc123", "--config", str(config_file)])

    result = runner.invoke(cli.app, ["pdf", "42", "--config", str(config_file)])

    assert result.exit_code == 1
    assert fake_backend.notifier.alerts == [("Error", "Session expired. Please sign in again.")]


def test_jpg_rejects_bad_page(config_file, fake_backend):
    result = runner.invoke(cli.app, ["jpg", "42", "--page", "first", "--config", str(config_file)])
    assert result.exit_code != 0
    assert fake_backend.requests == []


def test_candidates_lists_routes_in_order(config_file, fake_backend):
    result = runner.invoke(cli.app, ["candidates", "42", "--config", str(config_file)])

    assert result.exit_code == 0, result.output
    assert "/form-fills/42/export" in result.output
    assert "/api/v1/formfills/42/export" in result.output


def test_validate_config(config_file, tmp_path):
    ok = runner.invoke(cli.app, ["validate-config", str(config_file)])
    bad_path = tmp_path / "bad.yaml"
    bad_path.write_text(yaml.safe_dump({"storage": {"backend": "cloud"}}))
    bad = runner.invoke(cli.app, ["validate-config", str(bad_path)])

    assert ok.exit_code == 0
    assert "Config valid" in ok.output
    assert bad.exit_code == 1


def test_config_schema_is_json():
    result = runner.invoke(cli.app, ["config-schema"])
    assert result.exit_code == 0
    assert "storage" in json.loads(result.output)["properties"]


def test_print_config_raw(config_file, tmp_path):
    result = runner.invoke(cli.app, ["print-config", "--config", str(config_file), "--raw"])
    assert result.exit_code == 0
    assert json.loads(result.output)["storage"]["cache_dir"] == str(tmp_path / "cache")
