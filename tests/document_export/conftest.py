"""Fixtures for the document export tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from FormVox.DocumentExport.bootstrap import build_exporter
from FormVox.DocumentExport.config.models import ExportConfig
from FormVox.DocumentExport.storage.kvstore import InMemoryKeyValueStore
from tests.document_export.fakes import (
    FakeBackend,
    FakePrompter,
    FakeShareTarget,
    RecordingNotifier,
)


@pytest.fixture
def export_config(tmp_path: Path) -> ExportConfig:
    return ExportConfig(
        storage={
            "cache_dir": str(tmp_path / "cache"),
            "documents_dir": str(tmp_path / "documents"),
            "state_path": str(tmp_path / "state.json"),
        }
    )


@pytest.fixture
def token_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore({"token": "secret-token"})


@pytest.fixture
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def share_target() -> FakeShareTarget:
    return FakeShareTarget()


@pytest.fixture
def make_exporter(export_config, token_store, prompter, notifier, share_target):
    """Build a ``DocumentExporter`` over a :class:`FakeBackend`."""

    def _make(backend: FakeBackend, **overrides):
        kwargs = dict(
            prompter=prompter,
            notifier=notifier,
            store=token_store,
            share_target=share_target,
            transport=backend.transport,
        )
        config = overrides.pop("config", export_config)
        kwargs.update(overrides)
        return build_exporter(config, **kwargs)

    return _make


@pytest.fixture(autouse=True)
def _restore_export_logger():
    """Undo ``setup_logging`` side effects so ``caplog`` keeps seeing records."""

    logger = logging.getLogger("FormVox.DocumentExport")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate
