# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.bootstrap",
#   "purpose": "Wire configuration into the session, downloader, storage writer and exporter.",
#   "sections": [
#     {
#       "id": "build-session",
#       "name": "build_session",
#       "anchor": "function-build-session",
#       "kind": "function"
#     },
#     {
#       "id": "build-exporter",
#       "name": "build_exporter",
#       "anchor": "function-build-exporter",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Bootstrap helpers wiring configuration into a ready :class:`DocumentExporter`.

**Purpose**
-----------
1. Build the shared ``httpx.Client`` and the bearer-token session
2. Build the form fill API used for path hints and page counts
3. Build the downloader over the configured cache directory
4. Select the storage backend once (sandbox or scoped grant)
5. Hand everything to the orchestrator together with the UI collaborators
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import httpx

from FormVox.DocumentExport.cleanup import CleanupObserver
from FormVox.DocumentExport.client import AuthenticatedSession, FormFillsApi, build_http_client
from FormVox.DocumentExport.config.models import ExportConfig
from FormVox.DocumentExport.download import ExportDownloader
from FormVox.DocumentExport.orchestrator import DocumentExporter
from FormVox.DocumentExport.prompts import Notifier, Printer, UserPrompter
from FormVox.DocumentExport.storage.base import DirectoryPicker, ScopedDirectoryAccess, ShareTarget
from FormVox.DocumentExport.storage.kvstore import JsonFileKeyValueStore, KeyValueStore
from FormVox.DocumentExport.storage.writer import StorageWriter, select_storage_backend

__all__ = ["build_exporter", "build_session"]

LOGGER = logging.getLogger(__name__)


def build_session(
    config: ExportConfig,
    store: KeyValueStore,
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> AuthenticatedSession:
    client = build_http_client(config, transport=transport)
    return AuthenticatedSession(
        client,
        store,
        token_key=config.api.token_key,
        preview_timeout_s=config.api.preview_timeout_s,
    )


def build_exporter(
    config: ExportConfig,
    *,
    prompter: UserPrompter,
    notifier: Notifier,
    store: Optional[KeyValueStore] = None,
    picker: Optional[DirectoryPicker] = None,
    access: Optional[ScopedDirectoryAccess] = None,
    share_target: Optional[ShareTarget] = None,
    printer: Optional[Printer] = None,
    transport: Optional[httpx.BaseTransport] = None,
    cleanup_observer: Optional[CleanupObserver] = None,
) -> DocumentExporter:
    """Assemble the export engine described by ``config``."""

    store = store if store is not None else JsonFileKeyValueStore(config.storage.state_path)
    session = build_session(config, store, transport=transport)
    api = FormFillsApi(session, detail_base_paths=config.api.detail_base_paths)
    downloader = ExportDownloader(
        session,
        Path(config.storage.cache_dir),
        cleanup_observer=cleanup_observer,
    )
    backend = select_storage_backend(config.storage, store=store, picker=picker, access=access)
    writer = StorageWriter(backend, share_target)

    LOGGER.debug(
        "Export engine ready",
        extra={
            "extra_fields": {
                "config_hash": config.config_hash()[:8],
                "backend": backend.name,
                "base_url": config.api.base_url,
            }
        },
    )
    return DocumentExporter(
        api=api,
        downloader=downloader,
        writer=writer,
        prompter=prompter,
        notifier=notifier,
        printer=printer,
        baseline_paths=config.paths.baseline,
        derive_path_hint=config.paths.derive_from_detail,
    )
