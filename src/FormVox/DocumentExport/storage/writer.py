# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.storage.writer",
#   "purpose": "Storage writer facade and backend selection from configuration.",
#   "sections": [
#     {
#       "id": "storagewriter",
#       "name": "StorageWriter",
#       "anchor": "class-storagewriter",
#       "kind": "class"
#     },
#     {
#       "id": "select-storage-backend",
#       "name": "select_storage_backend",
#       "anchor": "function-select-storage-backend",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Storage Writer

Finalizes a validated download according to the user's choice:

* ``save`` delegates to the :class:`StorageBackend` selected at startup.
* ``share`` hands the cached file to the platform share sheet.
"""

from __future__ import annotations

import logging
from typing import Optional

from FormVox.DocumentExport.api.exceptions import StorageUnavailable
from FormVox.DocumentExport.api.types import DownloadedFile, StorageWriteResult
from FormVox.DocumentExport.config.models import StorageConfig
from FormVox.DocumentExport.storage.base import (
    DirectoryPicker,
    ScopedDirectoryAccess,
    ShareTarget,
    StorageBackend,
)
from FormVox.DocumentExport.storage.kvstore import KeyValueStore
from FormVox.DocumentExport.storage.sandbox import SandboxDirectoryBackend
from FormVox.DocumentExport.storage.scoped import LocalScopedDirectoryAccess, ScopedGrantBackend

__all__ = ["DEFAULT_SHARE_TITLE", "StorageWriter", "select_storage_backend"]

LOGGER = logging.getLogger(__name__)

DEFAULT_SHARE_TITLE = "Export document"


class StorageWriter:
    """Save or share downloaded exports."""

    def __init__(self, backend: StorageBackend, share_target: Optional[ShareTarget] = None) -> None:
        self.backend = backend
        self.share_target = share_target

    def save(self, downloaded: DownloadedFile) -> StorageWriteResult:
        result = self.backend.save(downloaded)
        LOGGER.debug(
            "Export saved",
            extra={"extra_fields": {"backend": self.backend.name, "file_name": result.file_name}},
        )
        return result

    def success_message(self, result: StorageWriteResult) -> str:
        return self.backend.success_message(result)

    def share(
        self,
        downloaded: DownloadedFile,
        dialog_title: Optional[str] = None,
        *,
        uti: Optional[str] = None,
    ) -> None:
        if self.share_target is None or not self.share_target.is_available():
            raise StorageUnavailable("Sharing is unavailable on this device.")
        self.share_target.share(
            downloaded.uri,
            mime_type=downloaded.mime_type,
            dialog_title=dialog_title or DEFAULT_SHARE_TITLE,
            uti=uti,
        )


def select_storage_backend(
    settings: StorageConfig,
    *,
    store: KeyValueStore,
    picker: Optional[DirectoryPicker] = None,
    access: Optional[ScopedDirectoryAccess] = None,
) -> StorageBackend:
    """Build the backend named by ``settings.backend`` (chosen once at startup)."""

    if settings.backend == "scoped":
        if picker is None:
            raise ValueError("The scoped storage backend requires a directory picker")
        return ScopedGrantBackend(
            picker,
            access or LocalScopedDirectoryAccess(),
            store,
            directory_key=settings.directory_key,
            max_name_attempts=settings.max_name_attempts,
        )
    return SandboxDirectoryBackend(settings.documents_dir)
