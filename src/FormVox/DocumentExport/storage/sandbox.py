# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.storage.sandbox",
#   "purpose": "Sandbox document directory storage backend.",
#   "sections": [
#     {
#       "id": "sandboxdirectorybackend",
#       "name": "SandboxDirectoryBackend",
#       "anchor": "class-sandboxdirectorybackend",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Sandbox storage: copy exports into the app's private document directory."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional, Union

from FormVox.DocumentExport.api.exceptions import StorageUnavailable
from FormVox.DocumentExport.api.types import DownloadedFile, StorageWriteResult
from FormVox.DocumentExport.cleanup import CleanupObserver, discard_file
from FormVox.DocumentExport.storage.base import StorageBackend

__all__ = ["SandboxDirectoryBackend"]

LOGGER = logging.getLogger(__name__)


class SandboxDirectoryBackend(StorageBackend):
    """
    Storage backend for sandboxed platforms.

    The destination is private to the application, so an existing file with
    the same name is simply replaced; no collision suffixes are needed.
    """

    name = "sandbox"

    def __init__(
        self,
        documents_dir: Union[str, Path, None],
        *,
        cleanup_observer: Optional[CleanupObserver] = None,
    ) -> None:
        self.documents_dir = Path(documents_dir).expanduser() if documents_dir else None
        self.cleanup_observer = cleanup_observer

    def save(self, downloaded: DownloadedFile) -> StorageWriteResult:
        if self.documents_dir is None:
            raise StorageUnavailable()
        self.documents_dir.mkdir(parents=True, exist_ok=True)

        destination = self.documents_dir / downloaded.file_name
        if destination.resolve() == Path(downloaded.uri).resolve():
            return StorageWriteResult(file_name=downloaded.file_name, uri=str(destination))
        discard_file(destination, reason="overwrite", observer=self.cleanup_observer)
        shutil.copyfile(downloaded.uri, destination)

        LOGGER.info(
            "Saved export to document directory",
            extra={"extra_fields": {"file_name": downloaded.file_name, "uri": str(destination)}},
        )
        return StorageWriteResult(file_name=downloaded.file_name, uri=str(destination))
