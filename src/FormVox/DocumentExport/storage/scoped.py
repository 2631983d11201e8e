# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.storage.scoped",
#   "purpose": "Scoped folder grant storage backend with collision suffixes and grant renewal.",
#   "sections": [
#     {
#       "id": "scopedgrantbackend",
#       "name": "ScopedGrantBackend",
#       "anchor": "class-scopedgrantbackend",
#       "kind": "class"
#     },
#     {
#       "id": "directory-path-from-uri",
#       "name": "directory_path_from_uri",
#       "anchor": "function-directory-path-from-uri",
#       "kind": "function"
#     },
#     {
#       "id": "localscopeddirectoryaccess",
#       "name": "LocalScopedDirectoryAccess",
#       "anchor": "class-localscopeddirectoryaccess",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Scoped-grant storage: save into a user-chosen folder.

Algorithm
---------
1. Read the cached directory grant from the key-value store; when absent,
   prompt for a folder and cache the grant.
2. Read the downloaded payload.
3. Create ``{name}`` in the folder; on a name collision try
   ``{base}_{n}.{ext}`` for n = 1..49, then give up.
4. Write the payload into the created entry.

A permission failure anywhere in 3-4 invalidates the cached grant, prompts
once more and retries the whole write once. A second permission failure is
fatal.
"""

from __future__ import annotations

import errno
import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

from FormVox.DocumentExport.api.exceptions import (
    DirectorySelectionCancelled,
    FilenameAllocationFailed,
    PermissionDenied,
    StorageUnavailable,
)
from FormVox.DocumentExport.api.types import DownloadedFile, StorageWriteResult
from FormVox.DocumentExport.config.models import DIRECTORY_PERMISSION_KEY
from FormVox.DocumentExport.io_utils import atomic_write_stream
from FormVox.DocumentExport.naming import add_numeric_suffix_to_file_name
from FormVox.DocumentExport.storage.base import (
    DirectoryPicker,
    ScopedDirectoryAccess,
    StorageBackend,
    is_already_exists_error,
    is_permission_error,
)
from FormVox.DocumentExport.storage.kvstore import KeyValueStore

__all__ = ["LocalScopedDirectoryAccess", "ScopedGrantBackend", "directory_path_from_uri"]

LOGGER = logging.getLogger(__name__)


class ScopedGrantBackend(StorageBackend):
    """Storage backend for platforms requiring an explicit folder grant."""

    name = "scoped"

    def __init__(
        self,
        picker: DirectoryPicker,
        access: ScopedDirectoryAccess,
        store: KeyValueStore,
        *,
        directory_key: str = DIRECTORY_PERMISSION_KEY,
        max_name_attempts: int = 50,
    ) -> None:
        self.picker = picker
        self.access = access
        self.store = store
        self.directory_key = directory_key
        self.max_name_attempts = max_name_attempts

    # ------------------------------------------------------------------
    # Directory grant lifecycle
    # ------------------------------------------------------------------
    def cached_directory(self) -> Optional[str]:
        return self.store.get(self.directory_key) or None

    def _request_directory(self) -> str:
        grant = self.picker.request_directory()
        if not grant.granted or not grant.directory_uri:
            raise DirectorySelectionCancelled()
        try:
            self.store.set(self.directory_key, grant.directory_uri)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning("Could not cache directory grant: %s", exc)
        LOGGER.info(
            "Directory grant acquired",
            extra={"extra_fields": {"directory_uri": grant.directory_uri}},
        )
        return grant.directory_uri

    def _forget_directory(self) -> None:
        try:
            self.store.remove(self.directory_key)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.warning("Could not invalidate directory grant: %s", exc)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------
    def _write_to_directory(
        self, directory_uri: str, downloaded: DownloadedFile, data: bytes
    ) -> StorageWriteResult:
        for suffix in range(self.max_name_attempts):
            candidate_name = (
                downloaded.file_name
                if suffix == 0
                else add_numeric_suffix_to_file_name(downloaded.file_name, suffix)
            )
            try:
                target_uri = self.access.create_file(
                    directory_uri, candidate_name, downloaded.mime_type
                )
            except Exception as exc:  # pylint: disable=broad-except
                if is_already_exists_error(exc):
                    LOGGER.debug("File name taken, trying next suffix: %s", candidate_name)
                    continue
                raise
            self.access.write_bytes(target_uri, data)
            return StorageWriteResult(file_name=candidate_name, uri=target_uri)

        raise FilenameAllocationFailed()

    def save(self, downloaded: DownloadedFile) -> StorageWriteResult:
        directory_uri = self.cached_directory()
        if not directory_uri:
            directory_uri = self._request_directory()

        try:
            data = Path(downloaded.uri).read_bytes()
        except OSError as exc:
            raise StorageUnavailable(f"Downloaded file is no longer available: {exc}") from exc

        try:
            return self._write_to_directory(directory_uri, downloaded, data)
        except FilenameAllocationFailed:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            if not is_permission_error(exc):
                raise
            LOGGER.warning(
                "Directory grant rejected, asking for a new folder",
                extra={"extra_fields": {"directory_uri": directory_uri, "error": str(exc)}},
            )

        self._forget_directory()
        renewed_uri = self._request_directory()
        try:
            return self._write_to_directory(renewed_uri, downloaded, data)
        except FilenameAllocationFailed:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            if is_permission_error(exc):
                raise PermissionDenied() from exc
            raise

    def success_message(self, result: StorageWriteResult) -> str:
        return f"{result.file_name} saved in the selected folder."


def directory_path_from_uri(directory_uri: str) -> Path:
    """Return the local path behind a ``file://`` URI or a plain path."""

    if directory_uri.startswith("file://"):
        return Path(unquote(urlsplit(directory_uri).path))
    return Path(directory_uri).expanduser()


class LocalScopedDirectoryAccess:
    """
    Filesystem adapter for scoped grants: the grant is a folder path.

    A folder that vanished or became unwritable surfaces as
    :class:`PermissionError`, the same way a revoked grant does on devices.
    """

    def create_file(self, directory_uri: str, file_name: str, mime_type: str) -> str:
        directory = directory_path_from_uri(directory_uri)
        if not directory.is_dir():
            raise PermissionError(errno.EACCES, "Directory grant is no longer valid", str(directory))
        target = directory / file_name
        fd = os.open(target, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        os.close(fd)
        return str(target)

    def write_bytes(self, file_uri: str, data: bytes) -> None:
        atomic_write_stream(str(directory_path_from_uri(file_uri)), iter([data]))
