# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.storage.base",
#   "purpose": "Storage backend contract, platform collaborator protocols and error classifiers.",
#   "sections": [
#     {
#       "id": "storagebackend",
#       "name": "StorageBackend",
#       "anchor": "class-storagebackend",
#       "kind": "class"
#     },
#     {
#       "id": "directorypicker",
#       "name": "DirectoryPicker",
#       "anchor": "class-directorypicker",
#       "kind": "class"
#     },
#     {
#       "id": "scopeddirectoryaccess",
#       "name": "ScopedDirectoryAccess",
#       "anchor": "class-scopeddirectoryaccess",
#       "kind": "class"
#     },
#     {
#       "id": "sharetarget",
#       "name": "ShareTarget",
#       "anchor": "class-sharetarget",
#       "kind": "class"
#     },
#     {
#       "id": "error-tokens",
#       "name": "_error_tokens",
#       "anchor": "function-error-tokens",
#       "kind": "function"
#     },
#     {
#       "id": "is-already-exists-error",
#       "name": "is_already_exists_error",
#       "anchor": "function-is-already-exists-error",
#       "kind": "function"
#     },
#     {
#       "id": "is-permission-error",
#       "name": "is_permission_error",
#       "anchor": "function-is-permission-error",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Storage backend contract and platform collaborators.

Two persistent-storage models exist on the devices the engine targets:

* **Scoped grant**: the user picks a folder once through a system picker;
  the returned grant is cached and may be revoked later. Name collisions are
  not resolved by the platform.
* **Sandbox directory**: the application owns a private document directory;
  no permission prompt and no collisions with other apps.

The host selects one :class:`StorageBackend` at startup; the storage writer
only ever talks to that interface.
"""

from __future__ import annotations

import errno
from abc import ABC, abstractmethod
from typing import Optional, Protocol, runtime_checkable

from FormVox.DocumentExport.api.types import (
    DirectoryGrant,
    DownloadedFile,
    StorageWriteResult,
)

__all__ = [
    "DirectoryPicker",
    "ScopedDirectoryAccess",
    "ShareTarget",
    "StorageBackend",
    "is_already_exists_error",
    "is_permission_error",
]


class StorageBackend(ABC):
    """Persists a downloaded export to a durable location."""

    #: Short identifier used in logs
    name: str = "storage"

    @abstractmethod
    def save(self, downloaded: DownloadedFile) -> StorageWriteResult:
        """Persist ``downloaded`` and return where it ended up."""

    def success_message(self, result: StorageWriteResult) -> str:
        return f"{result.file_name} saved on the device."


@runtime_checkable
class DirectoryPicker(Protocol):
    """System folder picker granting write access to a user-chosen folder."""

    def request_directory(self) -> DirectoryGrant: ...


@runtime_checkable
class ScopedDirectoryAccess(Protocol):
    """File operations inside a granted folder."""

    def create_file(self, directory_uri: str, file_name: str, mime_type: str) -> str:
        """Create an empty entry and return its URI; raise if the name is taken."""
        ...

    def write_bytes(self, file_uri: str, data: bytes) -> None: ...


@runtime_checkable
class ShareTarget(Protocol):
    """Platform share sheet."""

    def is_available(self) -> bool: ...

    def share(
        self,
        uri: str,
        *,
        mime_type: str,
        dialog_title: str,
        uti: Optional[str] = None,
    ) -> None: ...


def _error_tokens(error: BaseException) -> tuple[str, str]:
    message = str(error or "").lower()
    code = str(getattr(error, "code", "") or "").lower()
    return message, code


def is_already_exists_error(error: BaseException) -> bool:
    """True when ``error`` says the target name is already taken."""

    if isinstance(error, FileExistsError):
        return True
    if isinstance(error, PermissionError):
        return False
    if isinstance(error, OSError) and error.errno == errno.EEXIST:
        return True
    message, code = _error_tokens(error)
    return any(token in text for token in ("exist", "already") for text in (message, code))


def is_permission_error(error: BaseException) -> bool:
    """True when ``error`` means the folder grant no longer allows writing."""

    if isinstance(error, PermissionError):
        return True
    if isinstance(error, OSError) and error.errno in (errno.EACCES, errno.EPERM):
        return True
    message, code = _error_tokens(error)
    if any(token in message for token in ("permission", "denied", "security")):
        return True
    return any(token in code for token in ("permission", "denied"))
