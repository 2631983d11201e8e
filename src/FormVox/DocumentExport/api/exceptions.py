# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.api.exceptions",
#   "purpose": "Export error hierarchy with stable kinds, user-facing messages and HTTP status.",
#   "sections": [
#     {
#       "id": "exporterror",
#       "name": "ExportError",
#       "anchor": "class-exporterror",
#       "kind": "class"
#     },
#     {
#       "id": "invalidexportrequest",
#       "name": "InvalidExportRequest",
#       "anchor": "class-invalidexportrequest",
#       "kind": "class"
#     },
#     {
#       "id": "sessioninvalid",
#       "name": "SessionInvalid",
#       "anchor": "class-sessioninvalid",
#       "kind": "class"
#     },
#     {
#       "id": "routenotfound",
#       "name": "RouteNotFound",
#       "anchor": "class-routenotfound",
#       "kind": "class"
#     },
#     {
#       "id": "transientserviceerror",
#       "name": "TransientServiceError",
#       "anchor": "class-transientserviceerror",
#       "kind": "class"
#     },
#     {
#       "id": "contenttypemismatch",
#       "name": "ContentTypeMismatch",
#       "anchor": "class-contenttypemismatch",
#       "kind": "class"
#     },
#     {
#       "id": "exportnetworkerror",
#       "name": "ExportNetworkError",
#       "anchor": "class-exportnetworkerror",
#       "kind": "class"
#     },
#     {
#       "id": "storageunavailable",
#       "name": "StorageUnavailable",
#       "anchor": "class-storageunavailable",
#       "kind": "class"
#     },
#     {
#       "id": "directoryselectioncancelled",
#       "name": "DirectorySelectionCancelled",
#       "anchor": "class-directoryselectioncancelled",
#       "kind": "class"
#     },
#     {
#       "id": "permissiondenied",
#       "name": "PermissionDenied",
#       "anchor": "class-permissiondenied",
#       "kind": "class"
#     },
#     {
#       "id": "filenameallocationfailed",
#       "name": "FilenameAllocationFailed",
#       "anchor": "class-filenameallocationfailed",
#       "kind": "class"
#     },
#     {
#       "id": "illegaltransition",
#       "name": "IllegalTransition",
#       "anchor": "class-illegaltransition",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Canonical Exception Types for the Export Engine

Every failure that ends an export operation is an :class:`ExportError`
subclass carrying a stable ``kind`` token. The orchestrator catches them once
per operation and turns them into a single user-facing message.

Per-candidate download failures are *not* exceptions; they are
:class:`~FormVox.DocumentExport.api.types.DownloadOutcome` values that the
candidate loop aggregates into one of these errors.
"""

from __future__ import annotations

from typing import Optional


class ExportError(Exception):
    """
    Base class for export failures.

    Args:
        message: Human-readable message shown to the user
        http_status: HTTP status associated with the failure, if any
    """

    kind: str = "export-error"
    default_message: str = "The export failed."

    def __init__(self, message: Optional[str] = None, *, http_status: Optional[int] = None) -> None:
        self.http_status = http_status
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class InvalidExportRequest(ExportError):
    """Raised when the form fill id or format cannot be used."""

    kind = "invalid-request"
    default_message = "Invalid form fill identifier."


class SessionInvalid(ExportError):
    """401/403 or missing token: the user must sign in again. Never retried."""

    kind = "session-invalid"
    default_message = "Session expired. Please sign in again."


class RouteNotFound(ExportError):
    """Every candidate prefix answered 404."""

    kind = "route-not-found"
    default_message = "Export route not found on the backend (HTTP 404)."


class TransientServiceError(ExportError):
    """5xx/405/409 responses remained after all candidates were exhausted."""

    kind = "transient-service-error"
    default_message = "The export service is temporarily unavailable."


class ContentTypeMismatch(ExportError):
    """A 2xx response carried a body that is not the requested document."""

    kind = "content-type-mismatch"
    default_message = "Invalid export response (unknown content-type)."


class ExportNetworkError(ExportError):
    """Transport failure, timeout or unexpected status on the last candidate."""

    kind = "network-error"
    default_message = "Network error while downloading the export."


class StorageUnavailable(ExportError):
    """No cache/document directory, or no share target on this device."""

    kind = "storage-unavailable"
    default_message = "Local storage is unavailable on this device."


class DirectorySelectionCancelled(ExportError):
    """The folder picker was dismissed without granting a folder."""

    kind = "directory-not-selected"
    default_message = "No folder selected."


class PermissionDenied(ExportError):
    """Writing into the granted folder failed even after one renewal."""

    kind = "permission-denied"
    default_message = "Permission denied while writing the exported file."


class FilenameAllocationFailed(ExportError):
    """No free file name was found after the maximum number of suffixes."""

    kind = "filename-allocation-failed"
    default_message = "Could not allocate an available file name."


class IllegalTransition(RuntimeError):
    """Raised by the export state machine on an out-of-order phase change."""


__all__ = [
    "ContentTypeMismatch",
    "DirectorySelectionCancelled",
    "ExportError",
    "ExportNetworkError",
    "FilenameAllocationFailed",
    "IllegalTransition",
    "InvalidExportRequest",
    "PermissionDenied",
    "RouteNotFound",
    "SessionInvalid",
    "StorageUnavailable",
    "TransientServiceError",
]
