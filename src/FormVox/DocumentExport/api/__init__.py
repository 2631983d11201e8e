"""
DocumentExport API Surface

Canonical types shared by the path resolver, downloader, storage writer and
export orchestrator:
- ExportRequest: caller intent (id, format, page, document name)
- DownloadOutcome: one candidate attempt
- DownloadedFile: validated payload in the cache directory
- StorageWriteResult: final file location
- ExportResult: terminal report of an export operation

Plus the ExportError hierarchy used for operation-level failures.
"""

from .exceptions import (
    ContentTypeMismatch,
    DirectorySelectionCancelled,
    ExportError,
    ExportNetworkError,
    FilenameAllocationFailed,
    IllegalTransition,
    InvalidExportRequest,
    PermissionDenied,
    RouteNotFound,
    SessionInvalid,
    StorageUnavailable,
    TransientServiceError,
)
from .types import (
    ALL_PAGES,
    DEFAULT_MIME_TYPE,
    EXT_BY_FORMAT,
    MIME_BY_FORMAT,
    DirectoryGrant,
    DownloadedFile,
    DownloadOutcome,
    ExportAction,
    ExportFormat,
    ExportRequest,
    ExportResult,
    ExportStatus,
    FormatChoice,
    OutcomeKind,
    PageParam,
    StorageWriteResult,
)

__all__ = [
    # Core dataclasses
    "ExportRequest",
    "DownloadOutcome",
    "DownloadedFile",
    "StorageWriteResult",
    "DirectoryGrant",
    "ExportResult",
    # Vocabulary
    "ExportFormat",
    "ExportAction",
    "FormatChoice",
    "OutcomeKind",
    "ExportStatus",
    "PageParam",
    "ALL_PAGES",
    "MIME_BY_FORMAT",
    "EXT_BY_FORMAT",
    "DEFAULT_MIME_TYPE",
    # Errors
    "ExportError",
    "InvalidExportRequest",
    "SessionInvalid",
    "RouteNotFound",
    "TransientServiceError",
    "ContentTypeMismatch",
    "ExportNetworkError",
    "StorageUnavailable",
    "DirectorySelectionCancelled",
    "PermissionDenied",
    "FilenameAllocationFailed",
    "IllegalTransition",
]
