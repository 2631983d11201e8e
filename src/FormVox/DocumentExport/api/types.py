# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.api.types",
#   "purpose": "Frozen export payloads and token vocabularies shared by every export layer.",
#   "sections": [
#     {
#       "id": "exportformat",
#       "name": "ExportFormat",
#       "anchor": "class-exportformat",
#       "kind": "class"
#     },
#     {
#       "id": "exportaction",
#       "name": "ExportAction",
#       "anchor": "class-exportaction",
#       "kind": "class"
#     },
#     {
#       "id": "formatchoice",
#       "name": "FormatChoice",
#       "anchor": "class-formatchoice",
#       "kind": "class"
#     },
#     {
#       "id": "exportrequest",
#       "name": "ExportRequest",
#       "anchor": "class-exportrequest",
#       "kind": "class"
#     },
#     {
#       "id": "downloadedfile",
#       "name": "DownloadedFile",
#       "anchor": "class-downloadedfile",
#       "kind": "class"
#     },
#     {
#       "id": "downloadoutcome",
#       "name": "DownloadOutcome",
#       "anchor": "class-downloadoutcome",
#       "kind": "class"
#     },
#     {
#       "id": "storagewriteresult",
#       "name": "StorageWriteResult",
#       "anchor": "class-storagewriteresult",
#       "kind": "class"
#     },
#     {
#       "id": "directorygrant",
#       "name": "DirectoryGrant",
#       "anchor": "class-directorygrant",
#       "kind": "class"
#     },
#     {
#       "id": "exportresult",
#       "name": "ExportResult",
#       "anchor": "class-exportresult",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Canonical API Types for the DocumentExport Engine

Frozen dataclasses and vocabulary tokens shared by the path resolver,
downloader, storage writer and orchestrator.

Data Flow:
  resolve_candidate_paths(form_fill_id) → candidate prefixes
  ExportDownloader.download(candidate, ...) → DownloadOutcome (one per candidate)
  DownloadOutcome.downloaded → StorageWriter.save()/share()
  StorageWriter.save() → StorageWriteResult
  DocumentExporter.export_*() → ExportResult

Design Principles:
  - Frozen dataclasses prevent accidental mutation
  - Literal/enum tokens prevent invalid string values
  - Per-candidate failures are values, not exceptions
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional, Sequence, Union

# ============================================================================
# STABLE TOKEN VOCABULARIES (Public Contract)
# ============================================================================


class ExportFormat(str, Enum):
    """File formats the backend export endpoint can produce."""

    PDF = "pdf"
    JPG = "jpg"

    @classmethod
    def coerce(cls, value: Union[str, "ExportFormat", None]) -> "ExportFormat":
        """Return the format for ``value`` (case-insensitive), defaulting to PDF."""

        if isinstance(value, ExportFormat):
            return value
        raw = str(value or "pdf").strip().lower()
        try:
            return cls(raw)
        except ValueError as exc:
            raise ValueError(f"Unsupported export format: {value!r}") from exc


class ExportAction(str, Enum):
    """What the user wants done with a downloaded file."""

    CANCEL = "cancel"
    SAVE = "save"
    SHARE = "share"


class FormatChoice(str, Enum):
    """Answer to the format prompt of ``export_with_choice``."""

    CANCEL = "cancel"
    PDF = "pdf"
    JPG = "jpg"


MIME_BY_FORMAT: dict[ExportFormat, str] = {
    ExportFormat.PDF: "application/pdf",
    ExportFormat.JPG: "image/jpeg",
}

EXT_BY_FORMAT: dict[ExportFormat, str] = {
    ExportFormat.PDF: "pdf",
    ExportFormat.JPG: "jpg",
}

DEFAULT_MIME_TYPE = "application/octet-stream"

#: Sentinel page value requesting every page of a JPEG export
ALL_PAGES = "all"

PageParam = Union[int, str, None]

#: Per-candidate outcome classification
OutcomeKind = Literal[
    "success",
    "unauthorized",
    "not-found",
    "server-or-client-error",
    "content-type-mismatch",
    "network-error",
]

#: Final status of one orchestrated export operation
ExportStatus = Literal["success", "cancelled", "error"]


# ============================================================================
# CORE API PAYLOADS
# ============================================================================


@dataclass(frozen=True)
class ExportRequest:
    """
    Immutable input of one export operation.

    ``page`` only matters for JPEG exports: a positive page number, the
    ``"all"`` sentinel, or ``None`` for automatic detection. PDF exports
    always produce the whole document as one file.
    """

    form_fill_id: int
    format: ExportFormat
    document_name: str = ""
    page: PageParam = None

    def __post_init__(self) -> None:
        if isinstance(self.form_fill_id, bool) or not isinstance(self.form_fill_id, int):
            raise ValueError(f"form_fill_id must be an integer, got {self.form_fill_id!r}")
        if self.form_fill_id < 1:
            raise ValueError(f"form_fill_id must be positive, got {self.form_fill_id}")
        object.__setattr__(self, "format", ExportFormat.coerce(self.format))
        if self.format is ExportFormat.PDF:
            object.__setattr__(self, "page", None)

    @property
    def mime_type(self) -> str:
        return MIME_BY_FORMAT.get(self.format, DEFAULT_MIME_TYPE)

    @property
    def extension(self) -> str:
        return EXT_BY_FORMAT.get(self.format, "bin")


@dataclass(frozen=True)
class DownloadedFile:
    """A validated export payload sitting in the cache directory."""

    uri: str
    """Local path of the downloaded file."""

    mime_type: str
    """MIME type announced to storage and share targets (derived from the format)."""

    file_name: str
    """Final export file name (see ``naming.build_export_file_name``)."""

    format: ExportFormat = ExportFormat.PDF


@dataclass(frozen=True)
class DownloadOutcome:
    """
    Result of one download attempt against one candidate prefix.

    Exactly one outcome is produced per candidate; attempts are never retried
    on the same candidate.
    """

    kind: OutcomeKind
    candidate: str
    http_status: Optional[int] = None
    content_type: Optional[str] = None
    detail: Optional[str] = None
    downloaded: Optional[DownloadedFile] = None

    def __post_init__(self) -> None:
        if self.kind == "success" and self.downloaded is None:
            raise ValueError("DownloadOutcome(kind='success') requires a downloaded file")
        if self.kind != "success" and self.downloaded is not None:
            raise ValueError(
                f"DownloadOutcome(kind={self.kind!r}) must not carry a downloaded file"
            )

    @property
    def ok(self) -> bool:
        return self.kind == "success"

    @property
    def is_fatal(self) -> bool:
        """True when the candidate loop must stop without trying further prefixes."""

        return self.kind == "unauthorized"


@dataclass(frozen=True)
class StorageWriteResult:
    """Durable (or shareable cache) location of an exported file."""

    file_name: str
    uri: str


@dataclass(frozen=True)
class DirectoryGrant:
    """Answer of the folder picker on platforms requiring explicit grants."""

    granted: bool
    directory_uri: Optional[str] = None


@dataclass(frozen=True)
class ExportResult:
    """Terminal report of one orchestrated export operation."""

    status: ExportStatus
    message: str = ""
    files: Sequence[StorageWriteResult] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.status == "success"
