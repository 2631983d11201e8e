# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.download",
#   "purpose": "Streamed per-candidate export downloads classified into outcomes.",
#   "sections": [
#     {
#       "id": "is-compatible-content-type",
#       "name": "is_compatible_content_type",
#       "anchor": "function-is-compatible-content-type",
#       "kind": "function"
#     },
#     {
#       "id": "classify-status",
#       "name": "classify_status",
#       "anchor": "function-classify-status",
#       "kind": "function"
#     },
#     {
#       "id": "build-export-url",
#       "name": "build_export_url",
#       "anchor": "function-build-export-url",
#       "kind": "function"
#     },
#     {
#       "id": "allocate-temp-destination",
#       "name": "allocate_temp_destination",
#       "anchor": "function-allocate-temp-destination",
#       "kind": "function"
#     },
#     {
#       "id": "exportdownloader",
#       "name": "ExportDownloader",
#       "anchor": "class-exportdownloader",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Export Downloader

Performs one authenticated streaming download against one candidate prefix
and classifies the result as a :class:`DownloadOutcome`:

==========================  =================================================
Response                    Outcome kind
==========================  =================================================
2xx, compatible type        ``success`` (payload promoted to its export name)
2xx, HTML/JSON/text body    ``content-type-mismatch`` (next candidate)
401 / 403                   ``unauthorized`` (fatal for the candidate loop)
404                         ``not-found`` (next candidate)
405/409/500-504             ``server-or-client-error`` (next candidate)
other status, transport     ``network-error`` (next candidate)
==========================  =================================================

The downloader never loops over candidates itself; the orchestrator owns the
loop. Temporary payloads that are rejected are discarded best-effort.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional, Union

import httpx

from FormVox.DocumentExport.api.types import (
    DEFAULT_MIME_TYPE,
    EXT_BY_FORMAT,
    MIME_BY_FORMAT,
    DownloadedFile,
    DownloadOutcome,
    ExportFormat,
    OutcomeKind,
)
from FormVox.DocumentExport.cleanup import CleanupObserver, discard_file
from FormVox.DocumentExport.client import AuthenticatedSession
from FormVox.DocumentExport.io_utils import SizeMismatchError, atomic_write_stream, promote_file
from FormVox.DocumentExport.naming import (
    EXPORT_NAME_SUFFIX,
    build_export_file_name,
    normalize_page_param,
)

__all__ = [
    "ExportDownloader",
    "RETRYABLE_STATUSES",
    "allocate_temp_destination",
    "build_export_url",
    "classify_status",
    "is_compatible_content_type",
]

LOGGER = logging.getLogger(__name__)

RETRYABLE_STATUSES = frozenset({405, 409, 500, 501, 502, 503, 504})

_PDF_TYPES = ("application/pdf", "application/octet-stream")
_JPG_TYPES = ("image/jpeg", "image/jpg", "image/png", "application/octet-stream")


def is_compatible_content_type(content_type: Optional[str], format: Union[ExportFormat, str]) -> bool:
    """
    True when ``content_type`` can carry a document of ``format``.

    JSON, HTML and any ``text/*`` body is an error page returned with a 2xx
    status and is always rejected. A missing header is accepted.
    """

    normalized = str(content_type or "").strip().lower()
    if not normalized:
        return True
    if (
        "application/json" in normalized
        or "text/html" in normalized
        or normalized.startswith("text/")
    ):
        return False

    fmt = str(getattr(format, "value", format) or "").lower()
    if fmt == ExportFormat.PDF.value:
        return any(token in normalized for token in _PDF_TYPES)
    if fmt == ExportFormat.JPG.value:
        return any(token in normalized for token in _JPG_TYPES)
    return True


def classify_status(status: int) -> OutcomeKind:
    if 200 <= status < 300:
        return "success"
    if status in (401, 403):
        return "unauthorized"
    if status == 404:
        return "not-found"
    if status in RETRYABLE_STATUSES:
        return "server-or-client-error"
    return "network-error"


def build_export_url(candidate: str, form_fill_id: int) -> str:
    return f"{candidate.rstrip('/')}/{form_fill_id}/export"


def allocate_temp_destination(
    cache_dir: Union[str, Path], form_fill_id: int, attempt: int, extension: str
) -> Path:
    """Unique temporary path ``form-fill-{id}-{epoch_ms}-{attempt}.{ext}`` in ``cache_dir``."""

    stamp = int(time.time() * 1000)
    return Path(cache_dir) / f"form-fill-{form_fill_id}-{stamp}-{attempt}.{extension}"


class ExportDownloader:
    """Streams export payloads from one candidate route at a time."""

    def __init__(
        self,
        session: AuthenticatedSession,
        cache_dir: Union[str, Path],
        *,
        cleanup_observer: Optional[CleanupObserver] = None,
        chunk_size: int = 1 << 16,
        verify_content_length: bool = True,
    ) -> None:
        self.session = session
        self.cache_dir = Path(cache_dir).expanduser()
        self.cleanup_observer = cleanup_observer
        self.chunk_size = chunk_size
        self.verify_content_length = verify_content_length

    def _discard(self, path: Union[str, Path, None], reason: str) -> None:
        discard_file(path, reason=reason, observer=self.cleanup_observer)

    def download(
        self,
        candidate: str,
        form_fill_id: int,
        format: Union[ExportFormat, str],
        page: Union[int, str, None],
        destination_tmp: Union[str, Path],
        *,
        document_name: str = "",
    ) -> DownloadOutcome:
        """
        Download ``{candidate}/{form_fill_id}/export`` to ``destination_tmp``.

        On success the payload is promoted to ``{cache_dir}/{export file name}``
        and returned as the outcome's :class:`DownloadedFile`.
        """

        fmt = ExportFormat.coerce(format)
        page_param = normalize_page_param(page) if fmt is ExportFormat.JPG else ""
        mime_type = MIME_BY_FORMAT.get(fmt, DEFAULT_MIME_TYPE)
        params = {"format": fmt.value}
        if page_param:
            params["page"] = page_param

        url = build_export_url(candidate, form_fill_id)
        destination = Path(destination_tmp)
        log_fields = {
            "candidate": candidate,
            "form_fill_id": form_fill_id,
            "format": fmt.value,
            "page": page_param or None,
        }

        http_status: Optional[int] = None
        content_type = ""
        try:
            with self.session.stream(
                "GET", url, params=params, headers={"Accept": mime_type}
            ) as resp:
                http_status = resp.status_code
                content_type = resp.headers.get("Content-Type", "").strip()
                kind = classify_status(http_status)

                if kind != "success":
                    self._discard(destination, f"http-{http_status}")
                    LOGGER.info(
                        "Export candidate answered HTTP %s",
                        http_status,
                        extra={"extra_fields": {**log_fields, "http_status": http_status}},
                    )
                    return DownloadOutcome(
                        kind=kind,
                        candidate=candidate,
                        http_status=http_status,
                        content_type=content_type or None,
                        detail=f"Download failed (HTTP {http_status}).",
                    )

                if not is_compatible_content_type(content_type, fmt):
                    self._discard(destination, "content-type-mismatch")
                    LOGGER.warning(
                        "Export candidate returned %s for a %s request",
                        content_type,
                        fmt.value,
                        extra={"extra_fields": {**log_fields, "content_type": content_type}},
                    )
                    return DownloadOutcome(
                        kind="content-type-mismatch",
                        candidate=candidate,
                        http_status=http_status,
                        content_type=content_type,
                        detail=f"Invalid export response ({content_type or 'unknown content-type'}).",
                    )

                cl = resp.headers.get("Content-Length")
                expected_len = int(cl) if (cl and cl.isdigit()) else None
                if resp.headers.get("Content-Encoding"):
                    expected_len = None
                bytes_written = atomic_write_stream(
                    str(destination),
                    resp.iter_bytes(chunk_size=self.chunk_size),
                    expected_len=expected_len if self.verify_content_length else None,
                )
        except SizeMismatchError as exc:
            self._discard(destination, "size-mismatch")
            return DownloadOutcome(
                kind="network-error",
                candidate=candidate,
                http_status=http_status,
                content_type=content_type or None,
                detail=str(exc),
            )
        except (httpx.HTTPError, OSError) as exc:
            self._discard(destination, "transport-error")
            LOGGER.info(
                "Export candidate failed: %s",
                exc,
                extra={"extra_fields": {**log_fields, "error": type(exc).__name__}},
            )
            return DownloadOutcome(
                kind="network-error",
                candidate=candidate,
                http_status=http_status,
                detail=str(exc) or type(exc).__name__,
            )

        file_name = build_export_file_name(document_name, fmt, page_param)
        final_path = self.cache_dir / file_name
        self._discard(final_path, "superseded")
        try:
            promote_file(str(destination), str(final_path))
        except OSError as exc:
            self._discard(destination, "promote-failed")
            return DownloadOutcome(
                kind="network-error",
                candidate=candidate,
                http_status=http_status,
                detail=f"Could not finalize download: {exc}",
            )

        LOGGER.info(
            "Export downloaded",
            extra={"extra_fields": {**log_fields, "bytes": bytes_written, "file_name": file_name}},
        )
        return DownloadOutcome(
            kind="success",
            candidate=candidate,
            http_status=http_status,
            content_type=content_type or None,
            downloaded=DownloadedFile(
                uri=str(final_path),
                mime_type=mime_type,
                file_name=file_name,
                format=fmt,
            ),
        )

    def temp_destination(self, form_fill_id: int, format: Union[ExportFormat, str], attempt: int) -> Path:
        fmt = ExportFormat.coerce(format)
        return allocate_temp_destination(
            self.cache_dir, form_fill_id, attempt, EXT_BY_FORMAT.get(fmt, "bin")
        )

    def sweep_stale_exports(self) -> int:
        """Discard export payloads left in the cache by earlier operations.

        Shared and printed files stay in the cache until the next operation
        starts; so do temporary files of an interrupted download.

        Returns:
            Number of files removed.
        """
        removed = 0
        if not self.cache_dir.is_dir():
            return removed
        for pattern in (f"*{EXPORT_NAME_SUFFIX}.*", "form-fill-*-*.*"):
            for path in self.cache_dir.glob(pattern):
                if not path.is_file():
                    continue
                attempt = discard_file(path, reason="stale", observer=self.cleanup_observer)
                if attempt is not None and attempt.removed:
                    removed += 1
        if removed:
            LOGGER.debug(
                "Removed %d stale export files",
                removed,
                extra={"extra_fields": {"cache_dir": str(self.cache_dir), "removed": removed}},
            )
        return removed
