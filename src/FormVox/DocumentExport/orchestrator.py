# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.orchestrator",
#   "purpose": "Export operations: candidate loop, actions, multi-page flow and progress.",
#   "sections": [
#     {
#       "id": "coerce-form-fill-id",
#       "name": "coerce_form_fill_id",
#       "anchor": "function-coerce-form-fill-id",
#       "kind": "function"
#     },
#     {
#       "id": "error-from-outcome",
#       "name": "error_from_outcome",
#       "anchor": "function-error-from-outcome",
#       "kind": "function"
#     },
#     {
#       "id": "documentexporter",
#       "name": "DocumentExporter",
#       "anchor": "class-documentexporter",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Export Orchestrator

Public entry points used by the calling screens:

- :meth:`DocumentExporter.export_pdf`
- :meth:`DocumentExporter.export_jpg` (``page`` = number, ``"all"`` or ``None``)
- :meth:`DocumentExporter.export_with_choice` (asks for the format first)
- :meth:`DocumentExporter.print_document`
- observable ``is_exporting`` / ``export_progress``

Every operation runs under the single-flight :class:`ExportStateMachine`:
a call made while another export is running returns ``None`` without any
network or storage work. Within an operation, network and storage calls are
strictly sequential; multi-page JPEG exports finalize page ``i`` before
downloading page ``i+1`` and stop at the first failure, leaving the pages
already saved in place.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, List, Optional, Sequence

from FormVox.DocumentExport.api.exceptions import (
    ContentTypeMismatch,
    ExportError,
    ExportNetworkError,
    InvalidExportRequest,
    RouteNotFound,
    SessionInvalid,
    StorageUnavailable,
    TransientServiceError,
)
from FormVox.DocumentExport.api.types import (
    ALL_PAGES,
    DownloadedFile,
    DownloadOutcome,
    ExportAction,
    ExportFormat,
    ExportRequest,
    ExportResult,
    FormatChoice,
    PageParam,
    StorageWriteResult,
)
from FormVox.DocumentExport.cleanup import discard_file
from FormVox.DocumentExport.client import FormFillsApi, resolve_form_fill_page_count
from FormVox.DocumentExport.download import ExportDownloader
from FormVox.DocumentExport.errors import log_export_failure, user_message_for
from FormVox.DocumentExport.naming import normalize_page_param
from FormVox.DocumentExport.paths import EXPORT_BASE_PATHS, resolve_candidate_paths
from FormVox.DocumentExport.prompts import Notifier, Printer, UserPrompter
from FormVox.DocumentExport.state import ExportSnapshot, ExportStateMachine
from FormVox.DocumentExport.storage.writer import StorageWriter

__all__ = ["DocumentExporter", "coerce_form_fill_id", "error_from_outcome"]

LOGGER = logging.getLogger(__name__)

TITLE_DONE = "Export complete"
TITLE_ERROR = "Error"
PDF_UTI = "com.adobe.pdf"


def coerce_form_fill_id(value: Any) -> int:
    """Return ``value`` as a positive integer id or raise :class:`InvalidExportRequest`."""

    if isinstance(value, bool):
        raise InvalidExportRequest()
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        raise InvalidExportRequest() from None
    if not math.isfinite(numeric) or numeric < 1 or numeric != math.floor(numeric):
        raise InvalidExportRequest()
    return int(numeric)


def error_from_outcome(outcome: Optional[DownloadOutcome]) -> ExportError:
    """Operation-level error for the last failed candidate."""

    if outcome is None:
        return ExportNetworkError("No export route available.")
    if outcome.kind == "unauthorized":
        return SessionInvalid(http_status=outcome.http_status)
    if outcome.kind == "content-type-mismatch":
        return ContentTypeMismatch(outcome.detail, http_status=outcome.http_status)
    if outcome.kind in ("server-or-client-error", "not-found"):
        return TransientServiceError(outcome.detail, http_status=outcome.http_status)
    return ExportNetworkError(outcome.detail, http_status=outcome.http_status)


class DocumentExporter:
    """Turns completed form fills into saved or shared PDF/JPEG files."""

    def __init__(
        self,
        *,
        api: FormFillsApi,
        downloader: ExportDownloader,
        writer: StorageWriter,
        prompter: UserPrompter,
        notifier: Notifier,
        printer: Optional[Printer] = None,
        baseline_paths: Sequence[str] = EXPORT_BASE_PATHS,
        derive_path_hint: bool = True,
        state: Optional[ExportStateMachine] = None,
    ) -> None:
        self.api = api
        self.downloader = downloader
        self.writer = writer
        self.prompter = prompter
        self.notifier = notifier
        self.printer = printer
        self.baseline_paths = tuple(baseline_paths) or EXPORT_BASE_PATHS
        self.derive_path_hint = derive_path_hint
        self.state = state or ExportStateMachine()

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------
    @property
    def is_exporting(self) -> bool:
        return self.state.is_exporting

    @property
    def export_progress(self) -> str:
        return self.state.progress

    def subscribe(self, callback: Callable[[ExportSnapshot], None]) -> Callable[[], None]:
        return self.state.subscribe(callback)

    # ------------------------------------------------------------------
    # Candidate loop
    # ------------------------------------------------------------------
    def resolve_candidates(self, form_fill_id: int) -> List[str]:
        lookup = self.api.get_form_fill if self.derive_path_hint else None
        return resolve_candidate_paths(form_fill_id, lookup, baseline=self.baseline_paths)

    def _prepare(self, form_fill_id: int) -> List[str]:
        """Check session and cache, clear stale cache files, then resolve the candidate routes."""

        self.downloader.session.require_token()
        try:
            self.downloader.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable("Cache unavailable on this device.") from exc
        self.downloader.sweep_stale_exports()
        return self.resolve_candidates(form_fill_id)

    def download_document(
        self,
        form_fill_id: Any,
        format: ExportFormat | str,
        document_name: str = "",
        page: PageParam = None,
        *,
        candidates: Optional[Sequence[str]] = None,
    ) -> DownloadedFile:
        """
        Try each candidate route in order until one yields the document.

        Stops immediately on success or on an unauthorized answer. When every
        candidate answered 404 the failure is :class:`RouteNotFound`;
        otherwise the last failed candidate decides the error.

        Raises:
            ExportError: When no candidate produced the document
        """

        export_id = coerce_form_fill_id(form_fill_id)
        fmt = ExportFormat.coerce(format)
        if candidates is None:
            candidates = self._prepare(export_id)

        last_failure: Optional[DownloadOutcome] = None
        not_found = 0
        for attempt, candidate in enumerate(candidates):
            destination = self.downloader.temp_destination(export_id, fmt, attempt)
            outcome = self.downloader.download(
                candidate, export_id, fmt, page, destination, document_name=document_name
            )
            if outcome.ok and outcome.downloaded is not None:
                return outcome.downloaded
            if outcome.is_fatal:
                raise SessionInvalid(http_status=outcome.http_status)
            if outcome.kind == "not-found":
                not_found += 1
            last_failure = outcome

        if candidates and not_found == len(candidates):
            raise RouteNotFound(http_status=404)
        raise error_from_outcome(last_failure)

    # ------------------------------------------------------------------
    # Operation plumbing
    # ------------------------------------------------------------------
    def _run(
        self,
        operation: str,
        fallback: str,
        body: Callable[[], ExportResult],
        *,
        progress: str,
        context: Optional[dict[str, Any]] = None,
    ) -> Optional[ExportResult]:
        if not self.state.try_begin(progress):
            return None
        try:
            return body()
        except Exception as exc:  # pylint: disable=broad-except
            log_export_failure(LOGGER, exc, operation=operation, **(context or {}))
            message = user_message_for(exc, fallback)
            self.notifier.alert(TITLE_ERROR, message)
            return ExportResult("error", message)
        finally:
            self.state.finish()

    def _release(self, downloaded: DownloadedFile, saved: StorageWriteResult) -> None:
        if saved.uri != downloaded.uri:
            discard_file(downloaded.uri, reason="saved", observer=self.downloader.cleanup_observer)

    def _save_one(self, downloaded: DownloadedFile) -> StorageWriteResult:
        saved = self.writer.save(downloaded)
        self._release(downloaded, saved)
        return saved

    def _finalize_single(
        self,
        downloaded: DownloadedFile,
        action: ExportAction,
        *,
        share_title: str,
        uti: Optional[str] = None,
    ) -> ExportResult:
        if action is ExportAction.SAVE:
            self.state.set_progress("Saving to device...")
            saved = self._save_one(downloaded)
            message = self.writer.success_message(saved)
            self.notifier.alert(TITLE_DONE, message)
            return ExportResult("success", message, (saved,))

        if action is ExportAction.SHARE:
            self.state.set_progress("Opening share sheet...")
            self.writer.share(downloaded, share_title, uti=uti)
            return ExportResult(
                "success", "", (StorageWriteResult(downloaded.file_name, downloaded.uri),)
            )

        discard_file(downloaded.uri, reason="cancelled", observer=self.downloader.cleanup_observer)
        return ExportResult("cancelled")

    @staticmethod
    def _request(form_fill_id: Any, fmt: ExportFormat, name: str, page: PageParam = None) -> ExportRequest:
        return ExportRequest(coerce_form_fill_id(form_fill_id), fmt, name or "", page)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------
    def export_pdf(self, form_fill_id: Any, document_name: str = "") -> Optional[ExportResult]:
        """Download the PDF, then save or share it as the user chooses."""

        def body() -> ExportResult:
            request = self._request(form_fill_id, ExportFormat.PDF, document_name)
            candidates = self._prepare(request.form_fill_id)
            self.state.downloading(1, 1, "Downloading PDF...")
            downloaded = self.download_document(
                request.form_fill_id, request.format, request.document_name, candidates=candidates
            )
            self.state.finalizing("Choosing action...")
            action = self.prompter.ask_export_action("PDF")
            return self._finalize_single(
                downloaded, action, share_title="Export PDF document", uti=PDF_UTI
            )

        return self._run(
            "export_pdf",
            "Could not export the PDF.",
            body,
            progress="Downloading PDF...",
            context={"form_fill_id": form_fill_id, "format": "pdf"},
        )

    def export_jpg(
        self,
        form_fill_id: Any,
        document_name: str = "",
        page: PageParam = None,
        *,
        share_pages_individually: bool = False,
    ) -> Optional[ExportResult]:
        """
        Export JPEG page images.

        ``page=None`` exports every page of a multi-page document (or page 1 of
        a single-page one). Multi-page documents only offer saving unless
        ``share_pages_individually`` asks for a share sheet per page.
        """

        def body() -> ExportResult:
            request = self._request(form_fill_id, ExportFormat.JPG, document_name, page)
            export_id = request.form_fill_id
            page_param = normalize_page_param(request.page)

            total_pages = resolve_form_fill_page_count(self.api, export_id)
            if not page_param:
                page_param = ALL_PAGES if total_pages > 1 else "1"
            save_only = total_pages > 1 and not share_pages_individually

            if page_param == ALL_PAGES:
                self.state.set_progress("Choosing action...")
                action = (
                    self.prompter.ask_multi_page_save_only()
                    if save_only
                    else self.prompter.ask_export_action(f"JPG ({total_pages} pages)")
                )
                if action is ExportAction.CANCEL:
                    return ExportResult("cancelled")
                candidates = self._prepare(export_id)
                return self._export_all_pages(request, total_pages, action, candidates)

            candidates = self._prepare(export_id)
            self.state.downloading(1, 1, "Downloading JPG image...")
            downloaded = self.download_document(
                export_id, ExportFormat.JPG, request.document_name, page_param, candidates=candidates
            )
            self.state.finalizing("Choosing action...")
            action = (
                self.prompter.ask_multi_page_save_only()
                if save_only
                else self.prompter.ask_export_action("JPG")
            )
            return self._finalize_single(downloaded, action, share_title="Export JPG image")

        return self._run(
            "export_jpg",
            "Could not export the JPG image.",
            body,
            progress="Preparing JPG export...",
            context={"form_fill_id": form_fill_id, "format": "jpg", "page": page},
        )

    def _export_all_pages(
        self,
        request: ExportRequest,
        total_pages: int,
        action: ExportAction,
        candidates: Sequence[str],
    ) -> ExportResult:
        results: List[StorageWriteResult] = []
        for index in range(1, total_pages + 1):
            self.state.downloading(index, total_pages, f"Downloading page {index}/{total_pages}...")
            downloaded = self.download_document(
                request.form_fill_id,
                ExportFormat.JPG,
                request.document_name,
                index,
                candidates=candidates,
            )
            if action is ExportAction.SAVE:
                self.state.finalizing(f"Saving page {index}/{total_pages}...")
                results.append(self._save_one(downloaded))
            else:
                self.state.finalizing(f"Sharing page {index}/{total_pages}...")
                self.writer.share(
                    downloaded, f"Export JPG image (Page {index}/{total_pages})"
                )
                results.append(StorageWriteResult(downloaded.file_name, downloaded.uri))

        if action is ExportAction.SAVE:
            message = f"{total_pages} JPG images saved on the device."
            self.notifier.alert(TITLE_DONE, message)
            return ExportResult("success", message, tuple(results))
        return ExportResult("success", "", tuple(results))

    def export_with_choice(self, form_fill_id: Any, document_name: str = "") -> Optional[ExportResult]:
        """Ask for the format, then delegate to :meth:`export_pdf` / :meth:`export_jpg`."""

        if self.is_exporting:
            return None
        choice = self.prompter.ask_export_format()
        if choice is FormatChoice.PDF:
            return self.export_pdf(form_fill_id, document_name)
        if choice is FormatChoice.JPG:
            return self.export_jpg(form_fill_id, document_name)
        return ExportResult("cancelled")

    def print_document(self, form_fill_id: Any, document_name: str = "") -> Optional[ExportResult]:
        """Download the PDF and hand it to the print collaborator."""

        def body() -> ExportResult:
            request = self._request(form_fill_id, ExportFormat.PDF, document_name)
            candidates = self._prepare(request.form_fill_id)
            self.state.downloading(1, 1, "Downloading document...")
            downloaded = self.download_document(
                request.form_fill_id, request.format, request.document_name, candidates=candidates
            )
            self.state.finalizing("Opening print dialog...")
            if self.printer is None:
                raise ExportError("Printing is unavailable on this device.")
            self.printer.print_file(downloaded.uri)
            return ExportResult(
                "success", "", (StorageWriteResult(downloaded.file_name, downloaded.uri),)
            )

        return self._run(
            "print_document",
            "Could not print this document.",
            body,
            progress="Downloading document...",
            context={"form_fill_id": form_fill_id, "format": "pdf"},
        )
