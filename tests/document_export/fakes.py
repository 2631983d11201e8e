"""Fakes shared by the document export tests.

HTTP is served by :class:`FakeBackend` through ``httpx.MockTransport``; the
UI collaborators (prompter, notifier, share sheet, picker, printer) are small
recording fakes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional

import httpx

from FormVox.DocumentExport.api.types import DirectoryGrant, ExportAction, FormatChoice

PDF_BYTES = b"%PDF-1.7\n%fake export\n%%EOF\n"
JPG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg\xff\xd9"

Responder = Callable[[httpx.Request], httpx.Response]


def pdf_response(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"Content-Type": "application/pdf"}, content=PDF_BYTES)


def jpg_response(request: httpx.Request) -> httpx.Response:
    page = request.url.params.get("page", "1")
    return httpx.Response(
        200, headers={"Content-Type": "image/jpeg"}, content=JPG_BYTES + page.encode()
    )


def status_response(status: int, content_type: str = "application/json") -> Responder:
    def _respond(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, headers={"Content-Type": content_type}, content=b"{}")

    return _respond


class FakeBackend:
    """Serves form fill details and export payloads by path; 404 otherwise."""

    def __init__(
        self,
        *,
        details: Optional[Dict[str, dict]] = None,
        exports: Optional[Dict[str, Responder]] = None,
    ) -> None:
        self.details = dict(details or {})
        self.exports = dict(exports or {})
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.exports:
            return self.exports[path](request)
        if path in self.details:
            return httpx.Response(200, json={"data": self.details[path]})
        return httpx.Response(404, json={"error": "Not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def export_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/export")]

    @property
    def export_paths(self) -> List[str]:
        return [r.url.path for r in self.export_requests]


class FakePrompter:
    def __init__(
        self,
        action: ExportAction = ExportAction.SAVE,
        multi_page: ExportAction = ExportAction.SAVE,
        format_choice: FormatChoice = FormatChoice.PDF,
    ) -> None:
        self.action = action
        self.multi_page = multi_page
        self.format_choice = format_choice
        self.calls: List[tuple] = []

    def ask_export_action(self, label: str) -> ExportAction:
        self.calls.append(("action", label))
        return self.action

    def ask_multi_page_save_only(self) -> ExportAction:
        self.calls.append(("multi-page",))
        return self.multi_page

    def ask_export_format(self) -> FormatChoice:
        self.calls.append(("format",))
        return self.format_choice


class RecordingNotifier:
    def __init__(self) -> None:
        self.alerts: List[tuple[str, str]] = []

    def alert(self, title: str, message: str) -> None:
        self.alerts.append((title, message))


class FakeShareTarget:
    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.shared: List[dict] = []

    def is_available(self) -> bool:
        return self.available

    def share(self, uri: str, *, mime_type: str, dialog_title: str, uti: Optional[str] = None) -> None:
        self.shared.append(
            {
                "uri": uri,
                "mime_type": mime_type,
                "dialog_title": dialog_title,
                "uti": uti,
                "content": Path(uri).read_bytes(),
            }
        )


class FakePicker:
    """Returns the queued grants in order; a dismissed picker once they run out."""

    def __init__(self, *directories: Optional[str]) -> None:
        self.queue = list(directories)
        self.calls = 0

    def request_directory(self) -> DirectoryGrant:
        self.calls += 1
        if not self.queue:
            return DirectoryGrant(granted=False)
        directory = self.queue.pop(0)
        if directory is None:
            return DirectoryGrant(granted=False)
        return DirectoryGrant(granted=True, directory_uri=directory)


class FakePrinter:
    def __init__(self) -> None:
        self.printed: List[bytes] = []

    def print_file(self, uri: str) -> None:
        self.printed.append(Path(uri).read_bytes())
