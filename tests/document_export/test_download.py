"""Single-candidate export downloads against ``httpx.MockTransport``."""

from __future__ import annotations

import logging

import httpx
import pytest

from FormVox.DocumentExport.bootstrap import build_session
from FormVox.DocumentExport.download import (
    ExportDownloader,
    allocate_temp_destination,
    build_export_url,
    classify_status,
    is_compatible_content_type,
)
from FormVox.DocumentExport.io_utils import SizeMismatchError, atomic_write_stream
from tests.document_export.fakes import (
    JPG_BYTES,
    PDF_BYTES,
    FakeBackend,
    jpg_response,
    pdf_response,
    status_response,
)


@pytest.mark.parametrize(
    "content_type, fmt, expected",
    [
        ("application/pdf", "pdf", True),
        ("application/pdf; charset=binary", "pdf", True),
        ("application/octet-stream", "pdf", True),
        ("", "pdf", True),
        (None, "jpg", True),
        ("image/jpeg", "jpg", True),
        ("image/jpg", "jpg", True),
        ("image/png", "jpg", True),
        ("application/octet-stream", "jpg", True),
        ("image/jpeg", "pdf", False),
        ("application/pdf", "jpg", False),
        ("text/html; charset=utf-8", "pdf", False),
        ("application/json", "pdf", False),
        ("application/json", "jpg", False),
        ("text/plain", "jpg", False),
    ],
)
def test_is_compatible_content_type(content_type, fmt, expected):
    assert is_compatible_content_type(content_type, fmt) is expected


@pytest.mark.parametrize(
    "status, kind",
    [
        (200, "success"),
        (204, "success"),
        (401, "unauthorized"),
        (403, "unauthorized"),
        (404, "not-found"),
        (405, "server-or-client-error"),
        (409, "server-or-client-error"),
        (500, "server-or-client-error"),
        (503, "server-or-client-error"),
        (504, "server-or-client-error"),
        (400, "network-error"),
        (429, "network-error"),
        (505, "network-error"),
    ],
)
def test_classify_status(status, kind):
    assert classify_status(status) == kind


def test_build_export_url_and_temp_destination(tmp_path):
    assert build_export_url("/form-fills/", 42) == "/form-fills/42/export"
    path = allocate_temp_destination(tmp_path, 42, 3, "pdf")
    assert path.parent == tmp_path
    assert path.name.startswith("form-fill-42-")
    assert path.name.endswith("-3.pdf")


@pytest.fixture
def make_downloader(export_config, token_store, tmp_path):
    def _make(backend: FakeBackend, observer=None) -> ExportDownloader:
        session = build_session(export_config, token_store, transport=backend.transport)
        return ExportDownloader(session, tmp_path / "cache", cleanup_observer=observer)

    return _make


def test_success_streams_and_promotes_to_export_name(make_downloader, tmp_path):
    backend = FakeBackend(exports={"/form-fills/42/export": pdf_response})
    downloader = make_downloader(backend)
    tmp = downloader.temp_destination(42, "pdf", 0)

    outcome = downloader.download("/form-fills", 42, "pdf", None, tmp, document_name="Rapport Été")

    assert outcome.ok
    assert outcome.downloaded.file_name == "Rapport_Ete_rempli.pdf"
    assert outcome.downloaded.mime_type == "application/pdf"
    final = tmp_path / "cache" / "Rapport_Ete_rempli.pdf"
    assert outcome.downloaded.uri == str(final)
    assert final.read_bytes() == PDF_BYTES
    assert not tmp.exists()

    request = backend.export_requests[0]
    assert request.url.params["format"] == "pdf"
    assert "page" not in request.url.params
    assert request.headers["Accept"] == "application/pdf"
    assert request.headers["Authorization"] == "Bearer secret-token"


def test_jpg_page_is_sent_and_named(make_downloader):
    backend = FakeBackend(exports={"/form-fills/42/export": jpg_response})
    downloader = make_downloader(backend)

    outcome = downloader.download(
        "/form-fills", 42, "jpg", 3, downloader.temp_destination(42, "jpg", 0), document_name="Plan"
    )

    assert outcome.ok
    assert outcome.downloaded.file_name == "Plan_page_3_rempli.jpg"
    assert backend.export_requests[0].url.params["page"] == "3"
    assert backend.export_requests[0].headers["Accept"] == "image/jpeg"
    with open(outcome.downloaded.uri, "rb") as handle:
        assert handle.read() == JPG_BYTES + b"3"


def test_existing_export_file_is_replaced(make_downloader, tmp_path):
    cache = tmp_path / "cache"
    cache.mkdir()
    (cache / "document_rempli.pdf").write_bytes(b"stale")
    seen = []
    downloader = make_downloader(
        FakeBackend(exports={"/form-fills/1/export": pdf_response}), observer=seen.append
    )

    outcome = downloader.download("/form-fills", 1, "pdf", None, downloader.temp_destination(1, "pdf", 0))

    assert outcome.ok
    assert (cache / "document_rempli.pdf").read_bytes() == PDF_BYTES
    assert any(attempt.reason == "superseded" for attempt in seen)


def test_html_error_page_is_a_content_type_mismatch(make_downloader, tmp_path, caplog):
    backend = FakeBackend(
        exports={"/form-fills/42/export": status_response(200, "text/html; charset=utf-8")}
    )
    seen = []
    downloader = make_downloader(backend, observer=seen.append)
    tmp = downloader.temp_destination(42, "pdf", 0)
    caplog.set_level(logging.WARNING, logger="FormVox.DocumentExport.download")

    outcome = downloader.download("/form-fills", 42, "pdf", None, tmp)

    assert outcome.kind == "content-type-mismatch"
    assert outcome.downloaded is None
    assert not outcome.is_fatal
    assert "text/html" in outcome.detail
    assert not tmp.exists()
    assert [a.reason for a in seen] == ["content-type-mismatch"]
    assert not list((tmp_path / "cache").glob("*_rempli.pdf"))
    assert "text/html" in caplog.text


@pytest.mark.parametrize(
    "status, kind, fatal",
    [
        (401, "unauthorized", True),
        (403, "unauthorized", True),
        (404, "not-found", False),
        (503, "server-or-client-error", False),
        (418, "network-error", False),
    ],
)
def test_http_failures_are_classified(make_downloader, status, kind, fatal):
    downloader = make_downloader(FakeBackend(exports={"/form-fills/9/export": status_response(status)}))

    outcome = downloader.download("/form-fills", 9, "pdf", None, downloader.temp_destination(9, "pdf", 0))

    assert outcome.kind == kind
    assert outcome.is_fatal is fatal
    assert outcome.http_status == status
    assert outcome.detail == f"Download failed (HTTP {status})."


def test_transport_error_is_a_network_error(make_downloader):
    def boom(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    seen = []
    downloader = make_downloader(FakeBackend(exports={"/form-fills/9/export": boom}), observer=seen.append)

    outcome = downloader.download("/form-fills", 9, "pdf", None, downloader.temp_destination(9, "pdf", 0))

    assert outcome.kind == "network-error"
    assert outcome.http_status is None
    assert "timed out" in outcome.detail
    assert [a.reason for a in seen] == ["transport-error"]


def test_atomic_write_stream_rejects_short_payload(tmp_path):
    target = tmp_path / "out.pdf"

    with pytest.raises(SizeMismatchError):
        atomic_write_stream(str(target), iter([b"abc"]), expected_len=10)

    assert not target.exists()
    assert list(tmp_path.iterdir()) == []
