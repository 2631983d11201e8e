# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.client",
#   "purpose": "Authenticated httpx session, form fill lookups and page count resolution.",
#   "sections": [
#     {
#       "id": "build-http-client",
#       "name": "build_http_client",
#       "anchor": "function-build-http-client",
#       "kind": "function"
#     },
#     {
#       "id": "on-request",
#       "name": "_on_request",
#       "anchor": "function-on-request",
#       "kind": "function"
#     },
#     {
#       "id": "on-response",
#       "name": "_on_response",
#       "anchor": "function-on-response",
#       "kind": "function"
#     },
#     {
#       "id": "authenticatedsession",
#       "name": "AuthenticatedSession",
#       "anchor": "class-authenticatedsession",
#       "kind": "class"
#     },
#     {
#       "id": "extract-item",
#       "name": "extract_item",
#       "anchor": "function-extract-item",
#       "kind": "function"
#     },
#     {
#       "id": "formfilldetail",
#       "name": "FormFillDetail",
#       "anchor": "class-formfilldetail",
#       "kind": "class"
#     },
#     {
#       "id": "formfillsapi",
#       "name": "FormFillsApi",
#       "anchor": "class-formfillsapi",
#       "kind": "class"
#     },
#     {
#       "id": "to-number",
#       "name": "_to_number",
#       "anchor": "function-to-number",
#       "kind": "function"
#     },
#     {
#       "id": "resolve-page-count-from-payload",
#       "name": "resolve_page_count_from_payload",
#       "anchor": "function-resolve-page-count-from-payload",
#       "kind": "function"
#     },
#     {
#       "id": "resolve-form-fill-page-count",
#       "name": "resolve_form_fill_page_count",
#       "anchor": "function-resolve-form-fill-page-count",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Authenticated backend access for the export engine.

Architecture:
1. build_http_client(config) → httpx.Client (base URL, timeouts, event hooks)
2. AuthenticatedSession attaches ``Authorization: Bearer <token>`` read from
   the durable key-value store to every request
3. FormFillsApi.get_form_fill() walks the known detail routes on 404 and
   remembers which one answered; the answering URL doubles as the export
   path hint
"""

from __future__ import annotations

import logging
import math
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Sequence

import httpx

from FormVox.DocumentExport.api.exceptions import RouteNotFound, SessionInvalid
from FormVox.DocumentExport.config.models import DETAIL_BASE_PATHS, ExportConfig
from FormVox.DocumentExport.storage.kvstore import KeyValueStore

__all__ = [
    "AuthenticatedSession",
    "FormFillDetail",
    "FormFillsApi",
    "PAGE_COUNT_KEYS",
    "build_http_client",
    "extract_item",
    "resolve_form_fill_page_count",
    "resolve_page_count_from_payload",
]

logger = logging.getLogger(__name__)

PAGE_COUNT_KEYS: tuple[str, ...] = (
    "page_count",
    "pageCount",
    "pages_count",
    "pagesCount",
    "pages_total",
    "pagesTotal",
    "total_pages",
    "totalPages",
    "document_page_count",
    "documentPageCount",
)


# ============================================================================
# Client Construction
# ============================================================================


def build_http_client(
    config: ExportConfig, *, transport: Optional[httpx.BaseTransport] = None
) -> httpx.Client:
    """Build the backend ``httpx.Client`` from ``config.api``."""
    cfg = config.api

    client = httpx.Client(
        base_url=cfg.base_url,
        transport=transport,
        timeout=httpx.Timeout(cfg.timeout_read_s, connect=cfg.timeout_connect_s),
        headers={
            "User-Agent": cfg.user_agent,
            "Content-Type": "application/json",
        },
        follow_redirects=True,
    )
    client.event_hooks["request"] = [_on_request]
    client.event_hooks["response"] = [_on_response]

    logger.debug("HTTPX client created for %s", cfg.base_url)
    return client


def _on_request(request: httpx.Request) -> None:
    """Hook: capture request start time."""
    request.extensions["t0_perf"] = time.perf_counter()


def _on_response(response: httpx.Response) -> None:
    """Hook: emit a ``net.request`` debug record."""
    req = response.request
    t0 = req.extensions.get("t0_perf", time.perf_counter())
    elapsed_ms = (time.perf_counter() - t0) * 1000.0
    logger.debug(
        "net.request %s %s -> %s",
        req.method,
        req.url.path,
        response.status_code,
        extra={
            "extra_fields": {
                "method": req.method,
                "path": req.url.path,
                "status": response.status_code,
                "elapsed_ms": round(elapsed_ms, 1),
            }
        },
    )


# ============================================================================
# Authenticated Session
# ============================================================================


class AuthenticatedSession:
    """Bearer-token wrapper around an ``httpx.Client``."""

    def __init__(
        self,
        client: httpx.Client,
        token_store: KeyValueStore,
        *,
        token_key: str = "token",
        preview_timeout_s: float = 120.0,
    ) -> None:
        self.client = client
        self.token_store = token_store
        self.token_key = token_key
        self.preview_timeout_s = preview_timeout_s

    def bearer_token(self) -> Optional[str]:
        token = self.token_store.get(self.token_key)
        return token.strip() if token and token.strip() else None

    def require_token(self) -> str:
        token = self.bearer_token()
        if not token:
            raise SessionInvalid()
        return token

    def _headers(self, headers: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        merged = dict(headers or {})
        token = self.bearer_token()
        if token and "Authorization" not in merged:
            merged["Authorization"] = f"Bearer {token}"
        return merged

    def get(self, path: str, **kwargs: Any) -> httpx.Response:
        headers = self._headers(kwargs.pop("headers", None))
        return self.client.get(path, headers=headers, **kwargs)

    @contextmanager
    def stream(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Iterator[httpx.Response]:
        """Stream a response; ``timeout`` defaults to the preview-class timeout."""
        with self.client.stream(
            method,
            path,
            params=params,
            headers=self._headers(headers),
            timeout=timeout if timeout is not None else self.preview_timeout_s,
        ) as response:
            yield response

    def close(self) -> None:
        self.client.close()


# ============================================================================
# Form fill lookups
# ============================================================================


def extract_item(body: Any) -> Optional[dict[str, Any]]:
    """Unwrap ``{"data": ...}`` / ``{"item": ...}`` / ``{"result": ...}`` envelopes."""

    payload = body
    if isinstance(body, Mapping) and body.get("data"):
        payload = body["data"]
    if not isinstance(payload, Mapping):
        return None
    for key in ("item", "result", "data"):
        inner = payload.get(key)
        if isinstance(inner, Mapping) and inner:
            return dict(inner)
    return dict(payload)


@dataclass(frozen=True)
class FormFillDetail:
    """Detail representation of a form fill plus the route that served it."""

    form_fill_id: int
    request_url: str
    payload: Mapping[str, Any] = field(default_factory=dict)


class FormFillsApi:
    """Form fill detail lookups across historical route prefixes."""

    def __init__(
        self,
        session: AuthenticatedSession,
        *,
        detail_base_paths: Sequence[str] = DETAIL_BASE_PATHS,
    ) -> None:
        self.session = session
        self.detail_base_paths = tuple(detail_base_paths) or DETAIL_BASE_PATHS
        self._resolved_base: Optional[str] = None

    def _ordered_bases(self) -> list[str]:
        bases = list(self.detail_base_paths)
        if self._resolved_base in bases:
            bases.remove(self._resolved_base)
            bases.insert(0, self._resolved_base)
        return bases

    def get_form_fill(self, form_fill_id: int) -> FormFillDetail:
        """
        Fetch the detail of ``form_fill_id``.

        Raises:
            SessionInvalid: On 401/403
            RouteNotFound: When every detail route answered 404
            httpx.HTTPError: On transport errors or other non-2xx statuses
        """
        for base in self._ordered_bases():
            url = f"{base.rstrip('/')}/{form_fill_id}"
            response = self.session.get(url)
            if response.status_code == 404:
                continue
            if response.status_code in (401, 403):
                raise SessionInvalid(http_status=response.status_code)
            response.raise_for_status()

            self._resolved_base = base
            try:
                body = response.json()
            except ValueError:
                body = {}
            return FormFillDetail(
                form_fill_id=form_fill_id,
                request_url=url,
                payload=extract_item(body) or {},
            )

        raise RouteNotFound("No form fill route available (HTTP 404).", http_status=404)


def _to_number(value: Any, fallback: Optional[float] = None) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return fallback
    return numeric if math.isfinite(numeric) else fallback


def resolve_page_count_from_payload(payload: Optional[Mapping[str, Any]]) -> int:
    """Largest page count advertised by ``payload`` (metadata keys or field values), at least 1."""

    payload = payload or {}
    values = payload.get("values")
    max_page_from_values = 1
    if isinstance(values, list):
        for item in values:
            if not isinstance(item, Mapping):
                continue
            raw = item.get("page_number", item.get("pageNumber"))
            page_number = _to_number(raw, 1) or 1
            max_page_from_values = max(max_page_from_values, math.floor(page_number))

    best = 1
    for raw in [*(payload.get(key) for key in PAGE_COUNT_KEYS), max_page_from_values]:
        candidate = _to_number(raw, 0)
        if candidate is None or candidate <= 0:
            continue
        best = max(best, math.floor(candidate))
    return max(1, best)


def resolve_form_fill_page_count(api: FormFillsApi, form_fill_id: int) -> int:
    """Total page count of a form fill; 1 when the lookup fails."""

    try:
        detail = api.get_form_fill(form_fill_id)
    except Exception as exc:  # pylint: disable=broad-except
        logger.debug(
            "Page count lookup failed, assuming a single page",
            extra={"extra_fields": {"form_fill_id": form_fill_id, "error": str(exc)}},
        )
        return 1
    return resolve_page_count_from_payload(detail.payload)
