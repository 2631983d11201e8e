# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.errors",
#   "purpose": "Actionable error messages and structured failure logging for exports.",
#   "sections": [
#     {
#       "id": "get-actionable-error-message",
#       "name": "get_actionable_error_message",
#       "anchor": "function-get-actionable-error-message",
#       "kind": "function"
#     },
#     {
#       "id": "backend-message",
#       "name": "_backend_message",
#       "anchor": "function-backend-message",
#       "kind": "function"
#     },
#     {
#       "id": "user-message-for",
#       "name": "user_message_for",
#       "anchor": "function-user-message-for",
#       "kind": "function"
#     },
#     {
#       "id": "log-export-failure",
#       "name": "log_export_failure",
#       "anchor": "function-log-export-failure",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Export error messaging helpers.

Responsibilities
----------------
- Translate :class:`ExportError` kinds (and HTTP statuses) into a user-facing
  message plus a remediation hint via :func:`get_actionable_error_message`.
- Pick the single message shown to the user for any exception via
  :func:`user_message_for`, preferring backend-provided ``error``/``message``
  bodies when an ``httpx.HTTPStatusError`` carries one.
- Centralise structured failure logging through :func:`log_export_failure`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from FormVox.DocumentExport.api.exceptions import ExportError

__all__ = (
    "get_actionable_error_message",
    "log_export_failure",
    "user_message_for",
)

LOGGER = logging.getLogger(__name__)


def get_actionable_error_message(
    kind: Optional[str],
    http_status: Optional[int] = None,
) -> tuple[str, Optional[str]]:
    """Return ``(message, suggestion)`` for an error kind / HTTP status.

    Examples:
        >>> msg, hint = get_actionable_error_message("route-not-found")
        >>> msg
        'Export route not found on the backend (HTTP 404)'
    """

    if kind == "session-invalid" or http_status in (401, 403):
        return (
            "Session expired",
            "Sign in again; the stored token was rejected by the backend.",
        )
    if kind == "route-not-found":
        return (
            "Export route not found on the backend (HTTP 404)",
            "The backend routes may have changed. Check the export prefixes in the configuration.",
        )
    if kind == "transient-service-error":
        return (
            f"Export service unavailable (HTTP {http_status})" if http_status else "Export service unavailable",
            "The backend returned server errors on every route. Retry later.",
        )
    if kind == "content-type-mismatch":
        return (
            "The backend returned an error page instead of the document",
            "The document may still be generating. Wait for the form fill to finish and retry.",
        )
    if kind == "network-error":
        return (
            "Network request failed",
            "Check network connectivity. Large documents may exceed the download timeout.",
        )
    if kind == "storage-unavailable":
        return ("Local storage unavailable", "Free some space or check storage settings.")
    if kind == "permission-denied":
        return (
            "Permission denied in the selected folder",
            "Choose a folder the application is allowed to write into.",
        )
    if kind == "filename-allocation-failed":
        return (
            "No available file name",
            "Remove or rename older exports in the selected folder.",
        )
    if kind == "directory-not-selected":
        return ("No folder selected", None)

    return ("Export failed", "Check logs for detailed error information.")


def _backend_message(response: Optional[httpx.Response]) -> Optional[str]:
    if response is None:
        return None
    try:
        body = response.json()
    except (ValueError, httpx.ResponseNotRead):
        return None
    if not isinstance(body, dict):
        return None
    nested = body.get("data") if isinstance(body.get("data"), dict) else {}
    for candidate in (body.get("error"), body.get("message"), nested.get("error")):
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def user_message_for(error: BaseException, fallback: str) -> str:
    """The single message surfaced to the user for ``error``."""

    if isinstance(error, httpx.HTTPStatusError):
        backend = _backend_message(error.response)
        if backend:
            return backend
    message = str(error).strip()
    return message or fallback


def log_export_failure(
    logger: logging.Logger,
    error: BaseException,
    *,
    operation: str,
    form_fill_id: Any = None,
    format: Optional[str] = None,
    page: Any = None,
) -> None:
    """Log an export failure once, with structured context and a hint."""

    kind = getattr(error, "kind", None) if isinstance(error, ExportError) else None
    http_status = getattr(error, "http_status", None)
    message, suggestion = get_actionable_error_message(kind, http_status)

    log_entry = {
        "operation": operation,
        "form_fill_id": form_fill_id,
        "format": format,
        "page": page,
        "error_kind": kind or type(error).__name__,
        "http_status": http_status,
        "error_message": str(error),
    }
    logger.error("Export failed: %s", message, extra={"extra_fields": log_entry})
    if suggestion:
        logger.info(
            "Suggestion: %s",
            suggestion,
            extra={"extra_fields": {"operation": operation, "form_fill_id": form_fill_id}},
        )
