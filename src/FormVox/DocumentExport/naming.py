# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.naming",
#   "purpose": "Export file naming: sanitized stems, page suffixes and collision suffixes.",
#   "sections": [
#     {
#       "id": "sanitize-document-name",
#       "name": "sanitize_document_name",
#       "anchor": "function-sanitize-document-name",
#       "kind": "function"
#     },
#     {
#       "id": "normalize-page-param",
#       "name": "normalize_page_param",
#       "anchor": "function-normalize-page-param",
#       "kind": "function"
#     },
#     {
#       "id": "build-export-file-name",
#       "name": "build_export_file_name",
#       "anchor": "function-build-export-file-name",
#       "kind": "function"
#     },
#     {
#       "id": "add-numeric-suffix-to-file-name",
#       "name": "add_numeric_suffix_to_file_name",
#       "anchor": "function-add-numeric-suffix-to-file-name",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""File naming rules for exported documents.

The names produced here are part of the compatibility surface: previously
exported files on users' devices follow the same convention, and the
collision suffixes used by the scoped-grant storage backend build on it.

Examples:
    >>> build_export_file_name("Rapport Été 2024", "jpg", "3")
    'Rapport_Ete_2024_page_3_rempli.jpg'
    >>> build_export_file_name("Rapport Été 2024", "pdf", "3")
    'Rapport_Ete_2024_rempli.pdf'
    >>> add_numeric_suffix_to_file_name("doc.pdf", 2)
    'doc_2.pdf'
"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Any

from FormVox.DocumentExport.api.types import ALL_PAGES, EXT_BY_FORMAT, ExportFormat

__all__ = [
    "DEFAULT_EXPORT_NAME",
    "EXPORT_NAME_SUFFIX",
    "add_numeric_suffix_to_file_name",
    "build_export_file_name",
    "normalize_page_param",
    "sanitize_document_name",
]

DEFAULT_EXPORT_NAME = "document"
EXPORT_NAME_SUFFIX = "_rempli"

_UNSAFE_RUN = re.compile(r"[^A-Za-z0-9_-]+")
_UNDERSCORE_RUN = re.compile(r"_+")
_COMBINING_DIACRITICS = re.compile("[\u0300-\u036f]")


def sanitize_document_name(value: Any) -> str:
    """Return an ASCII-safe stem for ``value`` (``document`` when nothing survives)."""

    raw = str(value or "").strip()
    if not raw:
        return DEFAULT_EXPORT_NAME

    decomposed = unicodedata.normalize("NFD", raw)
    without_marks = _COMBINING_DIACRITICS.sub("", decomposed)

    cleaned = _UNSAFE_RUN.sub("_", without_marks)
    cleaned = _UNDERSCORE_RUN.sub("_", cleaned).strip("_")
    return cleaned or DEFAULT_EXPORT_NAME


def normalize_page_param(value: Any) -> str:
    """
    Normalize a page argument to ``"all"``, a positive integer string, or ``""``.

    Fractional pages are floored; anything non-numeric or below 1 means
    "no explicit page".
    """

    if value == ALL_PAGES:
        return ALL_PAGES
    if value is None or isinstance(value, bool):
        return ""
    try:
        numeric = float(str(value).strip())
    except ValueError:
        return ""
    if not math.isfinite(numeric) or numeric < 1:
        return ""
    return str(math.floor(numeric))


def build_export_file_name(document_name: Any, format: Any, page: Any = None) -> str:
    """Return ``{sanitized}[_page_{n}]_rempli.{ext}`` for an export."""

    normalized_format = str(getattr(format, "value", format) or "").lower()
    try:
        extension = EXT_BY_FORMAT[ExportFormat(normalized_format)]
    except ValueError:
        extension = "bin"

    normalized_page = normalize_page_param(page)
    page_suffix = ""
    if normalized_format == ExportFormat.JPG.value and normalized_page and normalized_page != ALL_PAGES:
        page_suffix = f"_page_{normalized_page}"

    return f"{sanitize_document_name(document_name)}{page_suffix}{EXPORT_NAME_SUFFIX}.{extension}"


def add_numeric_suffix_to_file_name(file_name: Any, suffix: int) -> str:
    """Insert ``_{suffix}`` before the extension (or append it when there is none)."""

    raw = str(file_name or DEFAULT_EXPORT_NAME)
    dot_index = raw.rfind(".")
    if dot_index <= 0 or dot_index >= len(raw) - 1:
        return f"{raw}_{suffix}"
    return f"{raw[:dot_index]}_{suffix}.{raw[dot_index + 1:]}"
