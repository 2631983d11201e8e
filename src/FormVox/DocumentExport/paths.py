# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.paths",
#   "purpose": "Ordered export route candidates derived from detail URLs and baselines.",
#   "sections": [
#     {
#       "id": "normalize-path-with-leading-slash",
#       "name": "normalize_path_with_leading_slash",
#       "anchor": "function-normalize-path-with-leading-slash",
#       "kind": "function"
#     },
#     {
#       "id": "strip-url-search-and-hash",
#       "name": "strip_url_search_and_hash",
#       "anchor": "function-strip-url-search-and-hash",
#       "kind": "function"
#     },
#     {
#       "id": "derive-base-path-from-detail-url",
#       "name": "derive_base_path_from_detail_url",
#       "anchor": "function-derive-base-path-from-detail-url",
#       "kind": "function"
#     },
#     {
#       "id": "read-request-url",
#       "name": "_read_request_url",
#       "anchor": "function-read-request-url",
#       "kind": "function"
#     },
#     {
#       "id": "dedupe",
#       "name": "_dedupe",
#       "anchor": "function-dedupe",
#       "kind": "function"
#     },
#     {
#       "id": "resolve-candidate-paths",
#       "name": "resolve_candidate_paths",
#       "anchor": "function-resolve-candidate-paths",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Export Route Candidates

The backend has exposed form fills under several route prefixes over time
(``/form-fills``, ``/api/v1/form_fills``, ...). Instead of a configuration
flag, the engine tries an ordered list of candidate prefixes for
``{prefix}/{id}/export``:

1. A prefix derived from the URL that successfully served the form fill's own
   detail representation (most likely to be right, so it goes first).
2. The fixed historical prefixes, in declared order.

Duplicates are removed after normalization, preserving first occurrence.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterable, Optional, Sequence

__all__ = [
    "EXPORT_BASE_PATHS",
    "derive_base_path_from_detail_url",
    "normalize_path_with_leading_slash",
    "resolve_candidate_paths",
    "strip_url_search_and_hash",
]

LOGGER = logging.getLogger(__name__)

EXPORT_BASE_PATHS: tuple[str, ...] = (
    "/form-fills",
    "/form_fills",
    "/formfills",
    "/api/form-fills",
    "/api/form_fills",
    "/api/formfills",
    "/api/v1/form-fills",
    "/api/v1/form_fills",
    "/api/v1/formfills",
)

_NUMERIC_SEGMENT = re.compile(r"^\d+$")

DetailLookup = Callable[[int], Any]


def normalize_path_with_leading_slash(value: Any) -> str:
    raw = str(value or "").strip()
    if not raw:
        return "/"
    return raw if raw.startswith("/") else f"/{raw}"


def strip_url_search_and_hash(value: Any) -> str:
    raw = str(value or "")
    if not raw:
        return ""
    return raw.split("?", 1)[0].split("#", 1)[0]


def derive_base_path_from_detail_url(request_url: Any, form_fill_id: Any) -> str:
    """
    Strip the id segment from a detail URL such as ``/api/v1/form-fills/42``.

    When the last segment is not the id but still numeric, it is dropped
    anyway. Returns ``""`` when the id itself is unusable and ``"/"`` when
    nothing is left.
    """

    clean_path = normalize_path_with_leading_slash(strip_url_search_and_hash(request_url))
    try:
        normalized_id = str(int(form_fill_id))
    except (TypeError, ValueError):
        return ""

    if clean_path.endswith(f"/{normalized_id}"):
        without_id = clean_path[: len(clean_path) - len(normalized_id) - 1]
        return without_id or "/"

    segments = [segment for segment in clean_path.split("/") if segment]
    if segments and _NUMERIC_SEGMENT.match(segments[-1]):
        segments.pop()
    return "/" + "/".join(segments) if segments else "/"


def _read_request_url(detail: Any) -> str:
    if detail is None:
        return ""
    if isinstance(detail, dict):
        return str(detail.get("request_url") or "")
    return str(getattr(detail, "request_url", "") or "")


def _dedupe(paths: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for path in paths:
        normalized = normalize_path_with_leading_slash(path)
        if normalized in seen:
            continue
        seen.add(normalized)
        ordered.append(normalized)
    return ordered


def resolve_candidate_paths(
    form_fill_id: int,
    detail_lookup: Optional[DetailLookup] = None,
    *,
    baseline: Sequence[str] = EXPORT_BASE_PATHS,
) -> list[str]:
    """
    Return the ordered, duplicate-free export prefixes to try for ``form_fill_id``.

    Never raises and never returns an empty list: a failing ``detail_lookup``
    only means the derived hint is skipped.

    Args:
        form_fill_id: Form fill identifier
        detail_lookup: Callable returning an object (or mapping) exposing
            ``request_url``, typically ``FormFillsApi.get_form_fill``
        baseline: Historical prefixes appended after the hint

    Returns:
        Candidate prefixes, each normalized with a leading slash
    """

    discovered: list[str] = []
    if detail_lookup is not None:
        try:
            detail = detail_lookup(form_fill_id)
            hint = derive_base_path_from_detail_url(_read_request_url(detail), form_fill_id)
            if hint and hint != "/":
                discovered.append(hint)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.debug(
                "Export path hint lookup failed; using baseline prefixes only",
                extra={"extra_fields": {"form_fill_id": form_fill_id, "error": str(exc)}},
            )

    candidates = _dedupe([*discovered, *(baseline or EXPORT_BASE_PATHS)])
    LOGGER.debug(
        "Resolved %d export candidates",
        len(candidates),
        extra={"extra_fields": {"form_fill_id": form_fill_id, "candidates": candidates}},
    )
    return candidates
