"""Candidate export route resolution."""

from __future__ import annotations

import pytest

from FormVox.DocumentExport.client import FormFillDetail
from FormVox.DocumentExport.paths import (
    EXPORT_BASE_PATHS,
    derive_base_path_from_detail_url,
    normalize_path_with_leading_slash,
    resolve_candidate_paths,
    strip_url_search_and_hash,
)


@pytest.mark.parametrize(
    "url, form_fill_id, expected",
    [
        ("/forms/42", 42, "/forms"),
        ("/api/v2/forms/42?include=values#top", 42, "/api/v2/forms"),
        ("/forms/99", 42, "/forms"),
        ("/forms/42/", 42, "/forms"),
        ("forms/42", 42, "/forms"),
        ("/42", 42, "/"),
        ("/forms", 42, "/forms"),
        ("/forms/42", "not-a-number", ""),
    ],
)
def test_derive_base_path_from_detail_url(url, form_fill_id, expected):
    assert derive_base_path_from_detail_url(url, form_fill_id) == expected


def test_url_helpers():
    assert normalize_path_with_leading_slash("a/b") == "/a/b"
    assert normalize_path_with_leading_slash("") == "/"
    assert strip_url_search_and_hash("/a?b=1#c") == "/a"


def test_without_lookup_returns_baseline_in_order():
    assert resolve_candidate_paths(7) == list(EXPORT_BASE_PATHS)


def test_derived_hint_goes_first():
    lookup = lambda form_fill_id: FormFillDetail(form_fill_id, f"/v2/forms/{form_fill_id}")

    result = resolve_candidate_paths(7, lookup)

    assert result[0] == "/v2/forms"
    assert result[1:] == list(EXPORT_BASE_PATHS)


def test_hint_matching_a_baseline_entry_is_not_duplicated():
    lookup = lambda form_fill_id: {"request_url": f"/api/form_fills/{form_fill_id}"}

    result = resolve_candidate_paths(7, lookup)

    assert result[0] == "/api/form_fills"
    assert result[1:] == [p for p in EXPORT_BASE_PATHS if p != "/api/form_fills"]
    assert len(result) == len(set(result)) == len(EXPORT_BASE_PATHS)


def test_failing_lookup_falls_back_to_baseline():
    def lookup(form_fill_id):
        raise RuntimeError("offline")

    assert resolve_candidate_paths(7, lookup) == list(EXPORT_BASE_PATHS)


def test_root_hint_is_ignored():
    lookup = lambda form_fill_id: {"request_url": f"/{form_fill_id}"}
    assert resolve_candidate_paths(7, lookup) == list(EXPORT_BASE_PATHS)


def test_empty_baseline_uses_defaults():
    assert resolve_candidate_paths(7, baseline=()) == list(EXPORT_BASE_PATHS)


@pytest.mark.parametrize("form_fill_id", [1, 42, 10**9])
@pytest.mark.parametrize("request_url", [None, "", "/form-fills/{id}", "/x/y/{id}?q=1", "/{id}"])
def test_candidates_non_empty_unique_and_keep_baseline_order(form_fill_id, request_url):
    def lookup(value):
        if request_url is None:
            raise RuntimeError("lookup failed")
        return {"request_url": request_url.format(id=value)}

    result = resolve_candidate_paths(form_fill_id, lookup)

    assert result
    assert len(result) == len(set(result))
    baseline_positions = [result.index(p) for p in EXPORT_BASE_PATHS]
    assert baseline_positions == sorted(baseline_positions)
    assert all(path.startswith("/") for path in result)
