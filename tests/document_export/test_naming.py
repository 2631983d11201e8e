"""Export file naming rules."""

from __future__ import annotations

import pytest

from FormVox.DocumentExport.api.types import ExportFormat
from FormVox.DocumentExport.naming import (
    add_numeric_suffix_to_file_name,
    build_export_file_name,
    normalize_page_param,
    sanitize_document_name,
)


def test_jpg_page_suffix_and_diacritics():
    assert build_export_file_name("Rapport Été 2024", "jpg", "3") == "Rapport_Ete_2024_page_3_rempli.jpg"


def test_pdf_ignores_page():
    assert build_export_file_name("Rapport Été 2024", "pdf", "3") == "Rapport_Ete_2024_rempli.pdf"


def test_all_pages_has_no_page_suffix():
    assert build_export_file_name("Rapport", ExportFormat.JPG, "all") == "Rapport_rempli.jpg"


def test_fractional_page_is_floored():
    assert build_export_file_name("Rapport", "jpg", 2.9) == "Rapport_page_2_rempli.jpg"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", "document"),
        (None, "document"),
        ("***", "document"),
        ("  Fiche   d'intervention  ", "Fiche_d_intervention"),
        ("__Crème brûlée!!__", "Creme_brulee"),
        ("keep-hyphens_and_underscores", "keep-hyphens_and_underscores"),
        ("a///b", "a_b"),
        ("a\u0591b", "a_b"),
        ("e\u0301t\u00e9", "ete"),
    ],
)
def test_sanitize_document_name(raw, expected):
    assert sanitize_document_name(raw) == expected


def test_empty_name_defaults_to_document():
    assert build_export_file_name("", "pdf") == "document_rempli.pdf"


@pytest.mark.parametrize(
    "name, suffix, expected",
    [
        ("doc.pdf", 2, "doc_2.pdf"),
        ("name", 2, "name_2"),
        ("archive.tar.gz", 1, "archive.tar_1.gz"),
        (".hidden", 3, ".hidden_3"),
    ],
)
def test_add_numeric_suffix(name, suffix, expected):
    assert add_numeric_suffix_to_file_name(name, suffix) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("all", "all"),
        (3, "3"),
        ("4", "4"),
        (3.7, "3"),
        (0, ""),
        (-2, ""),
        ("abc", ""),
        (None, ""),
        (True, ""),
        (float("inf"), ""),
    ],
)
def test_normalize_page_param(value, expected):
    assert normalize_page_param(value) == expected
