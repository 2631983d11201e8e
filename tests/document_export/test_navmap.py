"""Module NAVMAP headers stay in sync with the code they describe."""

from __future__ import annotations

import ast
import json
from pathlib import Path

import pytest

PACKAGE_ROOT = Path(__file__).resolve().parents[2] / "src" / "FormVox" / "DocumentExport"
MODULES = sorted(p for p in PACKAGE_ROOT.rglob("*.py") if p.name != "__init__.py")


def read_navmap(path: Path) -> dict:
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "# === NAVMAP v1 ==="
    end = lines.index("# === /NAVMAP ===")
    return json.loads("\n".join(line[2:] for line in lines[1:end]))


def test_every_module_has_a_header():
    assert MODULES
    for path in MODULES:
        assert read_navmap(path)["purpose"]


@pytest.mark.parametrize("path", MODULES, ids=lambda p: str(p.relative_to(PACKAGE_ROOT)))
def test_sections_list_top_level_definitions(path):
    navmap = read_navmap(path)
    tree = ast.parse(path.read_text(encoding="utf-8"))
    defined = [
        node.name
        for node in tree.body
        if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef))
    ]

    dotted = ".".join(path.relative_to(PACKAGE_ROOT).with_suffix("").parts)
    assert navmap["module"] == f"FormVox.DocumentExport.{dotted}"
    assert [section["name"] for section in navmap["sections"]] == defined
    for section in navmap["sections"]:
        assert section["anchor"] == f"{section['kind']}-{section['id']}"
