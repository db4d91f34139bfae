"""Architectural tests for module layering.

Tests use AST inspection only to avoid executing application code.
"""

from __future__ import annotations

import ast
from pathlib import Path
from typing import Iterable, Set

import pytest

PACKAGE = Path(__file__).resolve().parents[2] / "vrams"


def _py_files(subdir: str) -> list[Path]:
    return sorted((PACKAGE / subdir).rglob("*.py"))


def _imported_modules(path: Path) -> Set[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    names: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            names.add(node.module)
    return names


def _offending(paths: Iterable[Path], prefix: str) -> list[str]:
    out = []
    for path in paths:
        for name in _imported_modules(path):
            if name == prefix or name.startswith(prefix + "."):
                out.append(f"{path.relative_to(PACKAGE)} imports {name}")
    return out


@pytest.mark.parametrize(
    "subdir, forbidden",
    [
        ("routes", "sqlalchemy"),
        ("models", "vrams.logic"),
        ("models", "fastapi"),
        ("logic", "vrams.routes"),
        ("logic", "fastapi"),
        ("db", "vrams.logic"),
    ],
)
def test_layer_does_not_import(subdir, forbidden):
    files = _py_files(subdir)
    assert files, f"no modules under vrams/{subdir}"
    assert _offending(files, forbidden) == []


def test_pure_logic_has_no_io_imports():
    pure = ["dependency_resolver.py", "validation.py", "fingerprint.py", "record_canonical.py"]
    paths = [PACKAGE / "logic" / name for name in pure]
    for prefix in ("sqlalchemy", "anyio", "vrams.db"):
        assert _offending(paths, prefix) == []


def test_sql_migrations_ship_with_the_package():
    assert sorted(p.name for p in (PACKAGE / "db" / "migrations").glob("*.sql"))
