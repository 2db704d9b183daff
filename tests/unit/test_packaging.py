"""Sanity checks on pyproject.toml."""

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def test_package_discovery_keys():
    config = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))
    find = config["tool"]["setuptools"]["packages"]["find"]
    assert set(find) <= {"where", "include", "exclude", "namespaces"}
    assert find["namespaces"] is True
    assert find["where"] == ["backend"]
