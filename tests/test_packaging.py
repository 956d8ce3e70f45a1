"""Tests for project metadata."""

from __future__ import annotations

import pytest


def test_pyproject_metadata(repo_root):
    tomllib = pytest.importorskip("tomllib")
    with open(repo_root / "pyproject.toml", "rb") as f:
        project = tomllib.load(f)["project"]
    assert project["name"] == "lemonhook"
    assert "readme" not in project
    assert "lemonhook" in project["scripts"]
