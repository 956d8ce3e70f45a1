"""Shared fixtures for the lemonhook test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

import lemonhook.store


@pytest.fixture()
def repo_root() -> Path:
    """Return the repository root directory."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture(autouse=True)
def reset_firestore_client():
    """Each test starts without a cached Firestore client."""
    lemonhook.store._client = None
    yield
    lemonhook.store._client = None
