"""Security test fixtures.

Responsibilities:
- Creates the FastAPI `app` fixture
- Wraps it in an unauthenticated `client` (webhook caller perspective)
- Provides `webhook_secret` (configured signing secret), `user_store`
  (in-memory merge store replacing Firestore) and `sign`
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Any
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from lemonhook.config import settings

TEST_SECRET = "test-secret"


class InMemoryUserStore:
    """Merge-upsert store with Firestore's set(merge=True) semantics."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.writes: list[tuple[str, dict[str, Any]]] = []

    def upsert(self, email: str, fields: dict[str, Any]) -> None:
        self.writes.append((email, dict(fields)))
        self.documents.setdefault(email, {}).update(fields)


@pytest.fixture(scope="module")
def app():
    """Create the FastAPI app with the full route table."""
    from lemonhook.serve import create_app

    return create_app()


@pytest.fixture
def client(app):
    """Unauthenticated TestClient (webhook caller perspective)."""
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def webhook_secret():
    """Configure the Lemon Squeezy signing secret for the test."""
    with patch.object(settings, "lemon_squeezy_webhook_secret", TEST_SECRET):
        yield TEST_SECRET


@pytest.fixture
def user_store():
    """In-memory user store wired in place of Firestore."""
    store = InMemoryUserStore()
    with patch("lemonhook.webhooks.handlers.get_user_store", return_value=store):
        yield store


@pytest.fixture
def sign():
    """Factory for X-Signature values under the test secret."""

    def _sign(body: bytes, secret: str = TEST_SECRET) -> str:
        return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()

    return _sign
