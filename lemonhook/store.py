"""Firestore user-record store.

One Firestore client per process, created lazily on first write and
reused for every request after that. Writes are merge-upserts keyed by
the customer's email; documents are never replaced or deleted here.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore

from lemonhook.config import settings

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"

_client: Any = None
_client_lock = threading.Lock()


class StoreConfigError(RuntimeError):
    """Firebase service-account settings are missing."""


def _service_account_info() -> dict[str, str]:
    """Build the service-account mapping from settings."""
    missing = [
        name
        for name, value in (
            ("FIREBASE_PROJECT_ID", settings.firebase_project_id),
            ("FIREBASE_CLIENT_EMAIL", settings.firebase_client_email),
            ("FIREBASE_PRIVATE_KEY", settings.firebase_private_key),
        )
        if not value
    ]
    if missing:
        raise StoreConfigError(f"Missing Firebase settings: {', '.join(missing)}")

    return {
        "type": "service_account",
        "project_id": settings.firebase_project_id,
        "client_email": settings.firebase_client_email,
        "private_key": settings.firebase_private_key_pem,
        "token_uri": "https://oauth2.googleapis.com/token",
    }


def _get_or_init_app() -> firebase_admin.App:
    """Reuse the default Firebase app if the host already created one."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        cred = credentials.Certificate(_service_account_info())
        app = firebase_admin.initialize_app(cred)
        logger.info("Firebase app initialized for project %s", settings.firebase_project_id)
        return app


def get_firestore_client() -> Any:
    """Return the process-wide Firestore client, creating it at most once."""
    global _client
    if _client is None:
        with _client_lock:
            if _client is None:
                _client = firestore.client(_get_or_init_app())
    return _client


class UserStore:
    """Merge-upsert access to the users collection."""

    def __init__(self, client: Any) -> None:
        self._client = client

    def upsert(self, email: str, fields: dict[str, Any]) -> None:
        """Create users/{email} or update only the given fields."""
        if not email:
            raise ValueError("User record key must be a non-empty email")
        self._client.collection(USERS_COLLECTION).document(email).set(fields, merge=True)


def get_user_store() -> UserStore:
    """UserStore bound to the shared Firestore client."""
    return UserStore(get_firestore_client())
