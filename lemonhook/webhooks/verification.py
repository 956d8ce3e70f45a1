"""Webhook signature verification: constant-time HMAC over the raw body.

Security contract:
- Digest is computed over the exact request bytes, never a re-serialized body
- All comparisons use hmac.compare_digest() (constant-time, no timing attacks)
- Missing secret or missing signature -> verification fails (fail-closed)
- Lemon Squeezy sends X-Signature: hex-encoded HMAC-SHA256 of the body
"""

from __future__ import annotations

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "x-signature"


def compute_signature(body: bytes, secret: str) -> str:
    """Return the lowercase hex HMAC-SHA256 of body under secret."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: str | None, secret: str) -> bool:
    """Verify a Lemon Squeezy webhook signature.

    Args:
        body: Raw request body bytes
        signature: Value of the X-Signature header (hex digest)
        secret: Shared webhook signing secret

    Returns:
        True if signature is valid
    """
    if not secret:
        logger.warning("Webhook secret not set: rejecting signature")
        return False
    if not signature:
        return False

    try:
        provided = bytes.fromhex(signature.strip())
    except ValueError:
        return False

    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    if len(provided) != len(expected):
        return False

    return hmac.compare_digest(expected, provided)
