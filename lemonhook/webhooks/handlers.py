"""Webhook HTTP handlers: FastAPI route for inbound Lemon Squeezy webhooks.

The handler:
1. Rejects anything but POST (405)
2. Reads raw body (needed for HMAC verification)
3. Verifies the X-Signature header against the configured secret
4. Parses and decodes the event
5. Applies at most one merge-upsert to the users collection
6. Returns 200 {"received": true}

Security contract:
- Unset secret -> 500 for every request, verification is never skipped
- Missing or bad signature -> 401, body is never parsed, store never touched
- Never return exception details to the webhook caller
- Return 200 for unrecognized events (provider stops redelivering)
- Log all webhook activity for audit trail
"""

from __future__ import annotations

import asyncio
import json
import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from lemonhook.config import settings
from lemonhook.store import get_user_store
from lemonhook.webhooks.dispatcher import (
    EventPayloadError,
    IgnoredEvent,
    OrderCreated,
    SubscriptionCreated,
    SubscriptionUpdated,
    UserUpdate,
    WebhookEvent,
    decode_event,
    project_event,
    redact_email,
)
from lemonhook.webhooks.verification import SIGNATURE_HEADER, verify_signature

logger = logging.getLogger(__name__)

WEBHOOK_PATH = "/api/webhook"

router = APIRouter(tags=["webhooks"])


def _log_webhook(event_name: str, resource_id: str, status: str) -> None:
    """Audit log for webhook activity."""
    logger.info(
        "WEBHOOK_AUDIT event=%s id=%s status=%s",
        event_name,
        resource_id,
        status,
    )


def _describe(event: WebhookEvent) -> tuple[str, str]:
    """(event_name, resource_id) for audit lines."""
    if isinstance(event, OrderCreated):
        return "order_created", event.order_id or ""
    if isinstance(event, SubscriptionCreated):
        return "subscription_created", event.subscription_id or ""
    if isinstance(event, SubscriptionUpdated):
        return "subscription_updated", event.subscription_id or ""
    return event.event_name or "unknown", ""


def _write_update(update: UserUpdate) -> None:
    """Blocking store write; first use also builds the Firestore client."""
    get_user_store().upsert(update.email, update.fields)


async def _handle_webhook(request: Request) -> JSONResponse:
    """Lemon Squeezy webhook handler.

    Returns 200 on success, 400 on undecodable events, 401 on signature
    failure, 405 on wrong method, 500 on misconfiguration or internal error.
    """
    if request.method != "POST":
        return JSONResponse({"error": "Method not allowed"}, status_code=405)

    start = time.time()

    secret = settings.lemon_squeezy_webhook_secret
    if not secret:
        logger.error("LEMON_SQUEEZY_WEBHOOK_SECRET not set: rejecting webhook")
        _log_webhook("unknown", "", "secret_missing")
        return JSONResponse({"error": "Webhook secret not configured"}, status_code=500)

    event_name, resource_id = "unknown", ""
    try:
        # Read raw body for signature verification
        body = await request.body()

        # 1. Verify signature
        signature = request.headers.get(SIGNATURE_HEADER)
        if not signature:
            _log_webhook(event_name, resource_id, "signature_missing")
            return JSONResponse({"error": "Unauthorized"}, status_code=401)
        if not verify_signature(body, signature, secret):
            _log_webhook(event_name, resource_id, "signature_failed")
            return JSONResponse({"error": "Invalid signature"}, status_code=401)

        # 2. Parse the verified bytes
        payload = json.loads(body)

        # 3. Decode and project
        try:
            event = decode_event(payload)
        except EventPayloadError as e:
            logger.warning("Rejected webhook payload: %s", e)
            _log_webhook(event_name, resource_id, "invalid_payload")
            return JSONResponse({"error": "Invalid event payload"}, status_code=400)

        event_name, resource_id = _describe(event)
        update = project_event(event)

        if update is None:
            status = "ignored" if isinstance(event, IgnoredEvent) else "skipped"
            _log_webhook(event_name, resource_id, status)
            return JSONResponse({"received": True}, status_code=200)

        # 4. Write
        await asyncio.to_thread(_write_update, update)
        logger.info("User record updated for %s (%s)", redact_email(update.email), event_name)
        _log_webhook(event_name, resource_id, "stored")

    except Exception:
        logger.exception("Webhook processing failed: %s/%s", event_name, resource_id)
        _log_webhook(event_name, resource_id, "error")
        return JSONResponse({"error": "Internal server error"}, status_code=500)

    elapsed_ms = (time.time() - start) * 1000
    logger.debug("Webhook processed in %.1fms: %s", elapsed_ms, event_name)

    return JSONResponse({"received": True}, status_code=200)


@router.api_route(
    WEBHOOK_PATH,
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE", "CONNECT"],
)
async def lemon_squeezy_webhook(request: Request):
    """Receive Lemon Squeezy webhooks (signature-verified)."""
    return await _handle_webhook(request)
