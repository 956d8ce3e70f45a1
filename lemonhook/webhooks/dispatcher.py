"""Webhook event dispatcher: decodes Lemon Squeezy events into user-record updates.

Decoding maps the meta.event_name discriminator onto a closed set of
event variants, each carrying only the fields it needs. Projection turns
a variant into at most one merge-upsert for the users collection.

Projection contract:
- Written values depend only on the event, so redelivery is idempotent
- Timestamps use the Firestore server-timestamp sentinel
- Unknown events project to nothing (acknowledged, never written)
- Unpaid orders project to nothing
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Union

from firebase_admin import firestore

logger = logging.getLogger(__name__)

# Subscription statuses that keep premium access
_PREMIUM_STATUSES = frozenset({"active", "on_trial"})


class EventName(str, Enum):
    """Lemon Squeezy event names this gateway acts on."""

    ORDER_CREATED = "order_created"
    SUBSCRIPTION_CREATED = "subscription_created"
    SUBSCRIPTION_UPDATED = "subscription_updated"


class EventPayloadError(ValueError):
    """A verified webhook body is missing fields its event requires."""


@dataclass(frozen=True)
class OrderCreated:
    email: str
    order_id: str | None
    status: str | None
    product_name: str


@dataclass(frozen=True)
class SubscriptionCreated:
    email: str
    subscription_id: str | None


@dataclass(frozen=True)
class SubscriptionUpdated:
    email: str
    subscription_id: str | None
    status: str | None


@dataclass(frozen=True)
class IgnoredEvent:
    """Any event name outside EventName."""

    event_name: str | None


WebhookEvent = Union[OrderCreated, SubscriptionCreated, SubscriptionUpdated, IgnoredEvent]


@dataclass(frozen=True)
class UserUpdate:
    """One merge-upsert against users/{email}."""

    email: str
    fields: dict[str, Any]


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _require_email(attributes: dict[str, Any], event_name: EventName) -> str:
    email = attributes.get("user_email")
    if not isinstance(email, str) or not email.strip():
        raise EventPayloadError(f"{event_name.value} event has no user_email")
    return email


def redact_email(email: str | None) -> str:
    """Show only the domain of an email for log lines."""
    if not email or "@" not in email:
        return "***"
    return "***@" + email.split("@", 1)[1]


def _decode_order_created(data: dict[str, Any], attributes: dict[str, Any]) -> OrderCreated:
    first_item = _as_dict(attributes.get("first_order_item"))
    status = _optional_str(attributes.get("status"))
    # Unpaid orders are never written, so they need no record key
    if status == "paid":
        email = _require_email(attributes, EventName.ORDER_CREATED)
    else:
        email = _optional_str(attributes.get("user_email")) or ""
    return OrderCreated(
        email=email,
        order_id=_optional_str(data.get("id")),
        status=status,
        product_name=str(first_item.get("product_name") or ""),
    )


def _decode_subscription_created(
    data: dict[str, Any], attributes: dict[str, Any]
) -> SubscriptionCreated:
    return SubscriptionCreated(
        email=_require_email(attributes, EventName.SUBSCRIPTION_CREATED),
        subscription_id=_optional_str(data.get("id")),
    )


def _decode_subscription_updated(
    data: dict[str, Any], attributes: dict[str, Any]
) -> SubscriptionUpdated:
    return SubscriptionUpdated(
        email=_require_email(attributes, EventName.SUBSCRIPTION_UPDATED),
        subscription_id=_optional_str(data.get("id")),
        status=_optional_str(attributes.get("status")),
    )


_DECODERS: dict[EventName, Callable[[dict[str, Any], dict[str, Any]], WebhookEvent]] = {
    EventName.ORDER_CREATED: _decode_order_created,
    EventName.SUBSCRIPTION_CREATED: _decode_subscription_created,
    EventName.SUBSCRIPTION_UPDATED: _decode_subscription_updated,
}


def decode_event(payload: Any) -> WebhookEvent:
    """Decode a parsed webhook body into its event variant.

    Args:
        payload: JSON-decoded request body

    Returns:
        The matching variant, or IgnoredEvent for unknown event names

    Raises:
        EventPayloadError: body is not an object, or an event that writes has no user_email
    """
    if not isinstance(payload, dict):
        raise EventPayloadError("Webhook body is not a JSON object")

    raw_name = _as_dict(payload.get("meta")).get("event_name")
    try:
        event_name = EventName(raw_name)
    except ValueError:
        return IgnoredEvent(event_name=_optional_str(raw_name))

    data = _as_dict(payload.get("data"))
    attributes = _as_dict(data.get("attributes"))
    return _DECODERS[event_name](data, attributes)


def subscription_type_for(product_name: str) -> str:
    """Yearly products are named as such; everything else is lifetime."""
    return "yearly" if "yearly" in product_name.lower() else "lifetime"


def subscription_for_status(status: str | None) -> str:
    """Map a Lemon Squeezy subscription status onto the access tier."""
    return "premium" if status in _PREMIUM_STATUSES else "free"


def project_event(event: WebhookEvent) -> UserUpdate | None:
    """Project a decoded event onto the user-record fields it sets.

    Returns:
        UserUpdate to merge into users/{email}, or None when nothing is written
    """
    if isinstance(event, OrderCreated):
        if event.status != "paid":
            logger.info("Order %s not paid (status=%s): skipping", event.order_id, event.status)
            return None
        return UserUpdate(
            email=event.email,
            fields={
                "email": event.email,
                "subscription": "premium",
                "subscriptionType": subscription_type_for(event.product_name),
                "purchaseDate": firestore.SERVER_TIMESTAMP,
                "lemonSqueezyOrderId": event.order_id,
                "productName": event.product_name,
            },
        )

    if isinstance(event, SubscriptionCreated):
        return UserUpdate(
            email=event.email,
            fields={
                "email": event.email,
                "subscription": "premium",
                "subscriptionType": "yearly",
                "subscriptionStartDate": firestore.SERVER_TIMESTAMP,
                "lemonSqueezySubscriptionId": event.subscription_id,
            },
        )

    if isinstance(event, SubscriptionUpdated):
        return UserUpdate(
            email=event.email,
            fields={
                "email": event.email,
                "subscription": subscription_for_status(event.status),
                "subscriptionStatus": event.status,
                "lastUpdated": firestore.SERVER_TIMESTAMP,
            },
        )

    logger.info("Unhandled webhook event: %s: skipping", event.event_name)
    return None
