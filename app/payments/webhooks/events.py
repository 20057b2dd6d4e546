"""
Parsed Razorpay webhook events.

Razorpay posts a JSON body of the form:

    {
        "entity": "event",
        "event": "payment.captured",
        "payload": {
            "payment": {"entity": {"id": "pay_xxx", "order_id": "order_xxx", ...}},
            "order": {"entity": {"id": "order_xxx", ...}}
        },
        "created_at": 1700000000
    }

InboundEvent.from_payload() turns the raw bytes into an immutable event.
It is only called after the signature over those bytes has been checked.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from django.db import models

from payments.exceptions import MalformedWebhookPayload

if TYPE_CHECKING:
    from typing import Any


IDEMPOTENCY_KEY_PREFIX = "razorpay_event_"
EVENT_ID_KEY_PREFIX = "razorpay_webhook_"


class RazorpayEventType(models.TextChoices):
    """Webhook event types this service acts on."""

    PAYMENT_AUTHORIZED = "payment.authorized", "Payment Authorized"
    PAYMENT_CAPTURED = "payment.captured", "Payment Captured"
    PAYMENT_FAILED = "payment.failed", "Payment Failed"
    REFUND_PROCESSED = "refund.processed", "Refund Processed"
    UNSUPPORTED = "unsupported", "Unsupported"

    @classmethod
    def parse(cls, raw_type: str) -> RazorpayEventType:
        if raw_type in cls.values and raw_type != cls.UNSUPPORTED:
            return cls(raw_type)
        return cls.UNSUPPORTED

    @property
    def is_refund_event(self) -> bool:
        return self == RazorpayEventType.REFUND_PROCESSED


def _entity(payload: dict[str, Any], name: str) -> dict[str, Any]:
    wrapper = payload.get(name)
    if not isinstance(wrapper, dict):
        return {}
    entity = wrapper.get("entity")
    return entity if isinstance(entity, dict) else {}


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _integer(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


@dataclass(frozen=True)
class InboundEvent:
    """
    An authenticated, parsed webhook event.

    Attributes:
        type: Recognised event type, UNSUPPORTED otherwise
        raw_type: The event string as received
        event_id: X-Razorpay-Event-Id header, or the payload id
        payment_entity / refund_entity / order_entity: Payload entities ({} if absent)
        payment_id: Payment id (refund's payment_id for refund events)
        order_id: payment.order_id, falling back to order.id
        refund_id: Refund id for refund events
        amount: Entity amount in minor units
        currency: Entity currency
        created_at: Razorpay event timestamp (unix seconds)
        raw_payload: Decoded body
    """

    type: RazorpayEventType
    raw_type: str
    event_id: str | None = None
    payment_entity: dict[str, Any] = field(default_factory=dict)
    refund_entity: dict[str, Any] = field(default_factory=dict)
    order_entity: dict[str, Any] = field(default_factory=dict)
    payment_id: str | None = None
    order_id: str | None = None
    refund_id: str | None = None
    amount: int | None = None
    currency: str | None = None
    created_at: int | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, raw_payload: bytes | str, event_id: str | None = None) -> InboundEvent:
        """
        Parse a webhook body.

        Args:
            raw_payload: Exact request body
            event_id: X-Razorpay-Event-Id header value, if sent

        Raises:
            MalformedWebhookPayload: Invalid JSON, not an object, or no event field
        """
        try:
            data = json.loads(raw_payload)
        except (TypeError, ValueError) as e:
            raise MalformedWebhookPayload("Invalid webhook payload format") from e

        if not isinstance(data, dict):
            raise MalformedWebhookPayload("Webhook payload must be a JSON object")

        raw_type = data.get("event")
        if not isinstance(raw_type, str) or not raw_type:
            raise MalformedWebhookPayload("Webhook payload has no event field")

        payload = data.get("payload")
        if not isinstance(payload, dict):
            payload = {}

        event_type = RazorpayEventType.parse(raw_type)
        payment = _entity(payload, "payment")
        refund = _entity(payload, "refund")
        order = _entity(payload, "order")

        if event_type.is_refund_event:
            payment_id = _text(refund.get("payment_id"))
            amount_source = refund
        else:
            payment_id = _text(payment.get("id"))
            amount_source = payment

        return cls(
            type=event_type,
            raw_type=raw_type,
            event_id=_text(event_id) or _text(data.get("id")),
            payment_entity=payment,
            refund_entity=refund,
            order_entity=order,
            payment_id=payment_id,
            order_id=_text(payment.get("order_id")) or _text(order.get("id")),
            refund_id=_text(refund.get("id")),
            amount=_integer(amount_source.get("amount")),
            currency=_text(amount_source.get("currency")),
            created_at=_integer(data.get("created_at")),
            raw_payload=data,
        )

    @property
    def is_supported(self) -> bool:
        return self.type != RazorpayEventType.UNSUPPORTED

    @property
    def idempotency_key(self) -> str:
        """razorpay_event_<type>_<payment id>, or _<refund id> for refunds."""
        entity_id = self.refund_id if self.type.is_refund_event else self.payment_id
        return f"{IDEMPOTENCY_KEY_PREFIX}{self.raw_type}_{entity_id or ''}"

    @property
    def event_id_key(self) -> str | None:
        if not self.event_id:
            return None
        return f"{EVENT_ID_KEY_PREFIX}{self.event_id}"

    def has_required_fields(self) -> bool:
        if self.type.is_refund_event:
            return bool(self.refund_id and self.payment_id)
        return bool(self.payment_id and self.order_id)

    def log_context(self) -> dict[str, Any]:
        return {
            "event_type": self.raw_type,
            "event_id": self.event_id,
            "razorpay_payment_id": self.payment_id,
            "razorpay_order_id": self.order_id,
            "refund_id": self.refund_id,
        }
