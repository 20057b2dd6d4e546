"""
Pytest fixtures for webhook tests.

Provides builders for Razorpay webhook bodies and a signer that produces
the X-Razorpay-Signature value for them.

Usage:
    def test_capture(binding, payment_event, sign):
        body = payment_event("payment.captured", order_id=binding.razorpay_order_id)
        outcome = WebhookPipeline().handle(body, sign(body))
"""

import json

import pytest

from payments.signatures import compute_signature
from payments.webhooks.events import InboundEvent

WEBHOOK_SECRET = "test_webhook_secret"
PAYMENT_ID = "pay_Nwebhook01"
REFUND_ID = "rfnd_Nwebhook01"


def encode(payload: dict) -> bytes:
    return json.dumps(payload, separators=(",", ":")).encode()


# =============================================================================
# Payload Builders
# =============================================================================


@pytest.fixture
def payment_event():
    """Build a signed-ready payment.* webhook body."""

    def _create(
        event: str = "payment.captured",
        order_id: str = "order_Nabc123",
        payment_id: str = PAYMENT_ID,
        amount: int = 5000,
        currency: str = "INR",
        event_id: str | None = None,
        **payment_fields,
    ) -> bytes:
        status = event.split(".", 1)[1] if event.startswith("payment.") else "captured"
        entity = {
            "id": payment_id,
            "entity": "payment",
            "order_id": order_id,
            "amount": amount,
            "currency": currency,
            "status": status,
            "method": "upi",
            **payment_fields,
        }
        payload = {
            "entity": "event",
            "account_id": "acc_test",
            "event": event,
            "contains": ["payment"],
            "payload": {"payment": {"entity": entity}},
            "created_at": 1700000000,
        }
        if event_id:
            payload["id"] = event_id
        return encode(payload)

    return _create


@pytest.fixture
def refund_event():
    """Build a refund.processed webhook body."""

    def _create(
        payment_id: str = PAYMENT_ID,
        refund_id: str = REFUND_ID,
        amount: int = 2500,
        amount_refunded: int | None = None,
    ) -> bytes:
        payload = {
            "refund": {
                "entity": {
                    "id": refund_id,
                    "entity": "refund",
                    "payment_id": payment_id,
                    "amount": amount,
                    "currency": "INR",
                    "status": "processed",
                }
            }
        }
        if amount_refunded is not None:
            payload["payment"] = {
                "entity": {
                    "id": payment_id,
                    "entity": "payment",
                    "amount": 5000,
                    "currency": "INR",
                    "status": "refunded" if amount_refunded == 5000 else "captured",
                    "amount_refunded": amount_refunded,
                }
            }
        return encode(
            {
                "entity": "event",
                "event": "refund.processed",
                "contains": list(payload),
                "payload": payload,
                "created_at": 1700000000,
            }
        )

    return _create


@pytest.fixture
def sign():
    """Sign a body with the test webhook secret."""

    def _sign(body: bytes) -> str:
        return compute_signature(body, WEBHOOK_SECRET)

    return _sign


@pytest.fixture
def parse():
    """Parse a body into an InboundEvent."""

    def _parse(body: bytes, event_id: str | None = None) -> InboundEvent:
        return InboundEvent.from_payload(body, event_id=event_id)

    return _parse
