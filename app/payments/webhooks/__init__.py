"""
Webhook handling for payment events from Razorpay.

This module provides the view, ingestion pipeline and handlers for
processing Razorpay webhooks. Webhooks are verified, de-duplicated with
idempotency markers and applied synchronously inside one transaction.

Usage:
    # In urls.py
    from payments.webhooks.views import razorpay_webhook

    urlpatterns = [
        path("webhooks/razorpay/", razorpay_webhook, name="razorpay_webhook"),
    ]
"""

from payments.webhooks.events import InboundEvent, RazorpayEventType
from payments.webhooks.handlers import WEBHOOK_HANDLERS, dispatch_event, register_handler
from payments.webhooks.pipeline import WebhookPipeline
from payments.webhooks.views import razorpay_webhook

__all__ = [
    "InboundEvent",
    "RazorpayEventType",
    "WEBHOOK_HANDLERS",
    "WebhookPipeline",
    "dispatch_event",
    "razorpay_webhook",
    "register_handler",
]
