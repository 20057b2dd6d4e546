"""
Webhook endpoint view for Razorpay.

This module provides the HTTP endpoint for receiving Razorpay webhooks.
The view hands the raw body to WebhookPipeline, which verifies, parses,
de-duplicates and applies the event synchronously, then maps the outcome
to a status code:

- 200: Event accepted (processed, duplicate, ignored, unsupported,
  conflict, or flagged for reconciliation)
- 400: Invalid signature or payload; Razorpay will not fix it by retrying
- 500: Unexpected failure; Razorpay redelivers later

Usage:
    # In urls.py
    from payments.webhooks.views import razorpay_webhook

    urlpatterns = [
        path("webhooks/razorpay/", razorpay_webhook, name="razorpay_webhook"),
    ]
"""

from __future__ import annotations

import logging

from django.http import HttpRequest, HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from payments.exceptions import InvalidWebhookSignature, MalformedWebhookPayload
from payments.webhooks.pipeline import WebhookPipeline


logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Razorpay-Signature"
EVENT_ID_HEADER = "X-Razorpay-Event-Id"


@csrf_exempt
@require_POST
def razorpay_webhook(request: HttpRequest) -> HttpResponse:
    """
    Receive and apply Razorpay webhook events.

    Security:
    - HMAC-SHA256 over the exact body with RAZORPAY_WEBHOOK_SECRET
    - CSRF exemption required for external webhooks
    - Only POST requests accepted

    Idempotency:
    - Per-event and per-payment markers are written with the state change
    - Redeliveries of applied events return 200 without reprocessing
    """
    payload = request.body
    signature = request.headers.get(SIGNATURE_HEADER, "")
    event_id = request.headers.get(EVENT_ID_HEADER) or None

    if not signature:
        logger.warning("Webhook received without X-Razorpay-Signature header")
        return HttpResponse("Missing signature", status=400)

    try:
        outcome = WebhookPipeline().handle(payload, signature, event_id=event_id)
    except InvalidWebhookSignature:
        return HttpResponse("Invalid signature", status=400)
    except MalformedWebhookPayload as e:
        logger.warning("Webhook payload rejected", extra={"error": e.message})
        return HttpResponse("Invalid payload", status=400)
    except Exception as e:
        logger.error(
            f"Unexpected error processing webhook: {type(e).__name__}",
            extra={"event_id": event_id},
            exc_info=True,
        )
        return HttpResponse("Processing error", status=500)

    return HttpResponse(outcome.label, status=200)
