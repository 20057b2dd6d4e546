"""
Webhook ingestion pipeline for Razorpay.

Razorpay delivers each event at least once and in no particular order.
The pipeline authenticates a delivery, drops redeliveries of events that
were already applied, and applies the rest exactly once:

    signature -> parse -> supported? -> already applied? -> complete? -> apply

Applying an event and writing its markers happen in one transaction, so a
marker exists if and only if the event's state change committed.

Usage:
    from payments.webhooks.pipeline import WebhookPipeline

    outcome = WebhookPipeline().handle(request.body, signature, event_id)
"""

from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction

from core.exceptions import ConflictError

from payments.adapters import RazorpayAdapter
from payments.configuration import get_razorpay_configuration
from payments.exceptions import InvalidWebhookSignature, PaymentRequiresReconciliation
from payments.models import IdempotencyMarkerStore, PaymentBinding
from payments.state_machines import MarkerScope, WebhookOutcome
from payments.webhooks.events import InboundEvent
from payments.webhooks.handlers import dispatch_event


logger = logging.getLogger(__name__)


class WebhookPipeline:
    """
    Authenticates, de-duplicates and applies Razorpay webhook deliveries.

    Args:
        marker_store: Idempotency marker store (database-backed by default)
        payment_event_ttl: Lifetime of per-payment/refund markers
        webhook_event_ttl: Lifetime of per-event-id markers
        adapter: Razorpay adapter used for signature verification

    TTLs default to the configured RAZORPAY_*_MARKER_TTL_SECONDS.
    """

    def __init__(
        self,
        marker_store: IdempotencyMarkerStore | None = None,
        payment_event_ttl: timedelta | None = None,
        webhook_event_ttl: timedelta | None = None,
        adapter: type | None = None,
    ) -> None:
        self.marker_store = marker_store or IdempotencyMarkerStore()
        self.adapter = adapter or RazorpayAdapter

        if payment_event_ttl is None or webhook_event_ttl is None:
            config = get_razorpay_configuration()
            payment_event_ttl = payment_event_ttl or config.payment_event_marker_ttl
            webhook_event_ttl = webhook_event_ttl or config.webhook_event_marker_ttl
        self.payment_event_ttl = payment_event_ttl
        self.webhook_event_ttl = webhook_event_ttl

    def handle(
        self,
        raw_payload: bytes,
        signature_header: str | None,
        event_id: str | None = None,
    ) -> WebhookOutcome:
        """
        Process one webhook delivery.

        Args:
            raw_payload: Exact request body
            signature_header: X-Razorpay-Signature value
            event_id: X-Razorpay-Event-Id value, if sent

        Returns:
            WebhookOutcome; every outcome is acknowledged to Razorpay

        Raises:
            InvalidWebhookSignature: Signature missing or wrong
            MalformedWebhookPayload: Body is not a usable event
            Exception: Anything else, so Razorpay redelivers
        """
        if not signature_header or not self.adapter.verify_webhook_signature(
            raw_payload, signature_header
        ):
            logger.warning(
                "Razorpay webhook signature verification failed",
                extra={"payload_length": len(raw_payload or b"")},
            )
            raise InvalidWebhookSignature("Invalid webhook signature")

        event = InboundEvent.from_payload(raw_payload, event_id=event_id)
        log_context = event.log_context()
        logger.info("Razorpay webhook received", extra=log_context)

        if not event.is_supported:
            logger.info("Unsupported Razorpay webhook event", extra=log_context)
            return WebhookOutcome.UNSUPPORTED

        if self._is_duplicate(event):
            logger.info("Razorpay webhook event already applied", extra=log_context)
            return WebhookOutcome.DUPLICATE

        if not event.has_required_fields():
            logger.warning("Razorpay webhook event missing identifiers", extra=log_context)
            return WebhookOutcome.IGNORED

        try:
            with transaction.atomic():
                result = dispatch_event(event)
                if result:
                    self._mark_applied(event)
        except PaymentRequiresReconciliation as e:
            self._flag_for_reconciliation(event, e)
            return WebhookOutcome.RECONCILIATION_REQUIRED
        except ConflictError as e:
            logger.warning(
                "Razorpay webhook event conflicts with order state",
                extra={**log_context, "error_code": e.error_code},
            )
            return WebhookOutcome.CONFLICT

        if not result:
            logger.info(
                "Razorpay webhook event not applied",
                extra={**log_context, "error_code": result.error_code},
            )
            return WebhookOutcome.IGNORED

        logger.info("Razorpay webhook event applied", extra=log_context)
        return WebhookOutcome.PROCESSED

    def _is_duplicate(self, event: InboundEvent) -> bool:
        if event.event_id_key and self.marker_store.is_marked(event.event_id_key):
            return True
        return self.marker_store.is_marked(event.idempotency_key)

    def _mark_applied(self, event: InboundEvent) -> None:
        self.marker_store.mark(
            event.idempotency_key,
            MarkerScope.PAYMENT_EVENT,
            self.payment_event_ttl,
        )
        if event.event_id_key:
            self.marker_store.mark(
                event.event_id_key,
                MarkerScope.WEBHOOK_EVENT,
                self.webhook_event_ttl,
            )

    def _flag_for_reconciliation(
        self,
        event: InboundEvent,
        error: PaymentRequiresReconciliation,
    ) -> None:
        """Flag the binding and mark the event, after the handler rolled back."""
        with transaction.atomic():
            binding = (
                PaymentBinding.objects.select_for_update()
                .filter(razorpay_order_id=event.order_id)
                .first()
            )
            if binding is not None:
                binding.flag_reconciliation(
                    {
                        "error_code": error.error_code,
                        "error_description": error.message,
                        "razorpay_payment_id": event.payment_id,
                        "amount": event.amount,
                        "currency": event.currency,
                    }
                )
            self.marker_store.mark(
                event.idempotency_key,
                MarkerScope.PAYMENT_EVENT,
                self.payment_event_ttl,
            )

        logger.error(
            "Payment accepted for an order that cannot complete, reconciliation required",
            extra={**event.log_context(), "error_code": error.error_code},
        )
