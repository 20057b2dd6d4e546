"""
Status enums for the payments app.

These are Django TextChoices for database storage, admin integration and
comparisons against Razorpay API values.

Razorpay payment lifecycle (as reported by the gateway):
    created → authorized → captured → refunded
    created → failed
    authorized → failed (auto-refund of uncaptured authorizations)

Webhook outcomes:
    Every outcome is acknowledged with HTTP 200 so Razorpay stops
    redelivering. Signature and parse failures answer 400, unexpected
    errors 500 (Razorpay retries those).
"""

from django.db import models


class GatewayPaymentStatus(models.TextChoices):
    """Payment status values used by the Razorpay API."""

    CREATED = "created", "Created"
    AUTHORIZED = "authorized", "Authorized"
    CAPTURED = "captured", "Captured"
    REFUNDED = "refunded", "Refunded"
    FAILED = "failed", "Failed"


# Statuses in which the buyer's money has been accepted by the gateway
ACCEPTED_PAYMENT_STATUSES = frozenset(
    {
        GatewayPaymentStatus.AUTHORIZED.value,
        GatewayPaymentStatus.CAPTURED.value,
    }
)


class MarkerScope(models.TextChoices):
    """
    What an idempotency marker de-duplicates.

    PAYMENT_EVENT: one (event type, payment/refund id) pair
    WEBHOOK_EVENT: one Razorpay event id, whatever its entity
    """

    PAYMENT_EVENT = "PAYMENT_EVENT", "Payment Event"
    WEBHOOK_EVENT = "WEBHOOK_EVENT", "Webhook Event"


class WebhookOutcome(models.TextChoices):
    """Result of ingesting one webhook delivery."""

    PROCESSED = "processed", "Processed"
    DUPLICATE = "duplicate", "Duplicate"
    UNSUPPORTED = "unsupported", "Unsupported"
    IGNORED = "ignored", "Ignored"
    CONFLICT = "conflict", "Conflict"
    RECONCILIATION_REQUIRED = "reconciliation_required", "Reconciliation Required"
