"""
IdempotencyMarker model and store for webhook de-duplication.

Razorpay delivers webhooks at least once. A marker records that an event
has been applied; while it is active (expires_at in the future) a repeat
delivery is acknowledged without touching any state. Markers are written
in the same transaction as the state change they guard.

Usage:
    from payments.models import IdempotencyMarkerStore
    from payments.state_machines import MarkerScope

    store = IdempotencyMarkerStore()
    if store.is_marked("razorpay_event_payment.captured_pay_123"):
        return WebhookOutcome.DUPLICATE

    with transaction.atomic():
        apply_event(...)
        store.mark(
            "razorpay_event_payment.captured_pay_123",
            MarkerScope.PAYMENT_EVENT,
            timedelta(hours=24),
        )
"""

from __future__ import annotations

from datetime import timedelta

from django.db import models
from django.utils import timezone

from core.models import BaseModel

from payments.state_machines import MarkerScope


class IdempotencyMarker(BaseModel):
    """
    Marks an event key as applied until expires_at.

    Fields:
        key: Unique event key (razorpay_event_<type>_<id> or razorpay_webhook_<event id>)
        scope: What the key de-duplicates
        expires_at: When the marker stops suppressing redeliveries

    Note:
        An expired marker is treated as absent and refreshed in place
        when the event is applied again. Expired rows are purged hourly.
    """

    key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Event key - unique constraint for idempotency",
    )

    scope = models.CharField(
        max_length=20,
        choices=MarkerScope.choices,
        help_text="What this marker de-duplicates",
    )

    expires_at = models.DateTimeField(
        db_index=True,
        help_text="Marker is active until this time",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Idempotency Marker"
        verbose_name_plural = "Idempotency Markers"

    def __str__(self) -> str:
        return f"IdempotencyMarker({self.key})"

    @property
    def is_active(self) -> bool:
        return self.expires_at > timezone.now()


class IdempotencyMarkerStore:
    """
    Database-backed marker store.

    Injected into the webhook pipeline so tests can substitute it.
    mark() runs in the caller's transaction.
    """

    def is_marked(self, key: str) -> bool:
        """Whether an active marker exists for key."""
        return IdempotencyMarker.objects.filter(key=key, expires_at__gt=timezone.now()).exists()

    def mark(self, key: str, scope: str, ttl: timedelta) -> IdempotencyMarker:
        """Create the marker, or refresh an existing one, active for ttl."""
        marker, _ = IdempotencyMarker.objects.update_or_create(
            key=key,
            defaults={"scope": scope, "expires_at": timezone.now() + ttl},
        )
        return marker

    def purge_expired(self) -> int:
        """Delete expired markers. Returns the number deleted."""
        deleted, _ = IdempotencyMarker.objects.filter(expires_at__lte=timezone.now()).delete()
        return deleted
