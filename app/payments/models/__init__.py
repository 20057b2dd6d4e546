"""
Payment domain models.

This module contains all payment-related models:
- PaymentBinding: Razorpay order/payment identifiers and results per order
- IdempotencyMarker: Applied-event markers for webhook de-duplication
"""

from payments.models.idempotency_marker import IdempotencyMarker, IdempotencyMarkerStore
from payments.models.payment_binding import PaymentBinding

__all__ = [
    "IdempotencyMarker",
    "IdempotencyMarkerStore",
    "PaymentBinding",
]
