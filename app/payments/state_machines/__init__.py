"""
Status enums and helpers for the payments app.
"""

from payments.state_machines.states import (
    ACCEPTED_PAYMENT_STATUSES,
    GatewayPaymentStatus,
    MarkerScope,
    WebhookOutcome,
)

__all__ = [
    "ACCEPTED_PAYMENT_STATUSES",
    "GatewayPaymentStatus",
    "MarkerScope",
    "WebhookOutcome",
]
