"""
Payment services for coordinating Razorpay operations.

This module provides:
- OrderBindingService: Creates the Razorpay order for a reserved order
- PaymentVerificationService: Verifies client checkout confirmations
- RefundService: Processes refunds to buyers

Usage:
    from payments.services import OrderBindingService

    # Start checkout for a reserved order
    details = OrderBindingService.start_checkout("o_abc123", session_id)

    # Verify the client confirmation
    from payments.services import PaymentVerificationService

    result = PaymentVerificationService.verify(
        order_short_id="o_abc123",
        razorpay_payment_id="pay_Nxyz789",
        razorpay_order_id="order_Nabc123",
        signature=signature,
    )

    # Create a refund
    from payments.services import RefundService

    result = RefundService.create_refund(order_id=order.id, amount=2500)
"""

from payments.services.order_binding_service import (
    CheckoutDetails,
    OrderBindingService,
)
from payments.services.refund_service import (
    RefundEligibility,
    RefundOutcome,
    RefundService,
)
from payments.services.verification_service import (
    PaymentVerificationService,
    VerificationResult,
)

__all__ = [
    "CheckoutDetails",
    "OrderBindingService",
    "PaymentVerificationService",
    "RefundEligibility",
    "RefundOutcome",
    "RefundService",
    "VerificationResult",
]
