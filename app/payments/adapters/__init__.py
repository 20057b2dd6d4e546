"""
Payment adapters for external services.

All Razorpay API calls go through RazorpayAdapter to ensure consistent
error handling, timeouts, secret redaction, and observability.

Usage:
    from payments.adapters import CreateOrderParams, RazorpayAdapter

    result = RazorpayAdapter.create_order(
        CreateOrderParams(amount=5000, currency="INR", receipt="order_o_abc123")
    )
"""

from payments.adapters.razorpay_adapter import (
    CreateOrderParams,
    CreateRefundParams,
    GatewayOrderResult,
    PaymentDetails,
    RazorpayAdapter,
    RefundResult,
    backoff_delay,
    is_retryable_gateway_error,
)

__all__ = [
    "CreateOrderParams",
    "CreateRefundParams",
    "GatewayOrderResult",
    "PaymentDetails",
    "RazorpayAdapter",
    "RefundResult",
    "backoff_delay",
    "is_retryable_gateway_error",
]
