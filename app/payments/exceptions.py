"""
Payment-specific exceptions for Razorpay reconciliation.

This module provides a hierarchy of exceptions for payment operations,
covering payment domain errors, verification failures, webhook ingestion
errors, Razorpay gateway errors, and concurrency/state conflicts.

Exception Hierarchy:
    PaymentError (base for payment domain, 400)
    ├── PaymentNotFoundError - Payment entity lookup failures (404)
    │   └── OrderNotFound - Order or its Razorpay binding missing
    ├── PaymentValidationError - Amount, currency, or input validation failures
    ├── PaymentVerificationFailed - Client confirmation rejected
    │   ├── SignatureVerificationFailed - Checkout signature mismatch
    │   ├── PaymentNotCompleted - Gateway payment not captured/authorized
    │   ├── PaymentAmountMismatch - Gateway amount != order total
    │   └── PaymentCurrencyMismatch - Gateway currency != order currency
    ├── PaymentProcessingError - Payment processing failures
    │   ├── OrderCreationFailed - Razorpay order could not be created
    │   └── GatewayError - Base for all Razorpay API errors (502)
    │       ├── GatewayRequestInvalid - Rejected request (permanent)
    │       ├── GatewayAuthInvalid - Rejected credentials (permanent)
    │       └── GatewayUnavailable - Timeout, network, 5xx (transient, retry, 503)
    ├── InvalidWebhookSignature - Webhook HMAC mismatch
    ├── MalformedWebhookPayload - Webhook body is not a usable event
    ├── UnsupportedWebhookEvent - No handler for the event type
    ├── PaymentRequiresReconciliation - Captured money for an order that cannot complete
    │   ├── PaymentAcceptedForExpiredOrder - Capture arrived after reservation expiry
    │   └── PaymentAcceptedForCancelledOrder - Capture arrived after cancellation
    └── RazorpayConfigurationError - Missing/invalid settings (500)

    InvalidOrderState - Order not in a state that allows the operation (ConflictError)
    OrderIdMismatch - Client razorpay_order_id differs from the binding (ConflictError)
    OrderNotAwaitingPayment - Capture for an order that is not awaiting payment (ConflictError)
    LockAcquisitionError - Distributed lock timeout (ConflictError)

Usage:
    from payments.exceptions import GatewayError, OrderNotFound

    try:
        RazorpayAdapter.fetch_payment(payment_id)
    except GatewayError as e:
        if e.is_retryable:
            ...

Note:
    Messages never contain key secrets, webhook secrets or signatures.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    All payment-specific exceptions inherit from this class,
    which itself inherits from BaseApplicationError for
    consistent API error responses.

    Example:
        try:
            PaymentVerificationService.verify(...)
        except PaymentError as e:
            return Response(e.to_dict(), status=e.status_code)
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentNotFoundError(PaymentError):
    """
    Raised when a payment entity cannot be found.

    Use for:
    - PaymentBinding lookup fails
    - Gateway payment lookup fails
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"
    status_code: int = 404


class OrderNotFound(PaymentNotFoundError):
    """
    Raised when the order, or its Razorpay binding, does not exist.

    Example:
        binding = PaymentBinding.objects.filter(order=order).first()
        if not binding:
            raise OrderNotFound(
                "No Razorpay order exists for this order",
                error_code="BINDING_NOT_FOUND",
                details={"order_short_id": order.short_id},
            )
    """

    default_error_code: str = "ORDER_NOT_FOUND"


class PaymentValidationError(PaymentError):
    """
    Raised when payment validation fails.

    Use for:
    - Zero, negative, or out-of-range amounts
    - Unsupported currency
    - Amounts with more than two decimal places
    - Malformed verification input
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


# -----------------------------------------------------------------------------
# Verification Failures
# -----------------------------------------------------------------------------


class PaymentVerificationFailed(PaymentError):
    """
    Raised when a client payment confirmation cannot be accepted.

    The order is left unchanged, except for signature failures which
    record PAYMENT_FAILED.
    """

    default_error_code: str = "PAYMENT_VERIFICATION_FAILED"


class SignatureVerificationFailed(PaymentVerificationFailed):
    """Checkout signature does not match order_id|payment_id."""

    default_error_code: str = "SIGNATURE_VERIFICATION_FAILED"


class PaymentNotCompleted(PaymentVerificationFailed):
    """Gateway reports the payment as neither captured nor authorized."""

    default_error_code: str = "PAYMENT_NOT_COMPLETED"


class PaymentAmountMismatch(PaymentVerificationFailed):
    """Gateway amount differs from the order total in minor units."""

    default_error_code: str = "PAYMENT_AMOUNT_MISMATCH"


class PaymentCurrencyMismatch(PaymentVerificationFailed):
    """Gateway currency differs from the order currency."""

    default_error_code: str = "PAYMENT_CURRENCY_MISMATCH"


class PaymentProcessingError(PaymentError):
    """
    Raised when payment processing fails.

    Use for:
    - Razorpay API errors
    - Payment gateway failures
    - Processing timeouts
    """

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


class OrderCreationFailed(PaymentProcessingError):
    """
    Raised when the Razorpay order for a checkout could not be created.

    Carries is_retryable from the gateway error that caused it, and
    answers 503 for transient causes and 502 otherwise. No binding is
    persisted when this is raised.
    """

    default_error_code: str = "ORDER_CREATION_FAILED"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
        is_retryable: bool = False,
    ):
        super().__init__(message, error_code=error_code, details=details)
        self.is_retryable = is_retryable
        self.status_code = 503 if is_retryable else 502


# =============================================================================
# Razorpay Gateway Exceptions
# =============================================================================


class GatewayError(PaymentProcessingError):
    """
    Base exception for all Razorpay API errors.

    Provides common attributes for gateway error handling:
    - gateway_code: Razorpay's error code, when it sent one
    - is_retryable: Whether the operation can be retried

    Use is_retryable to determine retry behavior:
    - True: Transient error, safe to retry with backoff
    - False: Permanent error, do not retry

    Example:
        try:
            RazorpayAdapter.create_order(params)
        except GatewayError as e:
            if e.is_retryable:
                ...  # ask the client to try again later
    """

    default_error_code: str = "GATEWAY_ERROR"
    status_code: int = 502
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        gateway_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if gateway_code:
            details["gateway_code"] = gateway_code
        super().__init__(message, error_code=error_code, details=details)
        self.gateway_code = gateway_code


# -----------------------------------------------------------------------------
# Permanent Errors (do not retry)
# -----------------------------------------------------------------------------


class GatewayRequestInvalid(GatewayError):
    """
    Razorpay rejected the request parameters.

    The request will never succeed with the same parameters, e.g. a
    refund larger than the captured amount or an unknown payment id.
    """

    default_error_code: str = "GATEWAY_REQUEST_INVALID"
    is_retryable: bool = False


class GatewayAuthInvalid(GatewayError):
    """
    Razorpay rejected the API credentials.

    Requires operator action on RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET.
    """

    default_error_code: str = "GATEWAY_AUTH_INVALID"
    is_retryable: bool = False


# -----------------------------------------------------------------------------
# Transient Errors (safe to retry with backoff)
# -----------------------------------------------------------------------------


class GatewayUnavailable(GatewayError):
    """
    Razorpay could not be reached or answered with a server error.

    This covers:
    - Request timeouts (RAZORPAY_API_TIMEOUT_SECONDS)
    - Network connectivity issues
    - Razorpay server and gateway errors

    IMPORTANT: For writes the operation may have succeeded on Razorpay's
    side. Only idempotent reads are retried automatically.
    """

    default_error_code: str = "GATEWAY_UNAVAILABLE"
    status_code: int = 503
    is_retryable: bool = True


# =============================================================================
# Webhook Exceptions
# =============================================================================


class InvalidWebhookSignature(PaymentError):
    """X-Razorpay-Signature does not match the raw request body."""

    default_error_code: str = "INVALID_WEBHOOK_SIGNATURE"


class MalformedWebhookPayload(PaymentError):
    """Webhook body is not JSON, not an object, or has no event field."""

    default_error_code: str = "MALFORMED_WEBHOOK_PAYLOAD"


class UnsupportedWebhookEvent(PaymentError):
    """No handler is registered for the webhook event type."""

    default_error_code: str = "UNSUPPORTED_WEBHOOK_EVENT"


class PaymentRequiresReconciliation(PaymentError):
    """
    Raised when Razorpay captured money for an order that cannot complete.

    The gateway holds the buyer's money, so the webhook pipeline flags the
    binding for manual reconciliation instead of dropping the event.
    """

    default_error_code: str = "PAYMENT_REQUIRES_RECONCILIATION"
    status_code: int = 409


class PaymentAcceptedForExpiredOrder(PaymentRequiresReconciliation):
    """Raised when a capture arrives for an order whose reservation expired."""

    default_error_code: str = "PAYMENT_ACCEPTED_FOR_EXPIRED_ORDER"


class PaymentAcceptedForCancelledOrder(PaymentRequiresReconciliation):
    """Raised when a capture arrives for an order cancelled before payment."""

    default_error_code: str = "PAYMENT_ACCEPTED_FOR_CANCELLED_ORDER"


# =============================================================================
# Configuration Exceptions
# =============================================================================


class RazorpayConfigurationError(PaymentError):
    """
    Raised when Razorpay settings are missing or invalid.

    The message names the setting, never its value.
    """

    default_error_code: str = "RAZORPAY_CONFIGURATION_ERROR"
    status_code: int = 500


# =============================================================================
# State & Concurrency Control Exceptions
# =============================================================================


class InvalidOrderState(ConflictError):
    """
    Raised when the order is not in a state that allows the operation.

    Example:
        if order.status != OrderStatus.RESERVED:
            raise InvalidOrderState(
                f"Cannot verify payment for order in {order.status} status",
                details={"order_short_id": order.short_id, "current_status": order.status},
            )
    """

    default_error_code: str = "INVALID_ORDER_STATE"


class OrderIdMismatch(ConflictError):
    """Client-supplied razorpay_order_id is not the one bound to the order."""

    default_error_code: str = "ORDER_ID_MISMATCH"


class OrderNotAwaitingPayment(ConflictError):
    """
    Raised when a capture arrives for an order that already has a result.

    A conflict never succeeds on redelivery, so the webhook pipeline
    acknowledges it without applying anything.
    """

    default_error_code: str = "ORDER_NOT_AWAITING_PAYMENT"


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    This exception indicates that another process holds the lock
    and it couldn't be acquired within the timeout period.

    Example:
        lock = DistributedLock("refund:order:123", ttl=120, timeout=10)
        if not lock.acquire():
            raise LockAcquisitionError(
                "Failed to acquire lock 'refund:order:123' within 10s",
                details={"key": "refund:order:123", "timeout": 10}
            )

    Note:
        This exception inherits from ConflictError (HTTP 409) because
        it represents a resource contention conflict.
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Payment domain
    "PaymentError",
    "PaymentNotFoundError",
    "OrderNotFound",
    "PaymentValidationError",
    "PaymentProcessingError",
    "OrderCreationFailed",
    # Verification
    "PaymentVerificationFailed",
    "SignatureVerificationFailed",
    "PaymentNotCompleted",
    "PaymentAmountMismatch",
    "PaymentCurrencyMismatch",
    # Razorpay gateway
    "GatewayError",
    "GatewayRequestInvalid",
    "GatewayAuthInvalid",
    "GatewayUnavailable",
    # Webhooks
    "InvalidWebhookSignature",
    "MalformedWebhookPayload",
    "UnsupportedWebhookEvent",
    "PaymentRequiresReconciliation",
    "PaymentAcceptedForExpiredOrder",
    "PaymentAcceptedForCancelledOrder",
    # Configuration
    "RazorpayConfigurationError",
    # State & concurrency control
    "InvalidOrderState",
    "OrderIdMismatch",
    "OrderNotAwaitingPayment",
    "LockAcquisitionError",
]
