"""
Razorpay API adapter for payment operations.

This module provides the RazorpayAdapter class which encapsulates all
Razorpay API interactions. All Razorpay calls should go through this
adapter to ensure consistent error handling, timeouts, secret redaction,
and observability.

Features:
- Configurable timeout on every API call
- Automatic error translation to domain exceptions
- Structured logging with timing metrics
- Automatic retry with backoff for idempotent reads only
- Thread-safe for use from Celery workers

Configuration (via payments.configuration):
- RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET: API credentials
- RAZORPAY_WEBHOOK_SECRET: Webhook signing secret
- RAZORPAY_API_TIMEOUT_SECONDS: API call timeout (default: 30)
- RAZORPAY_MAX_RETRIES: Max retry attempts for reads (default: 3)

Usage:
    from payments.adapters import CreateOrderParams, RazorpayAdapter

    # Create a Razorpay order for a reservation
    result = RazorpayAdapter.create_order(
        CreateOrderParams(
            amount=5000,
            currency="INR",
            receipt="order_o_abc123",
            notes={"order_id": str(order.id)},
        )
    )

    # Fetch a payment (retried on transient errors)
    payment = RazorpayAdapter.fetch_payment("pay_xxx")
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import razorpay
import requests

from payments import signatures
from payments.configuration import get_razorpay_configuration
from payments.exceptions import (
    GatewayAuthInvalid,
    GatewayError,
    GatewayRequestInvalid,
    GatewayUnavailable,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from payments.configuration import RazorpayConfiguration


REDACTED = "[REDACTED]"

# Razorpay limits receipts to 40 characters and notes to 15 keys
MAX_RECEIPT_LENGTH = 40
MAX_NOTES = 15
MAX_NOTE_LENGTH = 256


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CreateOrderParams:
    """
    Parameters for creating a Razorpay order.

    Attributes:
        amount: Amount in the currency's minor unit (e.g., paise)
        currency: ISO 4217 currency code (uppercase)
        receipt: Merchant reference, at most 40 characters
        notes: Key-value pairs attached to the order
    """

    amount: int
    currency: str
    receipt: str
    notes: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate parameters after initialization."""
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.currency:
            raise ValueError("currency is required")
        self.currency = self.currency.upper()
        if not self.receipt or len(self.receipt) > MAX_RECEIPT_LENGTH:
            raise ValueError(f"receipt must be 1-{MAX_RECEIPT_LENGTH} characters")
        if len(self.notes) > MAX_NOTES:
            raise ValueError(f"at most {MAX_NOTES} notes are allowed")
        self.notes = {str(k): str(v)[:MAX_NOTE_LENGTH] for k, v in self.notes.items()}


@dataclass
class CreateRefundParams:
    """
    Parameters for refunding a Razorpay payment.

    Attributes:
        payment_id: Razorpay payment ID (pay_xxx)
        amount: Amount to refund in minor units
        notes: Key-value pairs attached to the refund
    """

    payment_id: str
    amount: int
    notes: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.payment_id:
            raise ValueError("payment_id is required")
        if self.amount <= 0:
            raise ValueError("amount must be positive")


@dataclass
class GatewayOrderResult:
    """
    Result from Razorpay order creation.

    Attributes:
        id: Razorpay order ID (order_xxx)
        amount: Amount in minor units
        currency: Currency code
        receipt: Merchant reference
        status: Order status (created, attempted, paid)
        raw_response: Full Razorpay response dict
    """

    id: str
    amount: int
    currency: str
    receipt: str | None
    status: str
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentDetails:
    """
    Result from Razorpay payment lookups.

    Attributes:
        id: Razorpay payment ID (pay_xxx)
        order_id: Razorpay order ID the payment belongs to
        status: created, authorized, captured, refunded or failed
        amount: Amount in minor units
        currency: Currency code
        captured: Whether the payment has been captured
        amount_refunded: Total refunded so far in minor units
        method: Payment method (card, upi, netbanking, ...)
        error_code / error_description: Failure details, if any
        raw_response: Full Razorpay response dict
    """

    id: str
    order_id: str | None
    status: str
    amount: int
    currency: str
    captured: bool = False
    amount_refunded: int = 0
    method: str | None = None
    error_code: str | None = None
    error_description: str | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class RefundResult:
    """
    Result from Razorpay refund operations.

    Attributes:
        id: Refund ID (rfnd_xxx)
        payment_id: Refunded payment ID
        amount: Refunded amount in minor units
        currency: Currency code
        status: pending, processed or failed
        raw_response: Full Razorpay response dict
    """

    id: str
    payment_id: str
    amount: int
    currency: str
    status: str
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Retry Logic Helpers
# =============================================================================


def is_retryable_gateway_error(error: Exception) -> bool:
    """
    Check if a gateway error is retryable.

    Args:
        error: The exception to check

    Returns:
        True if the error is a transient Razorpay error that can be retried
    """
    if isinstance(error, GatewayError):
        return getattr(error, "is_retryable", False)
    return False


def backoff_delay(attempt: int, base: float = 1.0, max_delay: float = 60.0) -> float:
    """
    Calculate exponential backoff delay with jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        base: Base delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)

    Returns:
        Delay in seconds with jitter (0-25% of calculated delay)

    Example:
        # Attempt 0: 1.0 - 1.25 seconds
        # Attempt 1: 2.0 - 2.5 seconds
        # Attempt 2: 4.0 - 5.0 seconds
        delay = backoff_delay(attempt=2)
    """
    delay = min(base * (2**attempt), max_delay)
    jitter = delay * random.uniform(0, 0.25)
    return delay + jitter


def redact(message: str, *secrets: str) -> str:
    """Replace every occurrence of the given secrets in message."""
    for secret in secrets:
        if secret:
            message = message.replace(secret, REDACTED)
    return message


# =============================================================================
# Razorpay Adapter
# =============================================================================


class RazorpayAdapter:
    """
    Adapter for Razorpay API operations.

    All methods are classmethods - no instance state is maintained.
    A client is built per call from the current configuration.

    Usage:
        result = RazorpayAdapter.create_order(params)
        payment = RazorpayAdapter.fetch_payment("pay_xxx")
        refund = RazorpayAdapter.create_refund(CreateRefundParams("pay_xxx", 2500))
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _get_config() -> RazorpayConfiguration:
        return get_razorpay_configuration()

    @classmethod
    def _get_client(cls, config: RazorpayConfiguration) -> razorpay.Client:
        """Build a Razorpay client for the configured credentials."""
        return razorpay.Client(auth=(config.key_id, config.key_secret))

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Get logger for this adapter."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    def _call(
        cls,
        operation: Callable[[razorpay.Client, int], dict[str, Any]],
        log_context: dict[str, Any],
        level: int = logging.INFO,
    ) -> dict[str, Any]:
        """
        Run one Razorpay API call with timing, logging and error translation.

        Raises:
            GatewayError: Any failure, translated by _handle_razorpay_error
        """
        config = cls._get_config()
        logger = cls.get_logger()

        start_time = time.time()
        logger.log(level, "Starting Razorpay operation", extra=log_context)

        try:
            response = operation(cls._get_client(config), config.timeout)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_razorpay_error(e, log_context, duration_ms, config)
            raise  # Never reached, but satisfies type checker

        duration_ms = (time.time() - start_time) * 1000
        logger.log(
            level,
            "Razorpay operation completed",
            extra={**log_context, "duration_ms": duration_ms},
        )
        return response

    # =========================================================================
    # Core Operations
    # =========================================================================

    @classmethod
    def create_order(cls, params: CreateOrderParams) -> GatewayOrderResult:
        """
        Create a Razorpay order.

        Not retried automatically: a timeout may still have created the order.

        Args:
            params: Parameters for creating the order

        Returns:
            GatewayOrderResult with the Razorpay order id

        Raises:
            GatewayRequestInvalid: Invalid parameters
            GatewayAuthInvalid: Credentials rejected
            GatewayUnavailable: Razorpay unreachable or failing
        """
        log_context = {
            "operation": "create_order",
            "amount": params.amount,
            "currency": params.currency,
            "receipt": params.receipt,
        }

        order = cls._call(
            lambda client, timeout: client.order.create(
                data={
                    "amount": params.amount,
                    "currency": params.currency,
                    "receipt": params.receipt,
                    "notes": params.notes,
                },
                timeout=timeout,
            ),
            log_context,
        )

        return GatewayOrderResult(
            id=order["id"],
            amount=int(order.get("amount", params.amount)),
            currency=str(order.get("currency", params.currency)).upper(),
            receipt=order.get("receipt"),
            status=order.get("status", "created"),
            raw_response=order,
        )

    @classmethod
    def fetch_payment(cls, payment_id: str) -> PaymentDetails:
        """
        Fetch a payment by ID.

        Retried with exponential backoff on GatewayUnavailable, up to
        RAZORPAY_MAX_RETRIES additional attempts.

        Raises:
            GatewayRequestInvalid: Payment not found
            GatewayUnavailable: Still failing after all retries
        """
        max_retries = cls._get_config().max_retries
        attempt = 0
        while True:
            try:
                return cls._fetch_payment_once(payment_id)
            except GatewayUnavailable:
                if attempt >= max_retries:
                    raise
                delay = backoff_delay(attempt)
                cls.get_logger().warning(
                    "Retrying Razorpay payment fetch",
                    extra={
                        "razorpay_payment_id": payment_id,
                        "attempt": attempt + 1,
                        "delay_seconds": delay,
                    },
                )
                time.sleep(delay)
                attempt += 1

    @classmethod
    def _fetch_payment_once(cls, payment_id: str) -> PaymentDetails:
        log_context = {
            "operation": "fetch_payment",
            "razorpay_payment_id": payment_id,
        }

        payment = cls._call(
            lambda client, timeout: client.payment.fetch(payment_id, timeout=timeout),
            log_context,
            level=logging.DEBUG,
        )

        return PaymentDetails(
            id=payment.get("id", payment_id),
            order_id=payment.get("order_id"),
            status=payment.get("status", ""),
            amount=int(payment.get("amount") or 0),
            currency=str(payment.get("currency") or "").upper(),
            captured=bool(payment.get("captured", False)),
            amount_refunded=int(payment.get("amount_refunded") or 0),
            method=payment.get("method"),
            error_code=payment.get("error_code"),
            error_description=payment.get("error_description"),
            raw_response=payment,
        )

    @classmethod
    def create_refund(cls, params: CreateRefundParams) -> RefundResult:
        """
        Refund a captured payment.

        Not retried automatically: a timeout may still have issued the refund.

        Raises:
            GatewayRequestInvalid: Refund not possible (amount too large, not captured)
            GatewayUnavailable: Razorpay unreachable or failing
        """
        log_context = {
            "operation": "create_refund",
            "razorpay_payment_id": params.payment_id,
            "amount": params.amount,
        }

        data: dict[str, Any] = {"amount": params.amount}
        if params.notes:
            data["notes"] = params.notes

        refund = cls._call(
            lambda client, timeout: client.payment.refund(params.payment_id, data, timeout=timeout),
            log_context,
        )

        return RefundResult(
            id=refund["id"],
            payment_id=refund.get("payment_id", params.payment_id),
            amount=int(refund.get("amount", params.amount)),
            currency=str(refund.get("currency") or "").upper(),
            status=refund.get("status", ""),
            raw_response=refund,
        )

    # =========================================================================
    # Signature Verification
    # =========================================================================

    @classmethod
    def verify_payment_signature(cls, order_id: str, payment_id: str, signature: str) -> bool:
        """Check a checkout signature with the configured key secret."""
        return signatures.verify_payment_signature(
            order_id,
            payment_id,
            signature,
            cls._get_config().key_secret,
        )

    @classmethod
    def verify_webhook_signature(cls, raw_payload: bytes, signature: str) -> bool:
        """Check a webhook signature with the configured webhook secret."""
        return signatures.verify_webhook_signature(
            raw_payload,
            signature,
            cls._get_config().webhook_secret,
        )

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_razorpay_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
        config: RazorpayConfiguration,
    ) -> None:
        """
        Translate Razorpay SDK and transport errors to domain exceptions.

        Args:
            error: The exception raised by the SDK or requests
            log_context: Logging context dict
            duration_ms: Operation duration for logging
            config: Configuration whose secrets must not leak

        Raises:
            GatewayAuthInvalid: Credentials rejected
            GatewayRequestInvalid: Invalid request parameters
            GatewayUnavailable: Timeout, connection error or server error
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}
        message = redact(str(error), config.key_secret, config.webhook_secret)

        if isinstance(error, razorpay.errors.BadRequestError):
            if "authentication" in message.lower():
                logger.critical(
                    "Razorpay authentication failed - check API key",
                    extra=log_context,
                )
                raise GatewayAuthInvalid(
                    "Razorpay authentication failed",
                    gateway_code="authentication_error",
                ) from None

            logger.error(
                "Invalid request to Razorpay",
                extra={**log_context, "gateway_message": message},
            )
            raise GatewayRequestInvalid(
                message or "Razorpay rejected the request",
                gateway_code="bad_request_error",
            ) from None

        elif isinstance(error, razorpay.errors.GatewayError):
            logger.error("Razorpay gateway error", extra=log_context)
            raise GatewayUnavailable(
                "Razorpay gateway error. Please retry.",
                gateway_code="gateway_error",
            ) from None

        elif isinstance(error, razorpay.errors.ServerError):
            logger.error("Razorpay server error", extra=log_context)
            raise GatewayUnavailable(
                "Razorpay service error. Please retry.",
                gateway_code="server_error",
            ) from None

        elif isinstance(error, requests.Timeout):
            logger.error("Razorpay request timed out", extra=log_context)
            raise GatewayUnavailable(
                f"Razorpay did not respond within {config.timeout}s. Please retry.",
                gateway_code="timeout",
            ) from None

        elif isinstance(error, requests.ConnectionError):
            logger.error("Connection error to Razorpay", extra=log_context)
            raise GatewayUnavailable(
                "Could not connect to Razorpay. Please retry.",
                gateway_code="api_connection_error",
            ) from None

        else:
            logger.error(
                "Unexpected error from Razorpay",
                extra={**log_context, "error_type": type(error).__name__},
            )
            raise GatewayUnavailable(
                f"Unexpected Razorpay error: {type(error).__name__}",
                gateway_code="unknown_error",
            ) from None
