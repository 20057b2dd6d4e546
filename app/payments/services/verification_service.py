"""
Payment verification service for client-side checkout confirmations.

After Razorpay Checkout succeeds the browser posts the payment id, the
Razorpay order id and the checkout signature. This service authenticates
that confirmation, cross-checks the payment with Razorpay and records it
on the order.

Usage:
    from payments.services import PaymentVerificationService

    result = PaymentVerificationService.verify(
        order_short_id="o_abc123",
        razorpay_payment_id="pay_Nxyz789",
        razorpay_order_id="order_Nabc123",
        signature=request.data["razorpay_signature"],
    )
    if result.already_verified:
        ...  # a previous confirmation or webhook already recorded the payment
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import transaction

from core.services import BaseService

from orders.services import OrderService
from orders.states import OrderPaymentStatus, OrderStatus, PaymentProvider
from payments.adapters import RazorpayAdapter
from payments.amounts import to_minor_units
from payments.exceptions import (
    InvalidOrderState,
    OrderIdMismatch,
    OrderNotFound,
    PaymentAmountMismatch,
    PaymentCurrencyMismatch,
    PaymentNotCompleted,
    PaymentValidationError,
    SignatureVerificationFailed,
)
from payments.models import PaymentBinding
from payments.services.order_completion import complete_paid_order
from payments.state_machines import ACCEPTED_PAYMENT_STATUSES, GatewayPaymentStatus

if TYPE_CHECKING:
    from orders.models import Order
    from payments.adapters import PaymentDetails


PAYMENT_ID_PREFIX = "pay_"
ORDER_ID_PREFIX = "order_"


@dataclass
class VerificationResult:
    """
    Outcome of a client payment confirmation.

    Attributes:
        verified: The payment is recorded against the order
        already_verified: It was recorded by an earlier confirmation or webhook
        order_status: Order status after verification
        payment_status: Order payment status after verification
        payment_method: Razorpay payment method, when the payment was fetched
    """

    verified: bool
    already_verified: bool
    order_status: str
    payment_status: str
    payment_method: str | None = None


class PaymentVerificationService(BaseService):
    """
    Service for verifying client payment confirmations.

    Flow (one transaction, order and binding rows locked):
        1. Resolve the order and its binding
        2. Return the idempotent result if the payment is already recorded
        3. Check the Razorpay order id against the binding
        4. Check the checkout signature (failure records PAYMENT_FAILED
           unless a payment is already received)
        5. Fetch the payment and check status, amount and currency
        6. Record the payment on the binding
        7. Set PAYMENT_RECEIVED
        8. Complete the order if the payment is captured

    Any exit before step 7 leaves the order unchanged, except a bad
    signature.
    """

    # Razorpay adapter - can be injected for testing
    _gateway_adapter: type | None = None

    @classmethod
    def get_gateway_adapter(cls) -> type:
        """Get the Razorpay adapter class."""
        return cls._gateway_adapter or RazorpayAdapter

    @classmethod
    def set_gateway_adapter(cls, adapter: type | None) -> None:
        """Set the Razorpay adapter class (for testing)."""
        cls._gateway_adapter = adapter

    @classmethod
    def validate_input(
        cls,
        razorpay_payment_id: str,
        razorpay_order_id: str,
        signature: str,
    ) -> None:
        """
        Reject empty or malformed confirmation values.

        Raises:
            PaymentValidationError: With error_code INVALID_VERIFICATION_INPUT
        """
        errors = {}
        validation = cls.validate_required(
            razorpay_payment_id=razorpay_payment_id,
            razorpay_order_id=razorpay_order_id,
            razorpay_signature=signature,
        )
        if validation is not None:
            errors.update(validation.errors or {})

        if "razorpay_payment_id" not in errors and not str(razorpay_payment_id).startswith(
            PAYMENT_ID_PREFIX
        ):
            errors["razorpay_payment_id"] = [f"Must start with '{PAYMENT_ID_PREFIX}'."]
        if "razorpay_order_id" not in errors and not str(razorpay_order_id).startswith(
            ORDER_ID_PREFIX
        ):
            errors["razorpay_order_id"] = [f"Must start with '{ORDER_ID_PREFIX}'."]

        if errors:
            raise PaymentValidationError(
                "Invalid payment verification data",
                error_code="INVALID_VERIFICATION_INPUT",
                details={"errors": errors},
            )

    @classmethod
    def verify(
        cls,
        order_short_id: str,
        razorpay_payment_id: str,
        razorpay_order_id: str,
        signature: str,
    ) -> VerificationResult:
        """
        Verify a client payment confirmation and record the payment.

        Args:
            order_short_id: Public order reference
            razorpay_payment_id: Razorpay payment ID (pay_xxx)
            razorpay_order_id: Razorpay order ID (order_xxx)
            signature: Checkout signature over "order_id|payment_id"

        Returns:
            VerificationResult

        Raises:
            PaymentValidationError: Malformed input
            OrderNotFound: Unknown order, or no Razorpay order was created for it
            InvalidOrderState: Order is not RESERVED and not paid
            OrderIdMismatch: razorpay_order_id is not the bound one
            SignatureVerificationFailed: Signature mismatch (PAYMENT_FAILED is kept
                unless a payment was already received)
            PaymentNotCompleted: Payment neither captured nor authorized
            PaymentAmountMismatch: Amount differs from the order total
            PaymentCurrencyMismatch: Currency differs from the order currency
            GatewayError: Razorpay could not be queried
        """
        cls.validate_input(razorpay_payment_id, razorpay_order_id, signature)

        log_context = {
            "order_short_id": order_short_id,
            "razorpay_order_id": razorpay_order_id,
            "razorpay_payment_id": razorpay_payment_id,
        }
        cls.get_logger().info("Payment verification started", extra=log_context)

        with cls.atomic():
            result = cls._verify_locked(
                order_short_id, razorpay_payment_id, razorpay_order_id, signature
            )

        # Any PAYMENT_FAILED write above has committed
        if result is None:
            raise SignatureVerificationFailed(
                "Payment signature verification failed",
                details={"order_short_id": order_short_id},
            )

        cls.get_logger().info(
            "Payment verification finished",
            extra={
                **log_context,
                "already_verified": result.already_verified,
                "order_status": result.order_status,
                "payment_status": result.payment_status,
            },
        )
        return result

    @classmethod
    def _verify_locked(
        cls,
        order_short_id: str,
        razorpay_payment_id: str,
        razorpay_order_id: str,
        signature: str,
    ) -> VerificationResult | None:
        """Steps 1-8 under row locks. Returns None for a rejected signature."""
        logger = cls.get_logger()

        order = OrderService.find_order_by_short_id(order_short_id, for_update=True)
        if order is None:
            raise OrderNotFound(
                f"Order {order_short_id} not found",
                details={"order_short_id": order_short_id},
            )

        binding = PaymentBinding.objects.select_for_update().filter(order=order).first()
        if binding is None:
            raise OrderNotFound(
                "No Razorpay order exists for this order",
                error_code="BINDING_NOT_FOUND",
                details={"order_short_id": order_short_id},
            )

        if order.status != OrderStatus.RESERVED:
            if order.payment_status == OrderPaymentStatus.PAYMENT_RECEIVED:
                return cls._already_verified(order)
            raise InvalidOrderState(
                "Order is not in a valid state for payment verification",
                details={"order_short_id": order_short_id, "current_status": order.status},
            )

        if (
            order.payment_status == OrderPaymentStatus.PAYMENT_RECEIVED
            and binding.razorpay_payment_id == razorpay_payment_id
        ):
            return cls._already_verified(order)

        if binding.razorpay_order_id != razorpay_order_id:
            logger.error(
                "Razorpay order ID mismatch",
                extra={
                    "order_short_id": order_short_id,
                    "expected_razorpay_order_id": binding.razorpay_order_id,
                    "provided_razorpay_order_id": razorpay_order_id,
                },
            )
            raise OrderIdMismatch(
                "Razorpay order ID mismatch",
                details={"order_short_id": order_short_id},
            )

        adapter = cls.get_gateway_adapter()
        if not adapter.verify_payment_signature(razorpay_order_id, razorpay_payment_id, signature):
            logger.error(
                "Payment signature verification failed",
                extra={
                    "order_short_id": order_short_id,
                    "razorpay_order_id": razorpay_order_id,
                    "razorpay_payment_id": razorpay_payment_id,
                },
            )
            # A received payment is never downgraded by a forged confirmation
            if order.payment_status != OrderPaymentStatus.PAYMENT_RECEIVED:
                OrderService.update_order_fields(
                    order.id, payment_status=OrderPaymentStatus.PAYMENT_FAILED
                )
            return None

        payment = adapter.fetch_payment(razorpay_payment_id)
        cls._check_payment(order, payment)

        binding.record_payment(
            razorpay_payment_id,
            amount_received=payment.amount,
            signature=signature,
        )
        OrderService.update_order_fields(
            order.id,
            payment_status=OrderPaymentStatus.PAYMENT_RECEIVED,
            payment_provider=PaymentProvider.RAZORPAY,
        )

        if payment.status == GatewayPaymentStatus.CAPTURED:
            cls._complete(order)

        order.refresh_from_db(fields=["status", "payment_status"])
        return VerificationResult(
            verified=True,
            already_verified=False,
            order_status=order.status,
            payment_status=order.payment_status,
            payment_method=payment.method,
        )

    @classmethod
    def _check_payment(cls, order: Order, payment: PaymentDetails) -> None:
        if payment.status not in ACCEPTED_PAYMENT_STATUSES:
            raise PaymentNotCompleted(
                f"Payment is not completed (status: {payment.status})",
                details={"razorpay_payment_id": payment.id, "payment_status": payment.status},
            )

        expected_amount = to_minor_units(order.total_gross)
        if payment.amount != expected_amount:
            cls.get_logger().error(
                "Payment amount mismatch",
                extra={
                    "order_short_id": order.short_id,
                    "razorpay_payment_id": payment.id,
                    "expected_amount": expected_amount,
                    "actual_amount": payment.amount,
                },
            )
            raise PaymentAmountMismatch(
                "Payment amount does not match the order total",
                details={"expected_amount": expected_amount, "actual_amount": payment.amount},
            )

        if (payment.currency or "").upper() != (order.currency or "").upper():
            raise PaymentCurrencyMismatch(
                "Payment currency does not match the order currency",
                details={
                    "expected_currency": order.currency.upper(),
                    "actual_currency": payment.currency,
                },
            )

    @classmethod
    def _complete(cls, order: Order) -> None:
        """Complete a captured order. Failures are logged, never raised."""
        try:
            with transaction.atomic():
                complete_paid_order(order)
        except Exception:
            cls.get_logger().error(
                "Order completion after verification failed",
                extra={"order_id": str(order.id), "order_short_id": order.short_id},
                exc_info=True,
            )

    @classmethod
    def _already_verified(cls, order: Order) -> VerificationResult:
        cls.get_logger().info(
            "Payment already verified",
            extra={"order_short_id": order.short_id},
        )
        return VerificationResult(
            verified=True,
            already_verified=True,
            order_status=order.status,
            payment_status=order.payment_status,
        )
