"""
Refund service for returning money to buyers through Razorpay.

This module provides the RefundService class which handles operator
initiated refunds of completed orders.

The service implements:
1. Refund eligibility checking based on order and binding state
2. Amount bounds checking against what Razorpay received and refunded
3. Partial and full refunds, optionally cancelling the order
4. Buyer notification after the refund commits

Usage:
    from payments.services import RefundService

    # Check refund eligibility (no side effects)
    preview = RefundService.get_refund_preview(order.id)

    if preview.eligible:
        result = RefundService.create_refund(
            order_id=order.id,
            amount=2500,  # Partial refund, minor units
        )

        if result.success:
            print(f"Refund created: {result.data.refund_id}")
        else:
            print(f"Refund refused: {result.error_code}")
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from django.db import transaction

from core.services import BaseService, ServiceResult

from orders.events import OrderEvent, OrderEventType
from orders.services import OrderService
from orders.states import OrderRefundStatus, OrderStatus
from payments.adapters import CreateRefundParams, RazorpayAdapter
from payments.amounts import to_major_units
from payments.configuration import get_razorpay_configuration
from payments.exceptions import LockAcquisitionError, OrderNotFound
from payments.locks import DistributedLock, refund_lock_key
from payments.models import PaymentBinding
from payments.state_machines import ACCEPTED_PAYMENT_STATUSES

if TYPE_CHECKING:
    from orders.models import Order
    from payments.adapters import PaymentDetails


# =============================================================================
# Constants
# =============================================================================

# Lock acquisition timeout (seconds)
REFUND_LOCK_TIMEOUT = 10.0

# Razorpay's smallest refund, in minor units
MIN_REFUND_AMOUNT = 100


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class RefundEligibility:
    """
    Result of a refund eligibility or amount check.

    Attributes:
        eligible: Whether the refund can go ahead
        max_refundable: Largest amount that can still be refunded (minor units)
        block_reason: Human-readable reason if not eligible
        block_code: Machine-readable reason if not eligible
        already_refunded: Amount Razorpay has already refunded (minor units)
    """

    eligible: bool
    max_refundable: int = 0
    block_reason: str | None = None
    block_code: str | None = None
    already_refunded: int = 0

    @classmethod
    def blocked(cls, reason: str, code: str, **kwargs) -> RefundEligibility:
        return cls(eligible=False, block_reason=reason, block_code=code, **kwargs)


@dataclass
class RefundOutcome:
    """
    Result of a completed refund.

    Attributes:
        refund_id: Razorpay refund ID (rfnd_xxx)
        refund_status: PARTIAL_REFUND or FULL_REFUND
        amount: Refunded amount in minor units
        order: The refreshed order
    """

    refund_id: str
    refund_status: str
    amount: int
    order: Order


# =============================================================================
# Refund Service
# =============================================================================


class RefundService(BaseService):
    """
    Service for processing refunds of Razorpay payments.

    Flow:
        1. Acquire the per-order distributed lock
        2. Lock the order and binding rows
        3. Check eligibility (order COMPLETED, payment bound, not fully refunded)
        4. Fetch the payment and check the amount against what is left
        5. Call Razorpay create_refund
        6. Store refund_id and set PARTIAL_REFUND or FULL_REFUND
        7. Cancel the order if requested
        8. Notify the buyer after commit

    Failure Handling:
        - Ineligible refunds return ServiceResult.failure with a block code
          and never reach create_refund
        - Gateway errors propagate and roll back the transaction
        - Lock contention raises LockAcquisitionError (409)
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

    # =========================================================================
    # Eligibility Checking
    # =========================================================================

    @classmethod
    def check_refund_eligibility(
        cls,
        order: Order,
        binding: PaymentBinding | None,
    ) -> RefundEligibility:
        """
        Check whether an order can be refunded at all.

        Args:
            order: The order to check
            binding: Its Razorpay binding, if one exists

        Returns:
            RefundEligibility; max_refundable is not known until the
            payment is fetched
        """
        if binding is None:
            return RefundEligibility.blocked(
                "There is no Razorpay payment associated with this order",
                "NO_RAZORPAY_PAYMENT",
            )

        if not binding.razorpay_payment_id:
            return RefundEligibility.blocked(
                "No Razorpay payment ID is recorded for this order",
                "NO_PAYMENT_ID",
            )

        if order.status != OrderStatus.COMPLETED:
            return RefundEligibility.blocked(
                f"Cannot refund order in {order.status} status",
                "ORDER_NOT_COMPLETED",
            )

        if order.refund_status == OrderRefundStatus.FULL_REFUND:
            return RefundEligibility.blocked(
                "Order has already been fully refunded",
                "ALREADY_FULLY_REFUNDED",
            )

        return RefundEligibility(eligible=True)

    @classmethod
    def check_refund_amount(
        cls,
        payment: PaymentDetails,
        amount: int,
        amount_received: int,
    ) -> RefundEligibility:
        """
        Check a refund amount against the payment.

        Args:
            payment: Payment as currently reported by Razorpay
            amount: Requested refund in minor units
            amount_received: Amount originally received in minor units

        Returns:
            RefundEligibility with max_refundable and already_refunded set
        """
        already_refunded = payment.amount_refunded or 0
        max_refundable = max(0, amount_received - already_refunded)
        amounts = {"max_refundable": max_refundable, "already_refunded": already_refunded}

        if payment.status not in ACCEPTED_PAYMENT_STATUSES:
            return RefundEligibility.blocked(
                f"Payment is not refundable (status: {payment.status})",
                "PAYMENT_NOT_REFUNDABLE",
                **amounts,
            )
        if amount == 0:
            return RefundEligibility.blocked(
                "Refund amount must not be zero",
                "REFUND_AMOUNT_ZERO",
                **amounts,
            )
        if amount < 0:
            return RefundEligibility.blocked(
                "Refund amount must not be negative",
                "REFUND_AMOUNT_NEGATIVE",
                **amounts,
            )
        if amount < MIN_REFUND_AMOUNT:
            return RefundEligibility.blocked(
                f"Refund amount must be at least {MIN_REFUND_AMOUNT} minor units",
                "REFUND_AMOUNT_BELOW_MINIMUM",
                **amounts,
            )
        if amount > amount_received:
            return RefundEligibility.blocked(
                f"Refund amount ({amount}) exceeds the amount received ({amount_received})",
                "REFUND_AMOUNT_EXCEEDS_RECEIVED",
                **amounts,
            )
        if amount > max_refundable:
            return RefundEligibility.blocked(
                f"Refund amount ({amount}) exceeds the remaining refundable "
                f"amount ({max_refundable})",
                "REFUND_AMOUNT_EXCEEDS_REMAINING",
                **amounts,
            )

        return RefundEligibility(eligible=True, **amounts)

    @classmethod
    def get_refund_preview(cls, order_id: uuid.UUID | str) -> RefundEligibility:
        """
        Current eligibility and maximum refundable amount for an order.

        Raises:
            OrderNotFound: Unknown order
            GatewayError: Razorpay could not be queried
        """
        order = OrderService.find_order_by_id(order_id)
        if order is None:
            raise OrderNotFound(
                f"Order {order_id} not found",
                details={"order_id": str(order_id)},
            )

        binding = PaymentBinding.objects.filter(order=order).first()
        eligibility = cls.check_refund_eligibility(order, binding)
        if not eligibility.eligible:
            return eligibility

        payment = cls.get_gateway_adapter().fetch_payment(binding.razorpay_payment_id)
        already_refunded = payment.amount_refunded or 0
        received = cls._amount_received(binding, payment)
        return RefundEligibility(
            eligible=received - already_refunded > 0,
            max_refundable=max(0, received - already_refunded),
            already_refunded=already_refunded,
        )

    # =========================================================================
    # Refund Creation
    # =========================================================================

    @classmethod
    def create_refund(
        cls,
        order_id: uuid.UUID | str,
        amount: int,
        cancel_order: bool = False,
        notify_buyer: bool = True,
    ) -> ServiceResult[RefundOutcome]:
        """
        Refund part or all of an order's payment.

        Args:
            order_id: UUID of the order to refund
            amount: Amount to refund in minor units
            cancel_order: Cancel the order after refunding
            notify_buyer: Email the buyer once the refund commits (and the
                cancellation, when one happened)

        Returns:
            ServiceResult containing RefundOutcome on success, or a failure
            carrying the block code

        Raises:
            OrderNotFound: Unknown order
            LockAcquisitionError: Another refund of this order is running
            GatewayError: Razorpay rejected or did not answer the refund
        """
        cls.get_logger().info(
            "Starting refund creation",
            extra={"order_id": str(order_id), "amount": amount, "cancel_order": cancel_order},
        )

        config = get_razorpay_configuration()
        try:
            with DistributedLock(
                refund_lock_key(order_id),
                ttl=config.refund_lock_ttl,
                timeout=REFUND_LOCK_TIMEOUT,
            ):
                return cls._refund_locked(order_id, amount, cancel_order, notify_buyer)
        except LockAcquisitionError as e:
            cls.get_logger().warning(
                "Failed to acquire lock for refund",
                extra={"order_id": str(order_id), "error": str(e)},
            )
            raise

    @classmethod
    def _refund_locked(
        cls,
        order_id: uuid.UUID | str,
        amount: int,
        cancel_order: bool,
        notify_buyer: bool,
    ) -> ServiceResult[RefundOutcome]:
        logger = cls.get_logger()

        with cls.atomic():
            order = OrderService.find_order_by_id(order_id, for_update=True)
            if order is None:
                raise OrderNotFound(
                    f"Order {order_id} not found",
                    details={"order_id": str(order_id)},
                )
            binding = PaymentBinding.objects.select_for_update().filter(order=order).first()

            eligibility = cls.check_refund_eligibility(order, binding)
            if not eligibility.eligible:
                return cls._refused(order, eligibility)

            adapter = cls.get_gateway_adapter()
            payment = adapter.fetch_payment(binding.razorpay_payment_id)
            amount_received = cls._amount_received(binding, payment)

            amount_check = cls.check_refund_amount(payment, amount, amount_received)
            if not amount_check.eligible:
                return cls._refused(order, amount_check)

            refund = adapter.create_refund(
                CreateRefundParams(
                    payment_id=binding.razorpay_payment_id,
                    amount=amount,
                    notes={"order_id": str(order.id), "order_short_id": order.short_id},
                )
            )

            binding.refund_id = refund.id
            binding.save(update_fields=["refund_id", "updated_at"])

            if amount + amount_check.already_refunded == amount_received:
                refund_status = OrderRefundStatus.FULL_REFUND
            else:
                refund_status = OrderRefundStatus.PARTIAL_REFUND
            OrderService.update_order_fields(order.id, refund_status=refund_status)

            cancelled = cancel_order and order.status != OrderStatus.CANCELLED
            if cancelled:
                OrderService.cancel_order(order)

            order.refresh_from_db()

            if notify_buyer:
                events = [
                    OrderEvent(
                        OrderEventType.ORDER_REFUNDED,
                        order,
                        data={
                            "amount": amount,
                            "amount_display": str(to_major_units(amount)),
                        },
                    )
                ]
                if cancelled:
                    events.append(OrderEvent(OrderEventType.ORDER_CANCELLED, order))
                for event in events:
                    transaction.on_commit(partial(OrderService.notify, event))

        logger.info(
            "Razorpay refund processed",
            extra={
                "order_id": str(order.id),
                "razorpay_payment_id": binding.razorpay_payment_id,
                "refund_id": refund.id,
                "amount": amount,
                "refund_status": str(refund_status),
            },
        )

        return ServiceResult.success(
            RefundOutcome(
                refund_id=refund.id,
                refund_status=str(refund_status),
                amount=amount,
                order=order,
            )
        )

    @classmethod
    def _amount_received(cls, binding: PaymentBinding, payment: PaymentDetails) -> int:
        if binding.amount_received is not None:
            return binding.amount_received
        return payment.amount

    @classmethod
    def _refused(cls, order: Order, eligibility: RefundEligibility) -> ServiceResult[RefundOutcome]:
        cls.get_logger().warning(
            "Refund not allowed",
            extra={
                "order_id": str(order.id),
                "block_code": eligibility.block_code,
                "block_reason": eligibility.block_reason,
            },
        )
        return ServiceResult.failure(
            eligibility.block_reason or "Refund not allowed",
            error_code=eligibility.block_code or "REFUND_NOT_ALLOWED",
        )
