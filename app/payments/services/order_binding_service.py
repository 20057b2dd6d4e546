"""
Order binding service for starting Razorpay checkout.

Creates the Razorpay order for a reserved order and persists the binding
between the two. Each order gets at most one Razorpay order: a repeat
request returns the existing binding without calling the gateway.

Usage:
    from payments.services import OrderBindingService

    # Validate an amount without side effects
    result = OrderBindingService.validate_order_amount(5000, "INR")
    if not result:
        print(result.error_code)  # e.g. AMOUNT_BELOW_MINIMUM

    # Start checkout for the buyer's session (create-order endpoint)
    details = OrderBindingService.start_checkout("o_abc123", session_id="sess_1")
    print(details.razorpay_order_id, details.key_id)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.exceptions import PermissionDeniedError
from core.services import BaseService, ServiceResult

from orders.services import OrderService
from orders.states import OrderStatus
from payments.adapters import CreateOrderParams, RazorpayAdapter
from payments.amounts import to_minor_units
from payments.configuration import DEFAULT_SUPPORTED_CURRENCIES, get_razorpay_configuration
from payments.exceptions import (
    GatewayError,
    InvalidOrderState,
    OrderCreationFailed,
    OrderNotFound,
    PaymentValidationError,
)
from payments.models import PaymentBinding

if TYPE_CHECKING:
    from collections.abc import Iterable

    from orders.models import Order


# =============================================================================
# Constants
# =============================================================================

# Razorpay limits for INR orders, in paise (1.00 to 15,00,00,000.00 rupees)
MIN_AMOUNT_INR = 100
MAX_AMOUNT_INR = 1_500_000_000

RECEIPT_PREFIX = "order_"


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class CheckoutDetails:
    """
    What the browser needs to open Razorpay Checkout.

    Attributes:
        razorpay_order_id: Razorpay order ID (order_xxx)
        amount: Amount in minor units
        currency: ISO 4217 currency code
        key_id: Public Razorpay key id
        receipt: Merchant reference (order_<short_id>)
        order_short_id: Public order reference
        created: False when an existing binding was returned
    """

    razorpay_order_id: str
    amount: int
    currency: str
    key_id: str
    receipt: str
    order_short_id: str
    created: bool = True


# =============================================================================
# Order Binding Service
# =============================================================================


class OrderBindingService(BaseService):
    """
    Service for creating and binding Razorpay orders.

    Flow:
        1. Lock the order and check the checkout session owns it
        2. Require RESERVED and an unexpired reservation
        3. Return the existing binding, or validate the amount, create the
           Razorpay order and persist the binding

    Failure Handling:
        - Validation failures raise PaymentValidationError before any
          gateway call
        - Gateway failures raise OrderCreationFailed and persist nothing
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
    # Validation
    # =========================================================================

    @classmethod
    def validate_order_amount(
        cls,
        amount: int,
        currency: str,
        supported_currencies: Iterable[str] | None = None,
    ) -> ServiceResult[int]:
        """
        Check an amount in minor units against Razorpay's limits.

        Args:
            amount: Amount in minor units
            currency: ISO 4217 currency code
            supported_currencies: Allowed currencies (defaults to the built-in list)

        Returns:
            ServiceResult with the amount on success, or a failure with
            UNSUPPORTED_CURRENCY, AMOUNT_NOT_POSITIVE, AMOUNT_BELOW_MINIMUM
            or AMOUNT_ABOVE_MAXIMUM
        """
        allowed = {c.upper() for c in (supported_currencies or DEFAULT_SUPPORTED_CURRENCIES)}
        currency_code = (currency or "").upper()

        if currency_code not in allowed:
            return ServiceResult.failure(
                f"Currency '{currency_code}' is not supported by Razorpay. "
                f"Supported currencies: {', '.join(sorted(allowed))}",
                error_code="UNSUPPORTED_CURRENCY",
            )

        if amount <= 0:
            return ServiceResult.failure(
                "Amount must be greater than zero",
                error_code="AMOUNT_NOT_POSITIVE",
            )

        if currency_code == "INR":
            if amount < MIN_AMOUNT_INR:
                return ServiceResult.failure(
                    "Amount is too small. Minimum amount for INR is 1.00",
                    error_code="AMOUNT_BELOW_MINIMUM",
                )
            if amount > MAX_AMOUNT_INR:
                return ServiceResult.failure(
                    "Amount is too large. Maximum amount for INR is 15,00,00,000.00",
                    error_code="AMOUNT_ABOVE_MAXIMUM",
                )

        return ServiceResult.success(amount)

    # =========================================================================
    # Binding
    # =========================================================================

    @classmethod
    def receipt_for(cls, order: Order) -> str:
        return f"{RECEIPT_PREFIX}{order.short_id}"

    @classmethod
    def create_binding(
        cls,
        order: Order,
        amount: int,
        currency: str,
        notes: dict[str, str] | None = None,
    ) -> PaymentBinding:
        """
        Return the order's binding, creating the Razorpay order if needed.

        Args:
            order: The order to bind
            amount: Amount in minor units
            currency: ISO 4217 currency code
            notes: Extra notes for the Razorpay order

        Returns:
            The existing or newly created PaymentBinding

        Raises:
            PaymentValidationError: Amount or currency rejected
            OrderCreationFailed: Razorpay order could not be created
        """
        logger = cls.get_logger()

        existing = PaymentBinding.objects.filter(order=order).first()
        if existing is not None:
            logger.info(
                "Returning existing Razorpay order",
                extra={
                    "order_id": str(order.id),
                    "razorpay_order_id": existing.razorpay_order_id,
                },
            )
            return existing

        config = get_razorpay_configuration()
        validation = cls.validate_order_amount(amount, currency, config.supported_currencies)
        if not validation:
            raise PaymentValidationError(
                validation.error,
                error_code=validation.error_code,
                details={"amount": amount, "currency": currency},
            )

        params = CreateOrderParams(
            amount=amount,
            currency=currency,
            receipt=cls.receipt_for(order),
            notes={
                **(notes or {}),
                "order_id": str(order.id),
                "order_short_id": order.short_id,
            },
        )

        logger.info(
            "Razorpay order creation requested",
            extra={"order_id": str(order.id), "amount": amount, "currency": params.currency},
        )

        try:
            result = cls.get_gateway_adapter().create_order(params)
        except GatewayError as e:
            logger.error(
                "Razorpay order creation failed",
                extra={
                    "order_id": str(order.id),
                    "error_code": e.error_code,
                    "is_retryable": e.is_retryable,
                },
            )
            raise OrderCreationFailed(
                "Could not create the Razorpay order",
                details={"order_short_id": order.short_id, "cause": e.error_code},
                is_retryable=e.is_retryable,
            ) from e

        binding = PaymentBinding.objects.create(
            order=order,
            razorpay_order_id=result.id,
        )

        logger.info(
            "Razorpay order created",
            extra={
                "order_id": str(order.id),
                "razorpay_order_id": result.id,
                "amount": result.amount,
                "currency": result.currency,
            },
        )
        return binding

    @classmethod
    def start_checkout(cls, order_short_id: str, session_id: str) -> CheckoutDetails:
        """
        Create or return the Razorpay order for a buyer's reserved order.

        Args:
            order_short_id: Public order reference
            session_id: Checkout session presenting the request

        Returns:
            CheckoutDetails for Razorpay Checkout

        Raises:
            OrderNotFound: Unknown order
            PermissionDeniedError: Session does not own the order
            InvalidOrderState: Order not RESERVED or reservation expired
            PaymentValidationError: Amount or currency rejected
            OrderCreationFailed: Razorpay order could not be created
        """
        with cls.atomic():
            order = OrderService.find_order_by_short_id(order_short_id, for_update=True)
            if order is None:
                raise OrderNotFound(
                    f"Order {order_short_id} not found",
                    details={"order_short_id": order_short_id},
                )

            if not session_id or session_id != order.session_id:
                cls.get_logger().warning(
                    "Checkout session mismatch",
                    extra={"order_short_id": order_short_id},
                )
                raise PermissionDeniedError(
                    "Sorry, we could not verify your session. Please create a new order.",
                    error_code="SESSION_MISMATCH",
                )

            if order.status != OrderStatus.RESERVED or order.is_reservation_expired:
                raise InvalidOrderState(
                    "Sorry, this order is expired or not in a valid state.",
                    details={"order_short_id": order_short_id, "current_status": order.status},
                )

            amount = to_minor_units(order.total_gross)
            currency = order.currency.upper()
            had_binding = PaymentBinding.objects.filter(order=order).exists()
            binding = cls.create_binding(order, amount, currency)

        return CheckoutDetails(
            razorpay_order_id=binding.razorpay_order_id,
            amount=amount,
            currency=currency,
            key_id=get_razorpay_configuration().key_id,
            receipt=cls.receipt_for(order),
            order_short_id=order.short_id,
            created=not had_binding,
        )
