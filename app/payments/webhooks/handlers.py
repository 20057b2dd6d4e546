"""
Webhook event handlers for Razorpay events.

This module provides a handler registry and implementations for
applying Razorpay webhook events to orders.

The handler registry allows:
- Clean separation between event routing and handling
- One handler per supported event type, checked at import
- A single dispatch point for the ingestion pipeline

Every handler runs inside the pipeline's transaction, locks the order row
and then the binding row, and returns a ServiceResult:
- success: the event was applied; the pipeline writes its markers
- failure: nothing to apply yet (e.g. unknown binding); no marker, so a
  redelivery can still apply it

Exceptions roll the transaction back and are classified by the pipeline.

Usage:
    from payments.webhooks.handlers import dispatch_event

    with transaction.atomic():
        result = dispatch_event(event)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from django.core.exceptions import ImproperlyConfigured

from core.services import ServiceResult

from orders.services import OrderService
from orders.states import OrderPaymentStatus, OrderRefundStatus, OrderStatus, PaymentProvider
from payments.exceptions import (
    OrderNotAwaitingPayment,
    PaymentAcceptedForCancelledOrder,
    PaymentAcceptedForExpiredOrder,
    UnsupportedWebhookEvent,
)
from payments.models import PaymentBinding
from payments.services.order_completion import complete_paid_order
from payments.webhooks.events import InboundEvent, RazorpayEventType

if TYPE_CHECKING:
    from orders.models import Order


logger = logging.getLogger(__name__)


# =============================================================================
# Handler Registry
# =============================================================================


Handler = Callable[[InboundEvent], ServiceResult]

# Maps each supported event type to its handler
WEBHOOK_HANDLERS: dict[RazorpayEventType, Handler] = {}

# payment_status values from which a capture can be applied
CAPTURABLE_PAYMENT_STATUSES = frozenset(
    [
        OrderPaymentStatus.AWAITING_PAYMENT.value,
        OrderPaymentStatus.PAYMENT_FAILED.value,
    ]
)

# Failure fields copied from the payment entity into last_error
PAYMENT_ERROR_FIELDS = (
    "error_code",
    "error_description",
    "error_source",
    "error_step",
    "error_reason",
)


def register_handler(event_type: RazorpayEventType) -> Callable[[Handler], Handler]:
    """
    Decorator to register a webhook event handler.

    Usage:
        @register_handler(RazorpayEventType.PAYMENT_CAPTURED)
        def handle_payment_captured(event: InboundEvent) -> ServiceResult:
            ...

    Raises:
        ImproperlyConfigured: If the type is UNSUPPORTED or already has a handler
    """

    def decorator(func: Handler) -> Handler:
        if event_type == RazorpayEventType.UNSUPPORTED:
            raise ImproperlyConfigured("Cannot register a handler for unsupported events")
        if event_type in WEBHOOK_HANDLERS:
            raise ImproperlyConfigured(f"Duplicate webhook handler for {event_type.value}")
        WEBHOOK_HANDLERS[event_type] = func
        return func

    return decorator


def dispatch_event(event: InboundEvent) -> ServiceResult:
    """
    Dispatch an event to its handler.

    Raises:
        UnsupportedWebhookEvent: For UNSUPPORTED events
    """
    handler = WEBHOOK_HANDLERS.get(event.type)
    if handler is None:
        raise UnsupportedWebhookEvent(
            f"No handler for webhook event {event.raw_type}",
            details={"event_type": event.raw_type},
        )

    logger.info("Dispatching webhook event", extra=event.log_context())
    return handler(event)


# =============================================================================
# Row Locking
# =============================================================================


def _lock_order_and_binding(**binding_filter) -> tuple[Order, PaymentBinding] | None:
    """
    Lock the order, then its binding.

    The binding is resolved without a lock first to learn the order id,
    so rows are always locked order-first.
    """
    order_id = (
        PaymentBinding.objects.filter(**binding_filter).values_list("order_id", flat=True).first()
    )
    if order_id is None:
        return None

    order = OrderService.find_order_by_id(order_id, for_update=True)
    binding = PaymentBinding.objects.select_for_update().get(order_id=order_id)
    return order, binding


def _binding_not_found(event: InboundEvent) -> ServiceResult:
    logger.error("Razorpay binding not found for webhook event", extra=event.log_context())
    return ServiceResult.failure(
        "No Razorpay binding matches this event",
        error_code="BINDING_NOT_FOUND",
    )


# =============================================================================
# Payment Handlers
# =============================================================================


@register_handler(RazorpayEventType.PAYMENT_AUTHORIZED)
def handle_payment_authorized(event: InboundEvent) -> ServiceResult:
    """
    Record an authorized payment against its binding.

    An authorization never downgrades an order whose payment has already
    been received.
    """
    locked = _lock_order_and_binding(razorpay_order_id=event.order_id)
    if locked is None:
        return _binding_not_found(event)
    order, binding = locked

    if order.payment_status == OrderPaymentStatus.PAYMENT_RECEIVED:
        logger.info("Payment already received, authorization ignored", extra=event.log_context())
        return ServiceResult.failure(
            "Payment already received for this order",
            error_code="ALREADY_RECEIVED",
        )

    binding.record_payment(event.payment_id, amount_received=event.amount)
    OrderService.update_order_fields(
        order.id, payment_status=OrderPaymentStatus.AWAITING_PAYMENT
    )

    logger.info(
        "Payment authorized",
        extra={**event.log_context(), "order_id": str(order.id), "amount": event.amount},
    )
    return ServiceResult.success(binding)


@register_handler(RazorpayEventType.PAYMENT_CAPTURED)
def handle_payment_captured(event: InboundEvent) -> ServiceResult:
    """
    Apply a captured payment: record it and complete the order.

    Raises:
        OrderNotAwaitingPayment: The order already has a payment result
        PaymentAcceptedForCancelledOrder: The order was cancelled before capture
        PaymentAcceptedForExpiredOrder: The reservation expired before capture
    """
    locked = _lock_order_and_binding(razorpay_order_id=event.order_id)
    if locked is None:
        return _binding_not_found(event)
    order, binding = locked

    # A client confirmation may have recorded an authorized payment already
    verified_awaiting_capture = (
        order.payment_status == OrderPaymentStatus.PAYMENT_RECEIVED
        and order.status == OrderStatus.RESERVED
    )
    if order.payment_status not in CAPTURABLE_PAYMENT_STATUSES and not verified_awaiting_capture:
        raise OrderNotAwaitingPayment(
            "Order is not awaiting payment",
            details={
                "order_id": str(order.id),
                "payment_status": order.payment_status,
                "status": order.status,
            },
        )

    if order.status == OrderStatus.CANCELLED:
        raise PaymentAcceptedForCancelledOrder(
            "Payment was successful, but the order was cancelled",
            details={
                "order_id": str(order.id),
                "razorpay_order_id": binding.razorpay_order_id,
                "razorpay_payment_id": event.payment_id,
            },
        )

    if order.status == OrderStatus.EXPIRED or order.is_reservation_expired:
        raise PaymentAcceptedForExpiredOrder(
            "Payment was successful, but the order has expired",
            details={
                "order_id": str(order.id),
                "razorpay_order_id": binding.razorpay_order_id,
                "razorpay_payment_id": event.payment_id,
                "reserved_until": order.reserved_until.isoformat(),
            },
        )

    binding.record_payment(event.payment_id, amount_received=event.amount)
    OrderService.update_order_fields(
        order.id,
        payment_status=OrderPaymentStatus.PAYMENT_RECEIVED,
        payment_provider=PaymentProvider.RAZORPAY,
    )
    complete_paid_order(order)

    logger.info(
        "Payment captured",
        extra={**event.log_context(), "order_id": str(order.id), "amount": event.amount},
    )
    return ServiceResult.success(binding)


@register_handler(RazorpayEventType.PAYMENT_FAILED)
def handle_payment_failed(event: InboundEvent) -> ServiceResult:
    """
    Record a failed payment attempt.

    The order status is never changed. When the order has already received
    a payment, the stale failure is kept in last_error only.
    """
    locked = _lock_order_and_binding(razorpay_order_id=event.order_id)
    if locked is None:
        return _binding_not_found(event)
    order, binding = locked

    error = {
        name: event.payment_entity[name]
        for name in PAYMENT_ERROR_FIELDS
        if event.payment_entity.get(name) is not None
    }
    binding.record_error(error)

    if order.payment_status != OrderPaymentStatus.PAYMENT_RECEIVED:
        OrderService.update_order_fields(
            order.id, payment_status=OrderPaymentStatus.PAYMENT_FAILED
        )

    logger.warning(
        "Payment failed",
        extra={
            **event.log_context(),
            "order_id": str(order.id),
            "error_code": error.get("error_code"),
        },
    )
    return ServiceResult.success(binding)


# =============================================================================
# Refund Handlers
# =============================================================================


@register_handler(RazorpayEventType.REFUND_PROCESSED)
def handle_refund_processed(event: InboundEvent) -> ServiceResult:
    """
    Record a processed refund and derive the order's refund status.

    The refunded total is the payment's amount_refunded when the payload
    carries the payment entity, otherwise the refund amount.
    """
    locked = _lock_order_and_binding(razorpay_payment_id=event.payment_id)
    if locked is None:
        return _binding_not_found(event)
    order, binding = locked

    if order.status not in (OrderStatus.COMPLETED, OrderStatus.CANCELLED):
        logger.warning("Refund for an order that was never completed", extra=event.log_context())
        return ServiceResult.failure(
            f"Cannot record a refund for an order in {order.status} status",
            error_code="ORDER_NOT_REFUNDABLE",
        )

    binding.refund_id = event.refund_id
    binding.save(update_fields=["refund_id", "updated_at"])

    refunded_total = event.payment_entity.get("amount_refunded")
    if not isinstance(refunded_total, int) or isinstance(refunded_total, bool):
        refunded_total = event.amount or 0

    if order.refund_status == OrderRefundStatus.FULL_REFUND or (
        binding.amount_received is not None and refunded_total == binding.amount_received
    ):
        refund_status = OrderRefundStatus.FULL_REFUND
    else:
        refund_status = OrderRefundStatus.PARTIAL_REFUND
    OrderService.update_order_fields(order.id, refund_status=refund_status)

    logger.info(
        "Refund processed",
        extra={
            **event.log_context(),
            "order_id": str(order.id),
            "refunded_total": refunded_total,
            "refund_status": refund_status.value,
        },
    )
    return ServiceResult.success(binding)


# Every supported event type must have exactly one handler
_unhandled = [
    event_type.value
    for event_type in RazorpayEventType
    if event_type != RazorpayEventType.UNSUPPORTED and event_type not in WEBHOOK_HANDLERS
]
if _unhandled:
    raise ImproperlyConfigured(f"No webhook handler for: {', '.join(_unhandled)}")
