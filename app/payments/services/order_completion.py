"""
Completion workflow shared by client confirmation and the capture webhook.

Runs in the caller's transaction, after payment_status has been set to
PAYMENT_RECEIVED. Whichever path completes the order first credits the
affiliate and schedules the buyer notification; the other finds the order
already COMPLETED and does nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction

from orders.events import OrderEvent, OrderEventType
from orders.services import OrderService
from orders.states import OrderStatus

if TYPE_CHECKING:
    from orders.models import Order


logger = logging.getLogger(__name__)


def complete_paid_order(order: Order) -> bool:
    """
    Complete a paid order, credit its affiliate and notify the buyer.

    Args:
        order: The locked order

    Returns:
        True if this call completed the order, False if it already was

    Raises:
        ConflictError: If the order can no longer be completed
    """
    order.refresh_from_db(fields=["status"])
    if order.status == OrderStatus.COMPLETED:
        return False

    OrderService.complete_order(order)
    OrderService.increment_affiliate_sales(order)

    # Receivers must not see the order before the transaction commits
    transaction.on_commit(
        lambda: OrderService.notify(OrderEvent(OrderEventType.ORDER_COMPLETED, order))
    )

    logger.info(
        "Paid order completed",
        extra={"order_id": str(order.id), "order_short_id": order.short_id},
    )
    return True
