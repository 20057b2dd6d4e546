"""
Order lifecycle events.

Events are delivered to receivers of the ``order_event`` signal. Sending
goes through OrderService.notify(), which uses send_robust so a failing
receiver never breaks the payment flow that emitted the event.

Usage:
    from orders.events import OrderEvent, OrderEventType
    from orders.services import OrderService

    OrderService.notify(OrderEvent(OrderEventType.ORDER_COMPLETED, order))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from django.db import models
from django.dispatch import Signal

if TYPE_CHECKING:
    from orders.models import Order


class OrderEventType(models.TextChoices):
    ORDER_COMPLETED = "order.completed", "Order Completed"
    ORDER_REFUNDED = "order.refunded", "Order Refunded"
    ORDER_CANCELLED = "order.cancelled", "Order Cancelled"


@dataclass(frozen=True)
class OrderEvent:
    """
    An order lifecycle event.

    Attributes:
        event_type: What happened to the order
        order: The order the event is about
        data: Extra context (e.g., refunded amount)
    """

    event_type: OrderEventType
    order: Order
    data: dict[str, Any] = field(default_factory=dict)


# Sent with sender=OrderEvent and event=<OrderEvent>
order_event = Signal()
