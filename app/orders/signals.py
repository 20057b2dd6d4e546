"""
Signal receivers for order events.

This module defines receivers for:
- Emailing the buyer when an order is completed
- Emailing the buyer when an order is refunded
- Emailing the buyer when an order is cancelled

Related files:
    - events.py: OrderEvent and the order_event signal
    - services.py: OrderService.notify() sends the signal
    - apps.py: Signal import in ready()
"""

import logging

from django.conf import settings
from django.core.mail import send_mail
from django.dispatch import receiver

from orders.events import OrderEvent, OrderEventType, order_event

logger = logging.getLogger(__name__)


@receiver(order_event, sender=OrderEvent)
def email_buyer_on_order_event(sender, event: OrderEvent, **kwargs):
    """
    Send a plain-text email to the buyer for completed, refunded and
    cancelled orders.

    Args:
        sender: The OrderEvent class
        event: The event being delivered
        **kwargs: Additional signal arguments
    """
    order = event.order
    if not order.email:
        return

    if event.event_type == OrderEventType.ORDER_COMPLETED:
        subject = f"Your order {order.short_id} is confirmed"
        body = (
            f"Hi {order.first_name or 'there'},\n\n"
            f"We received your payment of {order.total_gross} {order.currency}. "
            f"Your order {order.short_id} is confirmed.\n"
        )
    elif event.event_type == OrderEventType.ORDER_REFUNDED:
        amount = event.data.get("amount_display", "")
        subject = f"Refund issued for order {order.short_id}"
        body = (
            f"Hi {order.first_name or 'there'},\n\n"
            f"A refund of {amount} {order.currency} has been issued for order "
            f"{order.short_id}. It can take 5-7 business days to appear.\n"
        )
    elif event.event_type == OrderEventType.ORDER_CANCELLED:
        subject = f"Your order {order.short_id} has been cancelled"
        body = (
            f"Hi {order.first_name or 'there'},\n\n"
            f"Your order {order.short_id} has been cancelled and its tickets "
            "are no longer valid.\n"
        )
    else:
        return

    send_mail(
        subject,
        body,
        settings.DEFAULT_FROM_EMAIL,
        [order.email],
    )
    logger.info(
        "Order email sent",
        extra={"order_short_id": order.short_id, "event_type": str(event.event_type)},
    )
