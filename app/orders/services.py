"""
Order service for the operations the payments app depends on.

Every write here runs inside the caller's transaction. Callers that read
then write an order must lock it first with for_update=True.

Usage:
    from orders.services import OrderService

    with transaction.atomic():
        order = OrderService.find_order_by_short_id(short_id, for_update=True)
        OrderService.update_order_fields(order.id, payment_status=OrderPaymentStatus.PAYMENT_RECEIVED)
        OrderService.complete_order(order)
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.db.models import Count, F
from django.utils import timezone

from django_fsm import TransitionNotAllowed

from core.exceptions import ConflictError
from core.services import BaseService

from orders.events import OrderEvent, order_event
from orders.models import Affiliate, Attendee, Order, ProductPrice
from orders.states import AttendeeStatus, OrderStatus

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet


class OrderService(BaseService):
    """
    Lookups, field updates and lifecycle transitions for orders.

    Methods:
        find_order_by_short_id: Resolve an order by its public reference
        find_order_by_id: Resolve an order by primary key
        update_order_fields: Write payment, refund and status fields
        complete_order: RESERVED -> COMPLETED, count tickets sold, activate attendees
        cancel_order: -> CANCELLED, release tickets sold, cancel attendees
        increment_affiliate_sales: Credit the referring affiliate
        notify: Deliver an OrderEvent to signal receivers
    """

    UPDATABLE_FIELDS = frozenset({"payment_status", "refund_status", "payment_provider", "status"})

    @classmethod
    def find_order_by_short_id(cls, short_id: str, for_update: bool = False) -> Order | None:
        queryset = Order.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.filter(short_id=short_id).first()

    @classmethod
    def find_order_by_id(cls, order_id: uuid.UUID | str, for_update: bool = False) -> Order | None:
        try:
            order_uuid = uuid.UUID(str(order_id))
        except ValueError:
            return None
        queryset = Order.objects.all()
        if for_update:
            queryset = queryset.select_for_update()
        return queryset.filter(pk=order_uuid).first()

    @classmethod
    def update_order_fields(cls, order_id: uuid.UUID | str, **fields: Any) -> int:
        """
        Update whitelisted order fields.

        Args:
            order_id: Order primary key
            **fields: payment_status, refund_status, payment_provider, status

        Returns:
            Number of rows updated (0 when the order does not exist)

        Raises:
            ValueError: If a field outside the whitelist is passed
        """
        unknown = set(fields) - cls.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update order fields: {', '.join(sorted(unknown))}")
        if not fields:
            return 0

        updated = Order.objects.filter(pk=order_id).update(updated_at=timezone.now(), **fields)
        cls.get_logger().debug(
            "Order fields updated",
            extra={"order_id": str(order_id), "fields": sorted(fields)},
        )
        return updated

    @classmethod
    def complete_order(cls, order: Order) -> Order:
        """
        Complete a reserved order, count its tickets as sold and activate
        its attendees.

        Idempotent: an already completed order is returned unchanged, so
        quantity_sold moves once per order however often this is called.

        Raises:
            ConflictError: If the order is neither RESERVED nor COMPLETED
        """
        order.refresh_from_db(fields=["status", "completed_at"])
        if order.status == OrderStatus.COMPLETED:
            return order

        try:
            order.complete()
        except TransitionNotAllowed as e:
            raise ConflictError(
                f"Cannot complete order in {order.status} status",
                error_code="INVALID_STATE_TRANSITION",
                details={"order_short_id": order.short_id, "current_status": order.status},
            ) from e
        order.save(update_fields=["status", "completed_at", "updated_at"])

        pending = Attendee.objects.filter(order=order, status=AttendeeStatus.AWAITING_PAYMENT)
        sold = cls._adjust_quantity_sold(pending, 1)
        activated = pending.update(status=AttendeeStatus.ACTIVE, updated_at=timezone.now())

        cls.get_logger().info(
            "Order completed",
            extra={
                "order_id": str(order.id),
                "order_short_id": order.short_id,
                "attendees_activated": activated,
                "quantity_sold": sold,
            },
        )
        return order

    @classmethod
    def cancel_order(cls, order: Order) -> Order:
        """
        Cancel an order and its attendees.

        Tickets of a completed order are released from quantity_sold.

        Idempotent: an already cancelled order is returned unchanged.

        Raises:
            ConflictError: If the order is EXPIRED
        """
        order.refresh_from_db(fields=["status", "cancelled_at"])
        if order.status == OrderStatus.CANCELLED:
            return order

        was_completed = order.status == OrderStatus.COMPLETED

        try:
            order.cancel()
        except TransitionNotAllowed as e:
            raise ConflictError(
                f"Cannot cancel order in {order.status} status",
                error_code="INVALID_STATE_TRANSITION",
                details={"order_short_id": order.short_id, "current_status": order.status},
            ) from e
        order.save(update_fields=["status", "cancelled_at", "updated_at"])

        if was_completed:
            cls._adjust_quantity_sold(
                Attendee.objects.filter(order=order, status=AttendeeStatus.ACTIVE), -1
            )

        Attendee.objects.filter(order=order).exclude(
            status=AttendeeStatus.CANCELLED,
        ).update(status=AttendeeStatus.CANCELLED, updated_at=timezone.now())

        cls.get_logger().info(
            "Order cancelled",
            extra={"order_id": str(order.id), "order_short_id": order.short_id},
        )
        return order

    @classmethod
    def _adjust_quantity_sold(cls, attendees: QuerySet[Attendee], sign: int) -> int:
        """Move quantity_sold of each price tier by the number of attendees on it."""
        per_price = (
            attendees.filter(product_price__isnull=False)
            .order_by()
            .values("product_price")
            .annotate(quantity=Count("id"))
        )
        total = 0
        for row in per_price:
            ProductPrice.objects.filter(pk=row["product_price"]).update(
                quantity_sold=F("quantity_sold") + sign * row["quantity"],
                updated_at=timezone.now(),
            )
            total += row["quantity"]
        return total

    @classmethod
    def increment_affiliate_sales(cls, order: Order) -> None:
        """Credit the order's affiliate with one sale of total_gross."""
        if order.affiliate_id is None:
            return
        Affiliate.objects.filter(pk=order.affiliate_id).update(
            sales_count=F("sales_count") + 1,
            sales_gross=F("sales_gross") + order.total_gross,
            updated_at=timezone.now(),
        )

    @classmethod
    def notify(cls, event: OrderEvent) -> None:
        """
        Deliver an order event to all receivers.

        Receiver failures are logged and never propagated.
        """
        responses = order_event.send_robust(sender=OrderEvent, event=event)
        for receiver, response in responses:
            if isinstance(response, Exception):
                cls.get_logger().error(
                    "Order event receiver failed",
                    extra={
                        "order_id": str(event.order.id),
                        "event_type": str(event.event_type),
                        "receiver": getattr(receiver, "__name__", repr(receiver)),
                        "error": str(response),
                    },
                )
