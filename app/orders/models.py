"""
Order, Attendee, Affiliate and ProductPrice models.

An Order is a time-limited reservation created by checkout. The payments
app binds a Razorpay order to it, confirms the payment and completes it.

Usage:
    from orders.models import Order
    from orders.states import OrderStatus

    order = Order.objects.create(
        session_id="sess_123",
        email="buyer@example.com",
        total_gross=Decimal("50.00"),
        currency="INR",
        reserved_until=timezone.now() + timedelta(minutes=15),
    )

    # State transitions using django-fsm
    order.complete()  # RESERVED -> COMPLETED
    order.save()
"""

from __future__ import annotations

import secrets

from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.models import BaseModel, UUIDPrimaryKeyMixin

from orders.states import (
    AttendeeStatus,
    OrderPaymentStatus,
    OrderRefundStatus,
    OrderStatus,
    PaymentProvider,
)


def generate_short_id() -> str:
    """Return a public order reference such as ``o_3f9a1c2b7d4e``."""
    return f"o_{secrets.token_hex(6)}"


class Affiliate(BaseModel):
    """
    Referral partner credited with completed sales.

    Fields:
        code: Public referral code
        name: Display name
        sales_count: Number of completed orders referred
        sales_gross: Gross value of completed orders referred (major units)
    """

    code = models.CharField(
        max_length=64,
        unique=True,
        help_text="Referral code used at checkout",
    )

    name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Display name of the affiliate",
    )

    sales_count = models.PositiveIntegerField(
        default=0,
        help_text="Number of completed orders referred",
    )

    sales_gross = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=0,
        help_text="Gross value of completed orders referred (major units)",
    )

    class Meta:
        ordering = ["code"]
        verbose_name = "Affiliate"
        verbose_name_plural = "Affiliates"

    def __str__(self) -> str:
        return f"Affiliate({self.code})"


class ProductPrice(BaseModel):
    """
    Ticket price tier that attendees are issued against.

    quantity_sold counts attendees on completed orders. It moves only with
    F() updates from OrderService so concurrent completions never lose a
    sale.
    """

    label = models.CharField(
        max_length=255,
        help_text="Tier name shown at checkout",
    )

    price = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=0,
        help_text="Price per ticket (major units)",
    )

    quantity_available = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Capacity of this tier (null for unlimited)",
    )

    quantity_sold = models.PositiveIntegerField(
        default=0,
        help_text="Tickets sold on completed orders",
    )

    class Meta:
        ordering = ["label"]
        verbose_name = "Product price"
        verbose_name_plural = "Product prices"

    def __str__(self) -> str:
        return f"ProductPrice({self.label}, {self.quantity_sold} sold)"


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    Ticket reservation awaiting or holding a payment.

    Uses django-fsm for the order status. The payment and refund statuses
    are written by the payments app while it holds the row lock.

    State Flow:
        RESERVED -> COMPLETED (payment captured)
        RESERVED -> EXPIRED (reservation timed out)
        RESERVED/COMPLETED -> CANCELLED

    Fields:
        short_id: Public order reference shown to the buyer
        session_id: Checkout session that created the order
        email, first_name, last_name, locale: Buyer details
        status: Current FSM status
        payment_status: Gateway payment progress
        refund_status: Null until refunded
        payment_provider: Gateway that captured the payment
        total_gross: Amount due in major units
        currency: ISO 4217 currency code (uppercase)
        reserved_until: When the reservation expires
        affiliate: Optional referral partner
    """

    # ==========================================================================
    # Identity & Buyer
    # ==========================================================================

    short_id = models.CharField(
        max_length=32,
        unique=True,
        default=generate_short_id,
        help_text="Public order reference (o_xxx)",
    )

    session_id = models.CharField(
        max_length=255,
        db_index=True,
        help_text="Checkout session identifier that owns this order",
    )

    email = models.EmailField(help_text="Buyer email address")

    first_name = models.CharField(max_length=150, blank=True, default="")

    last_name = models.CharField(max_length=150, blank=True, default="")

    locale = models.CharField(
        max_length=16,
        default="en",
        help_text="Buyer locale for notifications",
    )

    # ==========================================================================
    # Status
    # ==========================================================================

    status = FSMField(
        default=OrderStatus.RESERVED,
        choices=OrderStatus.choices,
        db_index=True,
        help_text="Current status of the order (managed by FSM)",
    )

    payment_status = models.CharField(
        max_length=32,
        choices=OrderPaymentStatus.choices,
        default=OrderPaymentStatus.AWAITING_PAYMENT,
        db_index=True,
        help_text="Payment progress reported by the gateway",
    )

    refund_status = models.CharField(
        max_length=32,
        choices=OrderRefundStatus.choices,
        null=True,
        blank=True,
        help_text="Refund progress (null until the first refund)",
    )

    payment_provider = models.CharField(
        max_length=32,
        choices=PaymentProvider.choices,
        null=True,
        blank=True,
        help_text="Gateway that captured the payment",
    )

    # ==========================================================================
    # Amount & Reservation
    # ==========================================================================

    total_gross = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Amount due in major units (e.g., rupees)",
    )

    currency = models.CharField(
        max_length=3,
        default="INR",
        help_text="ISO 4217 currency code (uppercase)",
    )

    reserved_until = models.DateTimeField(
        help_text="When the reservation expires if unpaid",
    )

    affiliate = models.ForeignKey(
        Affiliate,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
        help_text="Referral partner credited with this order",
    )

    # ==========================================================================
    # Timestamps
    # ==========================================================================

    completed_at = models.DateTimeField(null=True, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        indexes = [
            models.Index(fields=["status", "payment_status"], name="order_status_payment_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                check=models.Q(total_gross__gte=0),
                name="order_total_gross_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Order({self.short_id}, {self.status}, {self.total_gross} {self.currency})"

    @property
    def is_reservation_expired(self) -> bool:
        """Whether the reservation window has passed."""
        return self.reserved_until <= timezone.now()

    @property
    def buyer_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=OrderStatus.RESERVED,
        target=OrderStatus.COMPLETED,
    )
    def complete(self):
        """
        Mark the order as paid and fulfilled.

        Transition: RESERVED -> COMPLETED
        """
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=[OrderStatus.RESERVED, OrderStatus.COMPLETED],
        target=OrderStatus.CANCELLED,
    )
    def cancel(self):
        """
        Cancel the order.

        Transition: RESERVED/COMPLETED -> CANCELLED

        A completed order is cancelled when it is refunded with cancellation.
        """
        self.cancelled_at = timezone.now()

    @transition(
        field=status,
        source=OrderStatus.RESERVED,
        target=OrderStatus.EXPIRED,
    )
    def expire(self):
        """Transition: RESERVED -> EXPIRED"""
        pass


class Attendee(BaseModel):
    """Ticket holder on an order. Activated when the order completes."""

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="attendees",
    )

    product_price = models.ForeignKey(
        ProductPrice,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="attendees",
        help_text="Price tier this ticket was issued against",
    )

    email = models.EmailField(blank=True, default="")

    first_name = models.CharField(max_length=150, blank=True, default="")

    last_name = models.CharField(max_length=150, blank=True, default="")

    status = models.CharField(
        max_length=32,
        choices=AttendeeStatus.choices,
        default=AttendeeStatus.AWAITING_PAYMENT,
        db_index=True,
    )

    class Meta:
        ordering = ["created_at"]
        verbose_name = "Attendee"
        verbose_name_plural = "Attendees"

    def __str__(self) -> str:
        return f"Attendee({self.pk}, {self.status})"
