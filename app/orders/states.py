"""
State enums for order models.

These are Django TextChoices for database storage and admin integration.
Order.status is driven by django-fsm; the payment and refund statuses are
plain fields written by the payments app under row locks.

State Machines Overview:

Order status:
    reserved → completed → cancelled (refund with cancel)
    reserved → cancelled
    reserved → expired

Payment status:
    awaiting_payment → payment_received
    awaiting_payment → payment_failed → awaiting_payment (retry)

Refund status:
    (none) → partial_refund → full_refund
    (none) → full_refund
"""

from django.db import models


class OrderStatus(models.TextChoices):
    """
    Lifecycle of an order.

    Terminal states: COMPLETED (unless refunded with cancel), CANCELLED, EXPIRED
    """

    RESERVED = "RESERVED", "Reserved"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"
    EXPIRED = "EXPIRED", "Expired"


class OrderPaymentStatus(models.TextChoices):
    """Payment progress of an order as seen by the gateway."""

    AWAITING_PAYMENT = "AWAITING_PAYMENT", "Awaiting Payment"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED", "Payment Received"
    PAYMENT_FAILED = "PAYMENT_FAILED", "Payment Failed"


class OrderRefundStatus(models.TextChoices):
    """Refund progress of an order. Null until the first refund."""

    PARTIAL_REFUND = "PARTIAL_REFUND", "Partial Refund"
    FULL_REFUND = "FULL_REFUND", "Full Refund"


class PaymentProvider(models.TextChoices):
    """Gateway that captured the payment."""

    RAZORPAY = "RAZORPAY", "Razorpay"


class AttendeeStatus(models.TextChoices):
    """Status of a ticket holder on an order."""

    AWAITING_PAYMENT = "AWAITING_PAYMENT", "Awaiting Payment"
    ACTIVE = "ACTIVE", "Active"
    CANCELLED = "CANCELLED", "Cancelled"
