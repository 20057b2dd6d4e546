"""
Initial orders schema.

Creates:
    - Affiliate: referral partners and their sales totals
    - Order: reservations with FSM status, payment and refund statuses
    - Attendee: ticket holders per order
"""

import uuid

import django.db.models.deletion
import django_fsm
from django.db import migrations, models

import orders.models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Affiliate",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "code",
                    models.CharField(
                        help_text="Referral code used at checkout",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Display name of the affiliate",
                        max_length=255,
                    ),
                ),
                (
                    "sales_count",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Number of completed orders referred",
                    ),
                ),
                (
                    "sales_gross",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        help_text="Gross value of completed orders referred (major units)",
                        max_digits=14,
                    ),
                ),
            ],
            options={
                "verbose_name": "Affiliate",
                "verbose_name_plural": "Affiliates",
                "ordering": ["code"],
            },
        ),
        migrations.CreateModel(
            name="Order",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "short_id",
                    models.CharField(
                        default=orders.models.generate_short_id,
                        help_text="Public order reference (o_xxx)",
                        max_length=32,
                        unique=True,
                    ),
                ),
                (
                    "session_id",
                    models.CharField(
                        db_index=True,
                        help_text="Checkout session identifier that owns this order",
                        max_length=255,
                    ),
                ),
                ("email", models.EmailField(help_text="Buyer email address", max_length=254)),
                ("first_name", models.CharField(blank=True, default="", max_length=150)),
                ("last_name", models.CharField(blank=True, default="", max_length=150)),
                (
                    "locale",
                    models.CharField(
                        default="en",
                        help_text="Buyer locale for notifications",
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("RESERVED", "Reserved"),
                            ("COMPLETED", "Completed"),
                            ("CANCELLED", "Cancelled"),
                            ("EXPIRED", "Expired"),
                        ],
                        db_index=True,
                        default="RESERVED",
                        help_text="Current status of the order (managed by FSM)",
                        max_length=50,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("AWAITING_PAYMENT", "Awaiting Payment"),
                            ("PAYMENT_RECEIVED", "Payment Received"),
                            ("PAYMENT_FAILED", "Payment Failed"),
                        ],
                        db_index=True,
                        default="AWAITING_PAYMENT",
                        help_text="Payment progress reported by the gateway",
                        max_length=32,
                    ),
                ),
                (
                    "refund_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("PARTIAL_REFUND", "Partial Refund"),
                            ("FULL_REFUND", "Full Refund"),
                        ],
                        help_text="Refund progress (null until the first refund)",
                        max_length=32,
                        null=True,
                    ),
                ),
                (
                    "payment_provider",
                    models.CharField(
                        blank=True,
                        choices=[("RAZORPAY", "Razorpay")],
                        help_text="Gateway that captured the payment",
                        max_length=32,
                        null=True,
                    ),
                ),
                (
                    "total_gross",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount due in major units (e.g., rupees)",
                        max_digits=14,
                    ),
                ),
                (
                    "currency",
                    models.CharField(
                        default="INR",
                        help_text="ISO 4217 currency code (uppercase)",
                        max_length=3,
                    ),
                ),
                (
                    "reserved_until",
                    models.DateTimeField(help_text="When the reservation expires if unpaid"),
                ),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "affiliate",
                    models.ForeignKey(
                        blank=True,
                        help_text="Referral partner credited with this order",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="orders",
                        to="orders.affiliate",
                    ),
                ),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "payment_status"],
                        name="order_status_payment_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        check=models.Q(total_gross__gte=0),
                        name="order_total_gross_non_negative",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Attendee",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("first_name", models.CharField(blank=True, default="", max_length=150)),
                ("last_name", models.CharField(blank=True, default="", max_length=150)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("AWAITING_PAYMENT", "Awaiting Payment"),
                            ("ACTIVE", "Active"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="AWAITING_PAYMENT",
                        max_length=32,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attendees",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Attendee",
                "verbose_name_plural": "Attendees",
                "ordering": ["created_at"],
            },
        ),
    ]
