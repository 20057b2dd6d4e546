"""
Initial payments schema.

Creates:
    - PaymentBinding (table razorpay_payments): one Razorpay order per order
    - IdempotencyMarker: applied-event markers for webhook de-duplication
"""

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentBinding",
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
                    "razorpay_order_id",
                    models.CharField(
                        help_text="Razorpay order ID (order_xxx) - immutable after creation",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "razorpay_payment_id",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="Razorpay payment ID (pay_xxx) - set once",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "razorpay_signature",
                    models.CharField(
                        blank=True,
                        help_text="Checkout signature supplied with the client confirmation",
                        max_length=128,
                        null=True,
                    ),
                ),
                (
                    "refund_id",
                    models.CharField(
                        blank=True,
                        help_text="Most recent Razorpay refund ID (rfnd_xxx)",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "amount_received",
                    models.PositiveBigIntegerField(
                        blank=True,
                        help_text="Amount accepted by the gateway in minor units (e.g., paise)",
                        null=True,
                    ),
                ),
                (
                    "last_error",
                    models.JSONField(
                        blank=True,
                        help_text="Most recent failure details reported by Razorpay",
                        null=True,
                    ),
                ),
                (
                    "reconciliation_required",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Payment accepted after the reservation expired; needs manual review",
                    ),
                ),
                (
                    "order",
                    models.OneToOneField(
                        help_text="Order this Razorpay payment belongs to",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="razorpay_binding",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Razorpay Payment",
                "verbose_name_plural": "Razorpay Payments",
                "db_table": "razorpay_payments",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="IdempotencyMarker",
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
                    "key",
                    models.CharField(
                        help_text="Event key - unique constraint for idempotency",
                        max_length=255,
                        unique=True,
                    ),
                ),
                (
                    "scope",
                    models.CharField(
                        choices=[
                            ("PAYMENT_EVENT", "Payment Event"),
                            ("WEBHOOK_EVENT", "Webhook Event"),
                        ],
                        help_text="What this marker de-duplicates",
                        max_length=20,
                    ),
                ),
                (
                    "expires_at",
                    models.DateTimeField(
                        db_index=True,
                        help_text="Marker is active until this time",
                    ),
                ),
            ],
            options={
                "verbose_name": "Idempotency Marker",
                "verbose_name_plural": "Idempotency Markers",
                "ordering": ["-created_at"],
            },
        ),
    ]
