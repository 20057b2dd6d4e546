"""
Payments app configuration.

This app reconciles Razorpay payments with orders:
- Razorpay order creation and client verification
- Webhook ingestion with idempotency markers
- Refunds
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
