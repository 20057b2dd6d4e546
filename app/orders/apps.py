"""
Django app configuration for orders.
"""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    """Configuration for the orders application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
    verbose_name = "Orders"

    def ready(self):
        """
        Import signals when the app is ready.

        This ensures the order event receivers are connected when Django starts.
        """
        from orders import signals  # noqa: F401
