"""
Payment admin configuration.

Registers Razorpay bindings and idempotency markers with the Django admin.
Both are read-mostly: state changes go through the service layer.
"""

from django.contrib import admin

from payments.models import IdempotencyMarker, PaymentBinding

__all__ = [
    "IdempotencyMarkerAdmin",
    "PaymentBindingAdmin",
]


@admin.register(PaymentBinding)
class PaymentBindingAdmin(admin.ModelAdmin):
    """
    Admin configuration for PaymentBinding.

    Provides visibility into Razorpay identifiers, failures and bindings
    flagged for manual reconciliation.
    """

    list_display = [
        "id",
        "order",
        "razorpay_order_id",
        "razorpay_payment_id",
        "amount_received",
        "refund_id",
        "reconciliation_required",
        "created_at",
    ]
    list_filter = ["reconciliation_required", "created_at"]
    search_fields = [
        "id",
        "razorpay_order_id",
        "razorpay_payment_id",
        "refund_id",
        "order__short_id",
        "order__email",
    ]
    readonly_fields = [
        "id",
        "order",
        "razorpay_order_id",
        "razorpay_payment_id",
        "razorpay_signature",
        "amount_received",
        "refund_id",
        "last_error",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "order"),
            },
        ),
        (
            "Razorpay",
            {
                "fields": (
                    "razorpay_order_id",
                    "razorpay_payment_id",
                    "razorpay_signature",
                    "amount_received",
                    "refund_id",
                ),
            },
        ),
        (
            "Reconciliation",
            {
                "fields": ("reconciliation_required", "last_error"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for bindings (audit trail)."""
        return False


@admin.register(IdempotencyMarker)
class IdempotencyMarkerAdmin(admin.ModelAdmin):
    list_display = ["key", "scope", "expires_at", "created_at"]
    list_filter = ["scope"]
    search_fields = ["key"]
    readonly_fields = ["key", "scope", "expires_at", "created_at", "updated_at"]
    ordering = ["-created_at"]

    def has_add_permission(self, request) -> bool:
        return False
