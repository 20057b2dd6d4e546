"""
Order admin configuration.
"""

from django.contrib import admin

from orders.models import Affiliate, Attendee, Order, ProductPrice


class AttendeeInline(admin.TabularInline):
    model = Attendee
    extra = 0
    fields = ["email", "first_name", "last_name", "product_price", "status"]
    readonly_fields = ["status"]


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Admin configuration for Order.

    Payment and refund statuses change through the payments service layer,
    so they are read-only here.
    """

    list_display = [
        "short_id",
        "email",
        "amount_display",
        "status",
        "payment_status",
        "refund_status",
        "reserved_until",
        "created_at",
    ]
    list_filter = ["status", "payment_status", "refund_status", "currency"]
    search_fields = ["id", "short_id", "email", "session_id"]
    readonly_fields = [
        "id",
        "short_id",
        "status",
        "payment_status",
        "refund_status",
        "payment_provider",
        "completed_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [AttendeeInline]

    def amount_display(self, obj: Order) -> str:
        """Display the amount with its currency."""
        return f"{obj.total_gross} {obj.currency}"

    amount_display.short_description = "Amount"

    def has_delete_permission(self, request, obj=None) -> bool:
        """Disable delete for orders (payment audit trail)."""
        return False


@admin.register(Affiliate)
class AffiliateAdmin(admin.ModelAdmin):
    list_display = ["code", "name", "sales_count", "sales_gross"]
    search_fields = ["code", "name"]
    readonly_fields = ["sales_count", "sales_gross", "created_at", "updated_at"]


@admin.register(ProductPrice)
class ProductPriceAdmin(admin.ModelAdmin):
    list_display = ["label", "price", "quantity_available", "quantity_sold"]
    search_fields = ["label"]
    readonly_fields = ["quantity_sold", "created_at", "updated_at"]
