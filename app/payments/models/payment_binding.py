"""
PaymentBinding model linking an order to its Razorpay order and payment.

One binding exists per order. It is created with the Razorpay order id
when checkout starts, and records the payment id, signature and amount
once the payment is confirmed by the client or a webhook.

Usage:
    from payments.models import PaymentBinding

    binding = PaymentBinding.objects.create(
        order=order,
        razorpay_order_id="order_Nabc123",
    )

    # Bind the payment (set once, same id is a no-op)
    binding.record_payment("pay_Nxyz789", amount_received=5000)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import models

from core.exceptions import ConflictError
from core.models import BaseModel, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from typing import Any


class PaymentBinding(UUIDPrimaryKeyMixin, BaseModel):
    """
    Razorpay identifiers and payment results for one order.

    Invariants:
        - razorpay_order_id never changes once created
        - razorpay_payment_id is set once; a different id is a conflict
        - rows are never deleted (audit trail)

    Fields:
        order: The order this binding belongs to (one-to-one)
        razorpay_order_id: Razorpay order ID (order_xxx)
        razorpay_payment_id: Razorpay payment ID (pay_xxx), once paid
        razorpay_signature: Checkout signature from the client confirmation
        amount_received: Amount the gateway accepted, in minor units
        refund_id: Most recent Razorpay refund ID (rfnd_xxx)
        last_error: Details of the most recent payment failure
        reconciliation_required: Money accepted for an expired or cancelled order
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.OneToOneField(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="razorpay_binding",
        help_text="Order this Razorpay payment belongs to",
    )

    # ==========================================================================
    # Razorpay Identifiers
    # ==========================================================================

    razorpay_order_id = models.CharField(
        max_length=64,
        unique=True,
        help_text="Razorpay order ID (order_xxx) - immutable after creation",
    )

    razorpay_payment_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        db_index=True,
        help_text="Razorpay payment ID (pay_xxx) - set once",
    )

    razorpay_signature = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        help_text="Checkout signature supplied with the client confirmation",
    )

    refund_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Most recent Razorpay refund ID (rfnd_xxx)",
    )

    # ==========================================================================
    # Amount
    # ==========================================================================

    amount_received = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Amount accepted by the gateway in minor units (e.g., paise)",
    )

    # ==========================================================================
    # Error & Reconciliation
    # ==========================================================================

    last_error = models.JSONField(
        null=True,
        blank=True,
        help_text="Most recent failure details reported by Razorpay",
    )

    reconciliation_required = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Payment accepted after the reservation expired; needs manual review",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        db_table = "razorpay_payments"
        ordering = ["-created_at"]
        verbose_name = "Razorpay Payment"
        verbose_name_plural = "Razorpay Payments"

    def __str__(self) -> str:
        return f"PaymentBinding({self.razorpay_order_id}, {self.razorpay_payment_id or '-'})"

    def save(self, *args, **kwargs):
        """
        Save, refusing to change razorpay_order_id on an existing row.

        Raises:
            ConflictError: If razorpay_order_id differs from the stored value
        """
        if not self._state.adding:
            stored = (
                type(self)
                .objects.filter(pk=self.pk)
                .values_list("razorpay_order_id", flat=True)
                .first()
            )
            if stored is not None and stored != self.razorpay_order_id:
                raise ConflictError(
                    "razorpay_order_id cannot be changed",
                    error_code="BINDING_IMMUTABLE_FIELD",
                    details={"binding_id": str(self.pk), "razorpay_order_id": stored},
                )
        super().save(*args, **kwargs)

    def record_payment(
        self,
        payment_id: str,
        amount_received: int | None = None,
        signature: str | None = None,
    ) -> PaymentBinding:
        """
        Bind a payment to this order and clear any previous error.

        Recording the already-bound payment id again rewrites the same values.

        Args:
            payment_id: Razorpay payment ID (pay_xxx)
            amount_received: Amount accepted in minor units
            signature: Checkout signature, when confirmed by the client

        Raises:
            ConflictError: If a different payment id is already bound
        """
        if self.razorpay_payment_id and self.razorpay_payment_id != payment_id:
            raise ConflictError(
                "A different payment is already bound to this order",
                error_code="PAYMENT_ID_ALREADY_BOUND",
                details={
                    "razorpay_order_id": self.razorpay_order_id,
                    "bound_payment_id": self.razorpay_payment_id,
                    "razorpay_payment_id": payment_id,
                },
            )

        self.razorpay_payment_id = payment_id
        update_fields = ["razorpay_payment_id", "last_error", "updated_at"]
        if amount_received is not None:
            self.amount_received = amount_received
            update_fields.append("amount_received")
        if signature is not None:
            self.razorpay_signature = signature
            update_fields.append("razorpay_signature")
        self.last_error = None
        self.save(update_fields=update_fields)
        return self

    def record_error(self, error: dict[str, Any]) -> PaymentBinding:
        self.last_error = error
        self.save(update_fields=["last_error", "updated_at"])
        return self

    def flag_reconciliation(self, error: dict[str, Any]) -> PaymentBinding:
        """Mark the binding for manual reconciliation with the reason."""
        self.reconciliation_required = True
        self.last_error = error
        self.save(update_fields=["reconciliation_required", "last_error", "updated_at"])
        return self
