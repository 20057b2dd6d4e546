"""
DRF serializers for payments app.

This module provides serializers for:
- Razorpay order creation (checkout start)
- Client payment verification
- Operator refunds and refund previews

Related files:
    - services/: OrderBindingService, PaymentVerificationService, RefundService
    - views.py: Payment API views

Usage:
    serializer = VerifyPaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
"""

from __future__ import annotations

from rest_framework import serializers

from payments.services.verification_service import ORDER_ID_PREFIX, PAYMENT_ID_PREFIX


# =============================================================================
# Checkout
# =============================================================================


class CreateRazorpayOrderSerializer(serializers.Serializer):
    """Request body for starting Razorpay checkout."""

    session_id = serializers.CharField(
        max_length=255,
        help_text="Checkout session that owns the order",
    )


class CheckoutDetailsSerializer(serializers.Serializer):
    """
    Razorpay Checkout parameters for the browser.

    Fields:
        razorpay_order_id: Razorpay order ID (order_xxx)
        amount: Amount in minor units
        currency: ISO 4217 currency code
        key_id: Public Razorpay key id
        receipt: Merchant reference
        order_short_id: Public order reference
    """

    razorpay_order_id = serializers.CharField(read_only=True)
    amount = serializers.IntegerField(read_only=True)
    currency = serializers.CharField(read_only=True)
    key_id = serializers.CharField(read_only=True)
    receipt = serializers.CharField(read_only=True)
    order_short_id = serializers.CharField(read_only=True)


# =============================================================================
# Verification
# =============================================================================


class VerifyPaymentSerializer(serializers.Serializer):
    """
    Client confirmation posted after Razorpay Checkout succeeds.

    Validates the identifier prefixes so malformed input never reaches
    the database or the gateway.
    """

    razorpay_payment_id = serializers.CharField(max_length=64)
    razorpay_order_id = serializers.CharField(max_length=64)
    razorpay_signature = serializers.CharField(max_length=128)

    def validate_razorpay_payment_id(self, value: str) -> str:
        if not value.startswith(PAYMENT_ID_PREFIX):
            raise serializers.ValidationError(f"Must start with '{PAYMENT_ID_PREFIX}'.")
        return value

    def validate_razorpay_order_id(self, value: str) -> str:
        if not value.startswith(ORDER_ID_PREFIX):
            raise serializers.ValidationError(f"Must start with '{ORDER_ID_PREFIX}'.")
        return value


class VerificationResultSerializer(serializers.Serializer):
    verified = serializers.BooleanField(read_only=True)
    already_verified = serializers.BooleanField(read_only=True)
    order_status = serializers.CharField(read_only=True)
    payment_status = serializers.CharField(read_only=True)
    payment_method = serializers.CharField(read_only=True, allow_null=True)


# =============================================================================
# Refunds
# =============================================================================


class RefundRequestSerializer(serializers.Serializer):
    """
    Operator refund request.

    The amount is in major units (e.g. 25.00). Bounds are checked by
    RefundService so each rejection carries its own error code.
    """

    amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Refund amount in major units",
    )
    cancel_order = serializers.BooleanField(
        default=False,
        help_text="Cancel the order after refunding",
    )
    notify_buyer = serializers.BooleanField(
        default=True,
        help_text="Email the buyer about the refund",
    )


class RefundOutcomeSerializer(serializers.Serializer):
    refund_id = serializers.CharField(read_only=True)
    refund_status = serializers.CharField(read_only=True)
    amount = serializers.IntegerField(read_only=True, help_text="Refunded amount in minor units")


class RefundPreviewSerializer(serializers.Serializer):
    """Current refund eligibility of an order."""

    eligible = serializers.BooleanField(read_only=True)
    max_refundable = serializers.IntegerField(read_only=True)
    already_refunded = serializers.IntegerField(read_only=True)
    block_reason = serializers.CharField(read_only=True, allow_null=True)
    block_code = serializers.CharField(read_only=True, allow_null=True)
