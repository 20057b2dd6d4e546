"""
DRF views for payments app.

This module provides API views for:
- Starting Razorpay checkout for a reserved order
- Verifying the client confirmation after checkout
- Operator refunds and refund previews

Related files:
    - services/: OrderBindingService, PaymentVerificationService, RefundService
    - serializers.py: Request/response serializers
    - urls.py: URL routing
    - webhooks/views.py: Razorpay webhook endpoint

Endpoints:
    POST /api/v1/payments/orders/<short_id>/razorpay/order/ - Create Razorpay order
    POST /api/v1/payments/orders/<short_id>/razorpay/verify/ - Verify payment
    POST /api/v1/payments/orders/<uuid>/razorpay/refund/ - Refund (staff)
    GET  /api/v1/payments/orders/<uuid>/razorpay/refund/ - Refund preview (staff)

Security:
    - Checkout and verification are public; the checkout session and the
      Razorpay signature authenticate them
    - Refund endpoints require a staff user (JWT or session)

Errors:
    Domain errors answer with {"error", "error_code", "details"} and the
    status carried by the exception (400, 403, 404, 409, 500, 502, 503).
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError

from payments.amounts import to_minor_units
from payments.serializers import (
    CheckoutDetailsSerializer,
    CreateRazorpayOrderSerializer,
    RefundOutcomeSerializer,
    RefundPreviewSerializer,
    RefundRequestSerializer,
    VerificationResultSerializer,
    VerifyPaymentSerializer,
)
from payments.services import OrderBindingService, PaymentVerificationService, RefundService

logger = logging.getLogger(__name__)


def error_response(error: BaseApplicationError) -> Response:
    """Render a domain error with its own status code."""
    return Response(error.to_dict(), status=error.status_code)


class CreateRazorpayOrderView(APIView):
    """
    Create (or return) the Razorpay order for a reserved order.

    POST /api/v1/payments/orders/{short_id}/razorpay/order/

    Request body:
        {"session_id": "sess_xxx"}

    Response:
        201 Created: New Razorpay order
        200 OK: Existing Razorpay order for this order
        403 Forbidden: Session does not own the order
        404 Not Found: Unknown order
        409 Conflict: Order expired or not reserved
        502/503: Razorpay failure
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="create_razorpay_order",
        summary="Create Razorpay order",
        description=(
            "Create the Razorpay order for a reserved order and return the "
            "parameters Razorpay Checkout needs. Idempotent per order."
        ),
        request=CreateRazorpayOrderSerializer,
        responses={
            201: OpenApiResponse(response=CheckoutDetailsSerializer, description="Order created"),
            200: OpenApiResponse(response=CheckoutDetailsSerializer, description="Existing order"),
            403: OpenApiResponse(description="Checkout session mismatch"),
            404: OpenApiResponse(description="Order not found"),
            409: OpenApiResponse(description="Order expired or not reserved"),
        },
        tags=["Payments - Razorpay"],
    )
    def post(self, request, short_id):
        serializer = CreateRazorpayOrderSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {
                    "error": "Invalid request",
                    "error_code": "VALIDATION_ERROR",
                    "details": serializer.errors,
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            details = OrderBindingService.start_checkout(
                short_id,
                serializer.validated_data["session_id"],
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(
            CheckoutDetailsSerializer(details).data,
            status=status.HTTP_201_CREATED if details.created else status.HTTP_200_OK,
        )


class VerifyRazorpayPaymentView(APIView):
    """
    Verify the client confirmation after Razorpay Checkout.

    POST /api/v1/payments/orders/{short_id}/razorpay/verify/

    Request body:
        {
            "razorpay_payment_id": "pay_xxx",
            "razorpay_order_id": "order_xxx",
            "razorpay_signature": "<hex>"
        }

    Response:
        200 OK: {"verified", "already_verified", "order_status", "payment_status"}
        400 Bad Request: Invalid input, signature, amount, or currency
        404 Not Found: Unknown order
        409 Conflict: Order state or Razorpay order id mismatch
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="verify_razorpay_payment",
        summary="Verify Razorpay payment",
        request=VerifyPaymentSerializer,
        responses={
            200: OpenApiResponse(response=VerificationResultSerializer, description="Verified"),
            400: OpenApiResponse(description="Verification failed"),
            404: OpenApiResponse(description="Order not found"),
            409: OpenApiResponse(description="Order state conflict"),
        },
        tags=["Payments - Razorpay"],
    )
    def post(self, request, short_id):
        serializer = VerifyPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {
                    "error": "Invalid payment verification data",
                    "error_code": "INVALID_VERIFICATION_INPUT",
                    "details": serializer.errors,
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = serializer.validated_data
        try:
            result = PaymentVerificationService.verify(
                order_short_id=short_id,
                razorpay_payment_id=data["razorpay_payment_id"],
                razorpay_order_id=data["razorpay_order_id"],
                signature=data["razorpay_signature"],
            )
        except BaseApplicationError as e:
            return error_response(e)

        return Response(VerificationResultSerializer(result).data)


class RazorpayRefundView(APIView):
    """
    Refund a Razorpay payment, or preview what can be refunded.

    GET /api/v1/payments/orders/{order_id}/razorpay/refund/
        Current eligibility and maximum refundable amount.

    POST /api/v1/payments/orders/{order_id}/razorpay/refund/
        {"amount": "25.00", "cancel_order": false, "notify_buyer": true}

    Authentication:
        Staff users only.
    """

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="preview_razorpay_refund",
        summary="Preview Razorpay refund",
        responses={
            200: OpenApiResponse(response=RefundPreviewSerializer, description="Eligibility"),
            404: OpenApiResponse(description="Order not found"),
        },
        tags=["Payments - Razorpay"],
    )
    def get(self, request, order_id):
        try:
            eligibility = RefundService.get_refund_preview(order_id)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(RefundPreviewSerializer(eligibility).data)

    @extend_schema(
        operation_id="create_razorpay_refund",
        summary="Refund Razorpay payment",
        request=RefundRequestSerializer,
        responses={
            200: OpenApiResponse(response=RefundOutcomeSerializer, description="Refund created"),
            400: OpenApiResponse(description="Refund not allowed"),
            404: OpenApiResponse(description="Order not found"),
            409: OpenApiResponse(description="Another refund is in progress"),
        },
        tags=["Payments - Razorpay"],
    )
    def post(self, request, order_id):
        serializer = RefundRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {
                    "error": "Invalid refund request",
                    "error_code": "VALIDATION_ERROR",
                    "details": serializer.errors,
                },
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = serializer.validated_data
        try:
            result = RefundService.create_refund(
                order_id=order_id,
                amount=to_minor_units(data["amount"]),
                cancel_order=data["cancel_order"],
                notify_buyer=data["notify_buyer"],
            )
        except BaseApplicationError as e:
            return error_response(e)

        if not result:
            return Response(
                {"error": result.error, "error_code": result.error_code},
                status=status.HTTP_400_BAD_REQUEST,
            )

        logger.info(
            "Refund requested by staff",
            extra={"order_id": str(order_id), "user_id": request.user.pk},
        )
        return Response(RefundOutcomeSerializer(result.data).data)
