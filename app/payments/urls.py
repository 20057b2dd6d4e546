"""
URL configuration for the payments app.

Routes:
    - POST /webhooks/razorpay/ - Razorpay webhook endpoint
    - POST /orders/<short_id>/razorpay/order/ - Create Razorpay order
    - POST /orders/<short_id>/razorpay/verify/ - Verify client payment
    - GET|POST /orders/<uuid>/razorpay/refund/ - Refund preview / refund (staff)

All routes are prefixed with /api/v1/payments/ when included in the main URLconf.

Usage:
    # In config/urls.py
    api_v1_patterns = [
        path("payments/", include("payments.urls")),
    ]
"""

from django.urls import path

from payments.views import CreateRazorpayOrderView, RazorpayRefundView, VerifyRazorpayPaymentView
from payments.webhooks.views import razorpay_webhook

app_name = "payments"

urlpatterns = [
    # Webhook endpoints
    path("webhooks/razorpay/", razorpay_webhook, name="razorpay_webhook"),
    # Checkout
    path(
        "orders/<str:short_id>/razorpay/order/",
        CreateRazorpayOrderView.as_view(),
        name="razorpay_create_order",
    ),
    path(
        "orders/<str:short_id>/razorpay/verify/",
        VerifyRazorpayPaymentView.as_view(),
        name="razorpay_verify",
    ),
    # Refunds
    path(
        "orders/<uuid:order_id>/razorpay/refund/",
        RazorpayRefundView.as_view(),
        name="razorpay_refund",
    ),
]
