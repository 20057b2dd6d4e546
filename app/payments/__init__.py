"""
Payments app for Razorpay integration.

This app handles:
- Razorpay order creation for reserved orders
- Client-side payment verification
- Webhook ingestion (authorized, captured, failed, refund processed)
- Refunds initiated by staff

Related apps:
    - orders: Order, Attendee and Affiliate models and OrderService

Usage:
    from payments.services import PaymentVerificationService

    result = PaymentVerificationService.verify(
        order_short_id, razorpay_payment_id, razorpay_order_id, signature
    )
"""
