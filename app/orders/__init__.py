"""
Orders app for event ticket reservations.

This app holds the order records the payments app reconciles against:
- Order: reservation with status, payment status and refund status
- Attendee: ticket holders activated when the order completes
- Affiliate: referral partner credited for completed sales

Related apps:
    - payments: Razorpay order binding, verification, webhooks and refunds

Usage:
    from orders.services import OrderService

    order = OrderService.find_order_by_short_id("o_abc123", for_update=True)
    OrderService.complete_order(order)
"""
