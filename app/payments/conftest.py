"""
Pytest fixtures shared by the payments test packages.

This module provides orders and Razorpay bindings in the states the
payment flows start from.

Usage:
    def test_refund(paid_binding, mock_gateway, mock_redis):
        mock_gateway.fetch_payment.return_value = PaymentDetailsFactory(
            id=paid_binding.razorpay_payment_id
        )
        ...
"""

import pytest

from orders.states import OrderPaymentStatus, OrderStatus
from orders.tests.factories import AttendeeFactory, OrderFactory
from payments.tests.factories import PaymentBindingFactory


# =============================================================================
# Order Fixtures
# =============================================================================


@pytest.fixture
def reserved_order(db):
    """Create a reserved 50.00 INR order with one attendee."""
    order = OrderFactory()
    AttendeeFactory(order=order)
    return order


@pytest.fixture
def completed_order(db):
    """Create a completed order whose Razorpay payment was received."""
    order = OrderFactory(
        status=OrderStatus.COMPLETED,
        payment_status=OrderPaymentStatus.PAYMENT_RECEIVED,
    )
    AttendeeFactory(order=order)
    return order


# =============================================================================
# Binding Fixtures
# =============================================================================


@pytest.fixture
def binding(reserved_order):
    """Create a binding with no payment for the reserved order."""
    return PaymentBindingFactory(order=reserved_order)


@pytest.fixture
def paid_binding(completed_order):
    """Create a binding with a received payment of 5000 for the completed order."""
    return PaymentBindingFactory(order=completed_order, paid=True)
