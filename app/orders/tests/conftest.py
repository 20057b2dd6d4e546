"""
Pytest fixtures for order tests.
"""

import pytest

from orders.states import OrderPaymentStatus, OrderStatus
from orders.tests.factories import AffiliateFactory, AttendeeFactory, OrderFactory


@pytest.fixture
def affiliate(db):
    """Create an affiliate with no sales."""
    return AffiliateFactory()


@pytest.fixture
def reserved_order(db):
    """Create a reserved order with two attendees awaiting payment."""
    order = OrderFactory()
    AttendeeFactory.create_batch(2, order=order)
    return order


@pytest.fixture
def completed_order(db):
    """Create a completed, paid order with an active attendee."""
    order = OrderFactory(
        status=OrderStatus.COMPLETED,
        payment_status=OrderPaymentStatus.PAYMENT_RECEIVED,
    )
    AttendeeFactory(order=order)
    return order
