"""
Pytest fixtures for Razorpay adapter tests.

This module provides fixtures for testing the Razorpay adapter with a
mocked razorpay.Client, canned API responses and SDK errors.

Sections:
    - Mock Razorpay Client Fixtures
    - Mock Razorpay Response Fixtures
"""

from unittest.mock import MagicMock, patch

import pytest

from payments.adapters import RazorpayAdapter


# =============================================================================
# Mock Razorpay Client Fixtures
# =============================================================================


@pytest.fixture
def mock_razorpay_client():
    """Patch RazorpayAdapter._get_client to return a MagicMock client."""
    client = MagicMock()
    with patch.object(RazorpayAdapter, "_get_client", return_value=client):
        yield client


@pytest.fixture
def no_sleep():
    """Skip backoff delays between retries."""
    with patch("payments.adapters.razorpay_adapter.time.sleep") as mock_sleep:
        yield mock_sleep


# =============================================================================
# Mock Razorpay Response Fixtures
# =============================================================================


@pytest.fixture
def order_response():
    """Create a Razorpay order response dict."""

    def _create(
        id: str = "order_Nabc123",
        amount: int = 5000,
        currency: str = "INR",
        receipt: str = "order_o_test000001",
        status: str = "created",
    ) -> dict:
        return {
            "id": id,
            "entity": "order",
            "amount": amount,
            "amount_paid": 0,
            "amount_due": amount,
            "currency": currency,
            "receipt": receipt,
            "status": status,
            "notes": {},
        }

    return _create


@pytest.fixture
def payment_response():
    """Create a Razorpay payment response dict."""

    def _create(
        id: str = "pay_Nxyz789",
        order_id: str = "order_Nabc123",
        status: str = "captured",
        amount: int = 5000,
        currency: str = "INR",
        amount_refunded: int = 0,
        method: str = "upi",
    ) -> dict:
        return {
            "id": id,
            "entity": "payment",
            "order_id": order_id,
            "status": status,
            "amount": amount,
            "currency": currency,
            "captured": status == "captured",
            "amount_refunded": amount_refunded,
            "method": method,
            "error_code": None,
            "error_description": None,
        }

    return _create


@pytest.fixture
def refund_response():
    """Create a Razorpay refund response dict."""

    def _create(
        id: str = "rfnd_Nref456",
        payment_id: str = "pay_Nxyz789",
        amount: int = 2500,
        currency: str = "INR",
        status: str = "processed",
    ) -> dict:
        return {
            "id": id,
            "entity": "refund",
            "payment_id": payment_id,
            "amount": amount,
            "currency": currency,
            "status": status,
        }

    return _create
