"""
Tests for Razorpay adapter.

Tests cover:
- Parameter validation
- Error translation for each exception type
- Successful API operations
- Retry of payment fetches on transient errors
- Secret redaction
- Helper functions (is_retryable, backoff_delay)
"""

from unittest.mock import patch

import pytest
import razorpay
import requests

from payments.adapters import (
    CreateOrderParams,
    CreateRefundParams,
    RazorpayAdapter,
    backoff_delay,
    is_retryable_gateway_error,
)
from payments.adapters.razorpay_adapter import REDACTED, redact
from payments.configuration import get_razorpay_configuration
from payments.exceptions import (
    GatewayAuthInvalid,
    GatewayRequestInvalid,
    GatewayUnavailable,
)
from payments.signatures import compute_signature


# =============================================================================
# Parameter Tests
# =============================================================================


class TestCreateOrderParams:
    """Tests for CreateOrderParams dataclass validation."""

    def test_valid_params(self):
        params = CreateOrderParams(amount=5000, currency="inr", receipt="order_o_abc")

        assert params.amount == 5000
        assert params.currency == "INR"
        assert params.notes == {}

    @pytest.mark.parametrize("amount", [0, -100])
    def test_amount_must_be_positive(self, amount):
        with pytest.raises(ValueError, match="amount must be positive"):
            CreateOrderParams(amount=amount, currency="INR", receipt="order_o_abc")

    def test_currency_required(self):
        with pytest.raises(ValueError, match="currency is required"):
            CreateOrderParams(amount=5000, currency="", receipt="order_o_abc")

    def test_receipt_length_limited(self):
        with pytest.raises(ValueError, match="receipt"):
            CreateOrderParams(amount=5000, currency="INR", receipt="r" * 41)

    def test_too_many_notes(self):
        notes = {f"key{i}": "value" for i in range(16)}

        with pytest.raises(ValueError, match="at most 15 notes"):
            CreateOrderParams(amount=5000, currency="INR", receipt="order_o_abc", notes=notes)

    def test_note_values_are_truncated(self):
        params = CreateOrderParams(
            amount=5000,
            currency="INR",
            receipt="order_o_abc",
            notes={"long": "x" * 300},
        )

        assert len(params.notes["long"]) == 256


class TestCreateRefundParams:
    def test_payment_id_required(self):
        with pytest.raises(ValueError, match="payment_id is required"):
            CreateRefundParams(payment_id="", amount=100)

    def test_amount_must_be_positive(self):
        with pytest.raises(ValueError, match="amount must be positive"):
            CreateRefundParams(payment_id="pay_1", amount=0)


# =============================================================================
# Helper Tests
# =============================================================================


class TestIsRetryableGatewayError:
    def test_unavailable_is_retryable(self):
        assert is_retryable_gateway_error(GatewayUnavailable("down")) is True

    def test_permanent_errors_are_not(self):
        assert is_retryable_gateway_error(GatewayRequestInvalid("bad")) is False
        assert is_retryable_gateway_error(GatewayAuthInvalid("auth")) is False

    def test_non_gateway_errors(self):
        assert is_retryable_gateway_error(ValueError("x")) is False


class TestBackoffDelay:
    def test_exponential_growth(self):
        assert 1.0 <= backoff_delay(0) <= 1.25
        assert 2.0 <= backoff_delay(1) <= 2.5
        assert 4.0 <= backoff_delay(2) <= 5.0

    def test_respects_max_delay(self):
        assert backoff_delay(20) <= 75.0


class TestRedact:
    def test_replaces_every_secret(self):
        message = redact("key s3cret and hook whsec in text s3cret", "s3cret", "whsec")

        assert "s3cret" not in message
        assert "whsec" not in message
        assert message.count(REDACTED) == 3

    def test_empty_secret_ignored(self):
        assert redact("unchanged", "") == "unchanged"


# =============================================================================
# Client Construction
# =============================================================================


class TestGetClient:
    def test_uses_configured_credentials(self):
        with patch("razorpay.Client") as client_class:
            RazorpayAdapter._get_client(get_razorpay_configuration())

        client_class.assert_called_once_with(auth=("rzp_test_key_id", "test_key_secret"))


# =============================================================================
# Error Translation
# =============================================================================


class TestRazorpayAdapterErrorTranslation:
    """Tests for SDK and transport error translation."""

    def test_authentication_error(self, mock_razorpay_client):
        mock_razorpay_client.order.create.side_effect = razorpay.errors.BadRequestError(
            "Authentication failed"
        )

        with pytest.raises(GatewayAuthInvalid) as exc_info:
            RazorpayAdapter.create_order(
                CreateOrderParams(amount=5000, currency="INR", receipt="order_o_abc")
            )

        assert exc_info.value.gateway_code == "authentication_error"
        assert exc_info.value.is_retryable is False

    def test_bad_request_error(self, mock_razorpay_client):
        mock_razorpay_client.order.create.side_effect = razorpay.errors.BadRequestError(
            "The amount must be atleast INR 1.00"
        )

        with pytest.raises(GatewayRequestInvalid) as exc_info:
            RazorpayAdapter.create_order(
                CreateOrderParams(amount=50, currency="INR", receipt="order_o_abc")
            )

        assert "atleast INR 1.00" in exc_info.value.message
        assert exc_info.value.status_code == 502

    def test_error_message_never_contains_secret(self, mock_razorpay_client):
        mock_razorpay_client.payment.refund.side_effect = razorpay.errors.BadRequestError(
            "Invalid request for key test_key_secret"
        )

        with pytest.raises(GatewayRequestInvalid) as exc_info:
            RazorpayAdapter.create_refund(CreateRefundParams(payment_id="pay_1", amount=100))

        assert "test_key_secret" not in str(exc_info.value.to_dict())
        assert REDACTED in exc_info.value.message

    def test_gateway_error(self, mock_razorpay_client):
        mock_razorpay_client.order.create.side_effect = razorpay.errors.GatewayError("bad gateway")

        with pytest.raises(GatewayUnavailable) as exc_info:
            RazorpayAdapter.create_order(
                CreateOrderParams(amount=5000, currency="INR", receipt="order_o_abc")
            )

        assert exc_info.value.gateway_code == "gateway_error"
        assert exc_info.value.status_code == 503

    def test_server_error(self, mock_razorpay_client):
        mock_razorpay_client.order.create.side_effect = razorpay.errors.ServerError("oops")

        with pytest.raises(GatewayUnavailable) as exc_info:
            RazorpayAdapter.create_order(
                CreateOrderParams(amount=5000, currency="INR", receipt="order_o_abc")
            )

        assert exc_info.value.gateway_code == "server_error"

    def test_timeout(self, mock_razorpay_client):
        mock_razorpay_client.order.create.side_effect = requests.Timeout()

        with pytest.raises(GatewayUnavailable) as exc_info:
            RazorpayAdapter.create_order(
                CreateOrderParams(amount=5000, currency="INR", receipt="order_o_abc")
            )

        assert exc_info.value.gateway_code == "timeout"
        assert "30s" in exc_info.value.message

    def test_connection_error(self, mock_razorpay_client):
        mock_razorpay_client.order.create.side_effect = requests.ConnectionError()

        with pytest.raises(GatewayUnavailable) as exc_info:
            RazorpayAdapter.create_order(
                CreateOrderParams(amount=5000, currency="INR", receipt="order_o_abc")
            )

        assert exc_info.value.gateway_code == "api_connection_error"

    def test_unknown_error(self, mock_razorpay_client):
        mock_razorpay_client.order.create.side_effect = RuntimeError("boom")

        with pytest.raises(GatewayUnavailable) as exc_info:
            RazorpayAdapter.create_order(
                CreateOrderParams(amount=5000, currency="INR", receipt="order_o_abc")
            )

        assert exc_info.value.gateway_code == "unknown_error"
        assert "RuntimeError" in exc_info.value.message


# =============================================================================
# Operations
# =============================================================================


class TestRazorpayAdapterCreateOrder:
    def test_create_order_success(self, mock_razorpay_client, order_response):
        mock_razorpay_client.order.create.return_value = order_response()

        result = RazorpayAdapter.create_order(
            CreateOrderParams(
                amount=5000,
                currency="INR",
                receipt="order_o_test000001",
                notes={"order_id": "abc"},
            )
        )

        assert result.id == "order_Nabc123"
        assert result.amount == 5000
        assert result.currency == "INR"
        assert result.status == "created"
        mock_razorpay_client.order.create.assert_called_once_with(
            data={
                "amount": 5000,
                "currency": "INR",
                "receipt": "order_o_test000001",
                "notes": {"order_id": "abc"},
            },
            timeout=30,
        )

    def test_create_order_is_not_retried(self, mock_razorpay_client, no_sleep):
        """A timed out create may still have created the order."""
        mock_razorpay_client.order.create.side_effect = requests.Timeout()

        with pytest.raises(GatewayUnavailable):
            RazorpayAdapter.create_order(
                CreateOrderParams(amount=5000, currency="INR", receipt="order_o_abc")
            )

        assert mock_razorpay_client.order.create.call_count == 1
        no_sleep.assert_not_called()


class TestRazorpayAdapterFetchPayment:
    def test_fetch_payment_success(self, mock_razorpay_client, payment_response):
        mock_razorpay_client.payment.fetch.return_value = payment_response(
            currency="inr", amount_refunded=1000
        )

        payment = RazorpayAdapter.fetch_payment("pay_Nxyz789")

        assert payment.id == "pay_Nxyz789"
        assert payment.order_id == "order_Nabc123"
        assert payment.status == "captured"
        assert payment.captured is True
        assert payment.amount == 5000
        assert payment.currency == "INR"
        assert payment.amount_refunded == 1000
        assert payment.method == "upi"
        mock_razorpay_client.payment.fetch.assert_called_once_with("pay_Nxyz789", timeout=30)

    def test_retries_transient_errors(self, mock_razorpay_client, payment_response, no_sleep):
        mock_razorpay_client.payment.fetch.side_effect = [
            razorpay.errors.ServerError("oops"),
            payment_response(),
        ]

        payment = RazorpayAdapter.fetch_payment("pay_Nxyz789")

        assert payment.id == "pay_Nxyz789"
        assert mock_razorpay_client.payment.fetch.call_count == 2
        assert no_sleep.call_count == 1

    def test_gives_up_after_max_retries(self, settings, mock_razorpay_client, no_sleep):
        settings.RAZORPAY_MAX_RETRIES = 2
        mock_razorpay_client.payment.fetch.side_effect = requests.ConnectionError()

        with pytest.raises(GatewayUnavailable):
            RazorpayAdapter.fetch_payment("pay_Nxyz789")

        assert mock_razorpay_client.payment.fetch.call_count == 3
        assert no_sleep.call_count == 2

    def test_permanent_errors_are_not_retried(self, mock_razorpay_client, no_sleep):
        mock_razorpay_client.payment.fetch.side_effect = razorpay.errors.BadRequestError(
            "The id provided does not exist"
        )

        with pytest.raises(GatewayRequestInvalid):
            RazorpayAdapter.fetch_payment("pay_missing")

        assert mock_razorpay_client.payment.fetch.call_count == 1
        no_sleep.assert_not_called()


class TestRazorpayAdapterCreateRefund:
    def test_create_refund_success(self, mock_razorpay_client, refund_response):
        mock_razorpay_client.payment.refund.return_value = refund_response()

        refund = RazorpayAdapter.create_refund(
            CreateRefundParams(payment_id="pay_Nxyz789", amount=2500, notes={"order_id": "abc"})
        )

        assert refund.id == "rfnd_Nref456"
        assert refund.payment_id == "pay_Nxyz789"
        assert refund.amount == 2500
        assert refund.status == "processed"
        mock_razorpay_client.payment.refund.assert_called_once_with(
            "pay_Nxyz789",
            {"amount": 2500, "notes": {"order_id": "abc"}},
            timeout=30,
        )

    def test_create_refund_without_notes(self, mock_razorpay_client, refund_response):
        mock_razorpay_client.payment.refund.return_value = refund_response()

        RazorpayAdapter.create_refund(CreateRefundParams(payment_id="pay_Nxyz789", amount=2500))

        args = mock_razorpay_client.payment.refund.call_args[0]
        assert args[1] == {"amount": 2500}


# =============================================================================
# Signature Verification
# =============================================================================


class TestRazorpayAdapterSignatures:
    def test_payment_signature_uses_key_secret(self):
        signature = compute_signature("order_Nabc123|pay_Nxyz789", "test_key_secret")

        assert RazorpayAdapter.verify_payment_signature(
            "order_Nabc123", "pay_Nxyz789", signature
        ) is True

    def test_webhook_signature_uses_webhook_secret(self):
        body = b'{"event":"payment.captured"}'

        assert RazorpayAdapter.verify_webhook_signature(
            body, compute_signature(body, "test_webhook_secret")
        ) is True
        assert RazorpayAdapter.verify_webhook_signature(
            body, compute_signature(body, "test_key_secret")
        ) is False
