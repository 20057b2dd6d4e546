"""
Tests for RefundService.

Tests cover:
- Eligibility checks and their block codes
- Amount bounds, each with its own error code
- Full and partial refunds
- Order cancellation and buyer notification
- Lock contention and gateway failures
- Refund previews
"""

import uuid
from unittest.mock import patch

import pytest
from django.core import mail

from orders.states import AttendeeStatus, OrderRefundStatus, OrderStatus
from orders.tests.factories import OrderFactory
from payments.adapters import CreateRefundParams
from payments.exceptions import GatewayRequestInvalid, LockAcquisitionError, OrderNotFound
from payments.services import RefundService
from payments.state_machines import GatewayPaymentStatus
from payments.tests.factories import (
    PaymentBindingFactory,
    PaymentDetailsFactory,
    RefundResultFactory,
)


@pytest.fixture
def refundable(paid_binding, mock_gateway, mock_redis):
    """A completed order whose 5000 paise payment Razorpay still holds."""
    mock_gateway.fetch_payment.return_value = PaymentDetailsFactory(
        id=paid_binding.razorpay_payment_id,
        order_id=paid_binding.razorpay_order_id,
    )
    mock_gateway.create_refund.return_value = RefundResultFactory(
        id="rfnd_Nref001",
        payment_id=paid_binding.razorpay_payment_id,
    )
    return paid_binding


# =============================================================================
# Eligibility Tests
# =============================================================================


@pytest.mark.django_db
class TestCheckRefundEligibility:
    """Tests for RefundService.check_refund_eligibility."""

    def test_eligible(self, paid_binding):
        eligibility = RefundService.check_refund_eligibility(paid_binding.order, paid_binding)

        assert eligibility.eligible is True

    def test_no_binding(self, completed_order):
        eligibility = RefundService.check_refund_eligibility(completed_order, None)

        assert eligibility.eligible is False
        assert eligibility.block_code == "NO_RAZORPAY_PAYMENT"

    def test_no_payment_id(self, completed_order):
        binding = PaymentBindingFactory(order=completed_order)

        eligibility = RefundService.check_refund_eligibility(completed_order, binding)

        assert eligibility.block_code == "NO_PAYMENT_ID"

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.RESERVED, OrderStatus.CANCELLED, OrderStatus.EXPIRED],
    )
    def test_order_not_completed(self, db, status):
        binding = PaymentBindingFactory(order=OrderFactory(status=status), paid=True)

        eligibility = RefundService.check_refund_eligibility(binding.order, binding)

        assert eligibility.block_code == "ORDER_NOT_COMPLETED"

    def test_already_fully_refunded(self, db):
        order = OrderFactory(
            status=OrderStatus.COMPLETED,
            refund_status=OrderRefundStatus.FULL_REFUND,
        )
        binding = PaymentBindingFactory(order=order, paid=True)

        eligibility = RefundService.check_refund_eligibility(order, binding)

        assert eligibility.block_code == "ALREADY_FULLY_REFUNDED"

    def test_partially_refunded_is_still_eligible(self, db):
        order = OrderFactory(
            status=OrderStatus.COMPLETED,
            refund_status=OrderRefundStatus.PARTIAL_REFUND,
        )
        binding = PaymentBindingFactory(order=order, paid=True)

        assert RefundService.check_refund_eligibility(order, binding).eligible is True


class TestCheckRefundAmount:
    """Tests for RefundService.check_refund_amount."""

    @pytest.mark.parametrize(
        "amount, block_code",
        [
            (0, "REFUND_AMOUNT_ZERO"),
            (-100, "REFUND_AMOUNT_NEGATIVE"),
            (50, "REFUND_AMOUNT_BELOW_MINIMUM"),
            (6000, "REFUND_AMOUNT_EXCEEDS_RECEIVED"),
        ],
    )
    def test_each_bound_has_its_own_code(self, amount, block_code):
        result = RefundService.check_refund_amount(PaymentDetailsFactory(), amount, 5000)

        assert result.eligible is False
        assert result.block_code == block_code

    def test_exceeds_remaining(self):
        payment = PaymentDetailsFactory(amount_refunded=3000)

        result = RefundService.check_refund_amount(payment, 2500, 5000)

        assert result.block_code == "REFUND_AMOUNT_EXCEEDS_REMAINING"
        assert result.max_refundable == 2000
        assert result.already_refunded == 3000

    @pytest.mark.parametrize(
        "status",
        [GatewayPaymentStatus.FAILED.value, GatewayPaymentStatus.CREATED.value],
    )
    def test_payment_not_refundable(self, status):
        result = RefundService.check_refund_amount(
            PaymentDetailsFactory(status=status), 1000, 5000
        )

        assert result.block_code == "PAYMENT_NOT_REFUNDABLE"

    @pytest.mark.parametrize("amount", [100, 2500, 5000])
    def test_allowed_amounts(self, amount):
        result = RefundService.check_refund_amount(PaymentDetailsFactory(), amount, 5000)

        assert result.eligible is True
        assert result.max_refundable == 5000
        assert result.already_refunded == 0


# =============================================================================
# Refund Creation Tests
# =============================================================================


@pytest.mark.django_db
class TestCreateRefund:
    """Tests for RefundService.create_refund."""

    def test_full_refund(self, refundable, mock_gateway):
        result = RefundService.create_refund(refundable.order.id, 5000)

        assert result.success is True
        assert result.data.refund_id == "rfnd_Nref001"
        assert result.data.refund_status == OrderRefundStatus.FULL_REFUND
        assert result.data.amount == 5000

        refundable.refresh_from_db()
        assert refundable.refund_id == "rfnd_Nref001"
        order = refundable.order
        order.refresh_from_db()
        assert order.refund_status == OrderRefundStatus.FULL_REFUND
        assert order.status == OrderStatus.COMPLETED

    def test_refund_request_sent_to_gateway(self, refundable, mock_gateway):
        RefundService.create_refund(refundable.order.id, 2500)

        params = mock_gateway.create_refund.call_args[0][0]
        assert isinstance(params, CreateRefundParams)
        assert params.payment_id == refundable.razorpay_payment_id
        assert params.amount == 2500
        assert params.notes["order_short_id"] == refundable.order.short_id

    def test_partial_refund(self, refundable):
        result = RefundService.create_refund(refundable.order.id, 2500)

        assert result.data.refund_status == OrderRefundStatus.PARTIAL_REFUND
        refundable.order.refresh_from_db()
        assert refundable.order.refund_status == OrderRefundStatus.PARTIAL_REFUND

    def test_partial_refund_completing_the_total_is_full(self, refundable, mock_gateway):
        mock_gateway.fetch_payment.return_value = PaymentDetailsFactory(
            id=refundable.razorpay_payment_id,
            amount_refunded=2500,
        )

        result = RefundService.create_refund(refundable.order.id, 2500)

        assert result.data.refund_status == OrderRefundStatus.FULL_REFUND

    @pytest.mark.parametrize(
        "amount, error_code",
        [
            (0, "REFUND_AMOUNT_ZERO"),
            (-100, "REFUND_AMOUNT_NEGATIVE"),
            (50, "REFUND_AMOUNT_BELOW_MINIMUM"),
            (6000, "REFUND_AMOUNT_EXCEEDS_RECEIVED"),
        ],
    )
    def test_rejected_amount_never_reaches_gateway(
        self, refundable, mock_gateway, amount, error_code
    ):
        result = RefundService.create_refund(refundable.order.id, amount)

        assert result.success is False
        assert result.error_code == error_code
        mock_gateway.create_refund.assert_not_called()
        refundable.order.refresh_from_db()
        assert refundable.order.refund_status is None

    def test_second_refund_after_full_refund(self, refundable, mock_gateway):
        """A fully refunded order is refused before Razorpay is queried."""
        RefundService.create_refund(refundable.order.id, 5000)

        result = RefundService.create_refund(refundable.order.id, 1000)

        assert result.success is False
        assert result.error_code == "ALREADY_FULLY_REFUNDED"
        assert mock_gateway.fetch_payment.call_count == 1
        assert mock_gateway.create_refund.call_count == 1

    def test_ineligible_order_is_not_fetched(self, binding, mock_gateway, mock_redis):
        result = RefundService.create_refund(binding.order.id, 1000)

        assert result.error_code == "NO_PAYMENT_ID"
        mock_gateway.fetch_payment.assert_not_called()
        mock_gateway.create_refund.assert_not_called()

    def test_unknown_order(self, db, mock_gateway, mock_redis):
        with pytest.raises(OrderNotFound):
            RefundService.create_refund(uuid.uuid4(), 1000)

    def test_amount_received_falls_back_to_gateway_amount(
        self, completed_order, mock_gateway, mock_redis
    ):
        binding = PaymentBindingFactory(
            order=completed_order,
            razorpay_payment_id="pay_Nlegacy",
            amount_received=None,
        )
        mock_gateway.fetch_payment.return_value = PaymentDetailsFactory(
            id="pay_Nlegacy", amount=5000
        )
        mock_gateway.create_refund.return_value = RefundResultFactory()

        result = RefundService.create_refund(binding.order.id, 5000)

        assert result.data.refund_status == OrderRefundStatus.FULL_REFUND


@pytest.mark.django_db
class TestCreateRefundCancellation:
    def test_cancel_order(self, refundable):
        result = RefundService.create_refund(refundable.order.id, 5000, cancel_order=True)

        assert result.data.order.status == OrderStatus.CANCELLED
        order = refundable.order
        order.refresh_from_db()
        assert order.status == OrderStatus.CANCELLED
        assert order.cancelled_at is not None
        assert list(order.attendees.values_list("status", flat=True)) == [
            AttendeeStatus.CANCELLED
        ]

    def test_order_kept_by_default(self, refundable):
        result = RefundService.create_refund(refundable.order.id, 2500)

        assert result.data.order.status == OrderStatus.COMPLETED


@pytest.mark.django_db
class TestCreateRefundNotification:
    def test_buyer_emailed_after_commit(self, refundable, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            RefundService.create_refund(refundable.order.id, 2500)

        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == [refundable.order.email]
        assert "25.00 INR" in mail.outbox[0].body

    def test_cancellation_emailed_after_refund(
        self, refundable, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            RefundService.create_refund(refundable.order.id, 5000, cancel_order=True)

        subjects = [message.subject for message in mail.outbox]
        assert len(subjects) == 2
        assert subjects[0].startswith("Refund issued")
        assert "has been cancelled" in subjects[1]

    def test_no_cancellation_email_without_cancel(
        self, refundable, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            RefundService.create_refund(refundable.order.id, 5000)

        assert len(mail.outbox) == 1

    def test_notify_buyer_false(self, refundable, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            RefundService.create_refund(refundable.order.id, 2500, notify_buyer=False)

        assert callbacks == []
        assert mail.outbox == []

    def test_refused_refund_sends_nothing(self, refundable, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            RefundService.create_refund(refundable.order.id, 0)

        assert mail.outbox == []


@pytest.mark.django_db
class TestCreateRefundFailures:
    def test_lock_uses_order_key(self, refundable, mock_redis):
        RefundService.create_refund(refundable.order.id, 2500)

        key = mock_redis.set.call_args[0][0]
        assert key == f"lock:refund:order:{refundable.order.id}"
        assert mock_redis.set.call_args[1]["ex"] == 120
        mock_redis.eval.assert_called_once()

    def test_lock_contention(self, refundable, mock_gateway, mock_redis):
        mock_redis.set.return_value = False

        with patch("payments.services.refund_service.REFUND_LOCK_TIMEOUT", 0.1):
            with pytest.raises(LockAcquisitionError) as exc_info:
                RefundService.create_refund(refundable.order.id, 2500)

        assert exc_info.value.status_code == 409
        mock_gateway.fetch_payment.assert_not_called()
        mock_gateway.create_refund.assert_not_called()

    def test_gateway_rejection_stores_nothing(self, refundable, mock_gateway, mock_redis):
        mock_gateway.create_refund.side_effect = GatewayRequestInvalid(
            "The refund amount provided is greater than amount captured"
        )

        with pytest.raises(GatewayRequestInvalid):
            RefundService.create_refund(refundable.order.id, 2500)

        refundable.refresh_from_db()
        assert refundable.refund_id is None
        refundable.order.refresh_from_db()
        assert refundable.order.refund_status is None
        mock_redis.eval.assert_called_once()


# =============================================================================
# Preview Tests
# =============================================================================


@pytest.mark.django_db
class TestGetRefundPreview:
    def test_eligible_preview(self, refundable, mock_gateway):
        mock_gateway.fetch_payment.return_value = PaymentDetailsFactory(
            id=refundable.razorpay_payment_id,
            amount_refunded=1000,
        )

        preview = RefundService.get_refund_preview(refundable.order.id)

        assert preview.eligible is True
        assert preview.max_refundable == 4000
        assert preview.already_refunded == 1000

    def test_nothing_left_to_refund(self, refundable, mock_gateway):
        mock_gateway.fetch_payment.return_value = PaymentDetailsFactory(
            id=refundable.razorpay_payment_id,
            amount_refunded=5000,
        )

        preview = RefundService.get_refund_preview(refundable.order.id)

        assert preview.eligible is False
        assert preview.max_refundable == 0

    def test_ineligible_preview(self, binding, mock_gateway):
        preview = RefundService.get_refund_preview(binding.order.id)

        assert preview.eligible is False
        assert preview.block_code == "NO_PAYMENT_ID"
        mock_gateway.fetch_payment.assert_not_called()

    def test_unknown_order(self, db, mock_gateway):
        with pytest.raises(OrderNotFound):
            RefundService.get_refund_preview(uuid.uuid4())
