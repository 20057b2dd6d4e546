"""
Tests for Razorpay signature verification.

Covers known HMAC vectors, round trips, single-bit mutations and inputs
that must fail closed instead of raising.
"""

import hashlib
import hmac

import pytest

from payments.signatures import (
    compute_signature,
    verify_payment_signature,
    verify_webhook_signature,
)

SECRET = "test_webhook_secret"
KEY_SECRET = "test_key_secret"
PAYLOAD = b'{"event":"payment.captured","payload":{"payment":{"entity":{"id":"pay_1"}}}}'


def _flip_bit(signature: str, position: int) -> str:
    """Flip the lowest bit of one hex digit."""
    digit = int(signature[position], 16) ^ 1
    return f"{signature[:position]}{digit:x}{signature[position + 1:]}"


class TestComputeSignature:
    def test_matches_hmac_sha256_hexdigest(self):
        """Should equal the stdlib HMAC-SHA256 hex digest."""
        expected = hmac.new(SECRET.encode(), PAYLOAD, hashlib.sha256).hexdigest()

        assert compute_signature(PAYLOAD, SECRET) == expected

    def test_str_and_bytes_give_same_signature(self):
        assert compute_signature(PAYLOAD.decode(), SECRET) == compute_signature(
            PAYLOAD, SECRET.encode()
        )

    def test_rejects_non_string_input(self):
        with pytest.raises(TypeError):
            compute_signature(12345, SECRET)


class TestVerifyWebhookSignature:
    """Tests for verify_webhook_signature."""

    def test_round_trip(self):
        """A signature computed over the body with the secret verifies."""
        signature = compute_signature(PAYLOAD, SECRET)

        assert verify_webhook_signature(PAYLOAD, signature, SECRET) is True

    @pytest.mark.parametrize("position", [0, 1, 17, 32, 63])
    def test_single_bit_mutation_fails(self, position):
        """Flipping any single bit of the signature fails verification."""
        signature = compute_signature(PAYLOAD, SECRET)

        assert verify_webhook_signature(PAYLOAD, _flip_bit(signature, position), SECRET) is False

    def test_modified_body_fails(self):
        signature = compute_signature(PAYLOAD, SECRET)

        assert verify_webhook_signature(PAYLOAD + b" ", signature, SECRET) is False

    def test_wrong_secret_fails(self):
        signature = compute_signature(PAYLOAD, SECRET)

        assert verify_webhook_signature(PAYLOAD, signature, "other_secret") is False

    def test_uppercase_hex_fails(self):
        """Razorpay sends lowercase hex; comparison is exact."""
        signature = compute_signature(PAYLOAD, SECRET)

        assert verify_webhook_signature(PAYLOAD, signature.upper(), SECRET) is False

    @pytest.mark.parametrize(
        "payload, signature, secret",
        [
            (b"", "abc", SECRET),
            (PAYLOAD, "", SECRET),
            (PAYLOAD, "abc", ""),
            (None, "abc", SECRET),
            (PAYLOAD, None, SECRET),
            (PAYLOAD, "abc", None),
            (PAYLOAD, 12345, SECRET),
        ],
    )
    def test_empty_or_invalid_inputs_fail_closed(self, payload, signature, secret):
        """Should return False, never raise."""
        assert verify_webhook_signature(payload, signature, secret) is False

    def test_non_ascii_signature_fails_closed(self):
        assert verify_webhook_signature(PAYLOAD, "\udcff" * 64, SECRET) is False


class TestVerifyPaymentSignature:
    """Tests for verify_payment_signature."""

    ORDER_ID = "order_Nabc123"
    PAYMENT_ID = "pay_Nxyz789"

    def test_round_trip(self):
        """Signature over "order_id|payment_id" with the key secret verifies."""
        signature = compute_signature(f"{self.ORDER_ID}|{self.PAYMENT_ID}", KEY_SECRET)

        assert (
            verify_payment_signature(self.ORDER_ID, self.PAYMENT_ID, signature, KEY_SECRET)
            is True
        )

    def test_swapped_concatenation_fails(self):
        """payment_id|order_id is not accepted."""
        signature = compute_signature(f"{self.PAYMENT_ID}|{self.ORDER_ID}", KEY_SECRET)

        assert (
            verify_payment_signature(self.ORDER_ID, self.PAYMENT_ID, signature, KEY_SECRET)
            is False
        )

    def test_swapped_arguments_fail(self):
        signature = compute_signature(f"{self.ORDER_ID}|{self.PAYMENT_ID}", KEY_SECRET)

        assert (
            verify_payment_signature(self.PAYMENT_ID, self.ORDER_ID, signature, KEY_SECRET)
            is False
        )

    def test_wrong_secret_fails(self):
        signature = compute_signature(f"{self.ORDER_ID}|{self.PAYMENT_ID}", "wrong_secret")

        assert (
            verify_payment_signature(self.ORDER_ID, self.PAYMENT_ID, signature, KEY_SECRET)
            is False
        )

    def test_webhook_secret_is_not_the_key_secret(self):
        signature = compute_signature(f"{self.ORDER_ID}|{self.PAYMENT_ID}", SECRET)

        assert (
            verify_payment_signature(self.ORDER_ID, self.PAYMENT_ID, signature, KEY_SECRET)
            is False
        )

    @pytest.mark.parametrize(
        "order_id, payment_id",
        [("", "pay_1"), ("order_1", ""), (None, "pay_1"), ("order_1", None)],
    )
    def test_missing_identifiers_fail_closed(self, order_id, payment_id):
        assert verify_payment_signature(order_id, payment_id, "abc", KEY_SECRET) is False
