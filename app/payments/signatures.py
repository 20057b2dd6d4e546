"""
HMAC-SHA256 signature checks for Razorpay payloads.

Two payloads are signed by Razorpay:
- Checkout confirmations: hex HMAC of "<order_id>|<payment_id>" keyed by
  the API key secret
- Webhooks: hex HMAC of the exact raw request body keyed by the webhook
  secret

The verifiers never raise. Anything that cannot be a valid signature
(empty values, wrong types) simply fails verification.

Usage:
    from payments.signatures import verify_webhook_signature

    if not verify_webhook_signature(request.body, signature, secret):
        return HttpResponse("Invalid signature", status=400)
"""

from __future__ import annotations

import hashlib
import hmac


def _to_bytes(value: str | bytes) -> bytes | None:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return None


def compute_signature(message: str | bytes, secret: str | bytes) -> str:
    """
    Return the hex HMAC-SHA256 of message keyed by secret.

    Raises:
        TypeError: If message or secret is neither str nor bytes
    """
    message_bytes = _to_bytes(message)
    secret_bytes = _to_bytes(secret)
    if message_bytes is None or secret_bytes is None:
        raise TypeError("message and secret must be str or bytes")
    return hmac.new(secret_bytes, message_bytes, hashlib.sha256).hexdigest()


def _matches(message: str | bytes, signature: str, secret: str | bytes) -> bool:
    if not message or not signature or not secret:
        return False
    if not isinstance(signature, str):
        return False
    if not isinstance(message, (str, bytes)) or not isinstance(secret, (str, bytes)):
        return False
    try:
        expected = compute_signature(message, secret)
        provided = signature.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return hmac.compare_digest(expected.encode("ascii"), provided)


def verify_payment_signature(
    razorpay_order_id: str,
    razorpay_payment_id: str,
    signature: str,
    secret: str,
) -> bool:
    """Check a checkout signature over "<order_id>|<payment_id>"."""
    if not isinstance(razorpay_order_id, str) or not isinstance(razorpay_payment_id, str):
        return False
    if not razorpay_order_id or not razorpay_payment_id:
        return False
    return _matches(f"{razorpay_order_id}|{razorpay_payment_id}", signature, secret)


def verify_webhook_signature(raw_payload: str | bytes, signature: str, secret: str) -> bool:
    """Check a webhook signature over the exact raw body bytes."""
    return _matches(raw_payload, signature, secret)


__all__ = [
    "compute_signature",
    "verify_payment_signature",
    "verify_webhook_signature",
]
