"""
Razorpay configuration provider.

Settings are read from Django settings, which config/settings.py populates
from the environment with django-environ. Missing or invalid values fail
fast with RazorpayConfigurationError naming the setting, never its value.

Usage:
    from payments.configuration import get_razorpay_configuration

    config = get_razorpay_configuration()
    client = razorpay.Client(auth=(config.key_id, config.key_secret))

    # Safe to log or expose on a health endpoint
    logger.info("Razorpay configured", extra=config.summary())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings

from payments.exceptions import RazorpayConfigurationError

if TYPE_CHECKING:
    from typing import Any

ENVIRONMENTS = ("test", "live")

DEFAULT_SUPPORTED_CURRENCIES = ("INR", "USD", "EUR", "GBP", "SGD", "AED", "MYR")

DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_MAX_RETRIES = 3
DEFAULT_PAYMENT_EVENT_MARKER_TTL_SECONDS = 24 * 60 * 60
DEFAULT_WEBHOOK_EVENT_MARKER_TTL_SECONDS = 60 * 60
DEFAULT_REFUND_LOCK_TTL_SECONDS = 120


@dataclass(frozen=True)
class RazorpayConfiguration:
    """
    Immutable Razorpay settings.

    Secrets are excluded from repr() so the object can appear in tracebacks
    and debug logs.
    """

    key_id: str
    key_secret: str = field(repr=False)
    webhook_secret: str = field(repr=False)
    environment: str = "test"
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    supported_currencies: tuple[str, ...] = DEFAULT_SUPPORTED_CURRENCIES
    payment_event_marker_ttl: timedelta = timedelta(seconds=DEFAULT_PAYMENT_EVENT_MARKER_TTL_SECONDS)
    webhook_event_marker_ttl: timedelta = timedelta(seconds=DEFAULT_WEBHOOK_EVENT_MARKER_TTL_SECONDS)
    refund_lock_ttl: int = DEFAULT_REFUND_LOCK_TTL_SECONDS

    @property
    def is_test_mode(self) -> bool:
        return self.environment == "test"

    def summary(self) -> dict[str, Any]:
        """Describe the configuration without any secret value."""
        return {
            "key_id": self.key_id,
            "environment": self.environment,
            "key_secret_configured": bool(self.key_secret),
            "webhook_secret_configured": bool(self.webhook_secret),
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "supported_currencies": list(self.supported_currencies),
        }


def _required(name: str) -> str:
    value = getattr(settings, name, "") or ""
    if not isinstance(value, str) or not value.strip():
        raise RazorpayConfigurationError(
            f"Missing required Razorpay configuration: {name}",
            details={"setting": name},
        )
    return value.strip()


def _positive_int(name: str, default: int) -> int:
    value = getattr(settings, name, default)
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = 0
    if number <= 0:
        raise RazorpayConfigurationError(
            f"Razorpay setting {name} must be a positive integer",
            details={"setting": name},
        )
    return number


def get_razorpay_configuration() -> RazorpayConfiguration:
    """
    Build the configuration from Django settings.

    Raises:
        RazorpayConfigurationError: If a credential is missing, the
            environment is not "test" or "live", or a numeric setting is invalid
    """
    key_id = _required("RAZORPAY_KEY_ID")
    key_secret = _required("RAZORPAY_KEY_SECRET")
    webhook_secret = _required("RAZORPAY_WEBHOOK_SECRET")

    environment = str(getattr(settings, "RAZORPAY_ENVIRONMENT", "test") or "test").lower()
    if environment not in ENVIRONMENTS:
        raise RazorpayConfigurationError(
            "RAZORPAY_ENVIRONMENT must be 'test' or 'live'",
            details={"setting": "RAZORPAY_ENVIRONMENT"},
        )

    currencies = getattr(settings, "RAZORPAY_SUPPORTED_CURRENCIES", None) or DEFAULT_SUPPORTED_CURRENCIES
    supported_currencies = tuple(c.strip().upper() for c in currencies if c and c.strip())
    if not supported_currencies:
        raise RazorpayConfigurationError(
            "RAZORPAY_SUPPORTED_CURRENCIES must list at least one currency",
            details={"setting": "RAZORPAY_SUPPORTED_CURRENCIES"},
        )

    # Zero retries is valid: fail on the first transient error
    max_retries = getattr(settings, "RAZORPAY_MAX_RETRIES", DEFAULT_MAX_RETRIES)
    if not isinstance(max_retries, int) or max_retries < 0:
        raise RazorpayConfigurationError(
            "Razorpay setting RAZORPAY_MAX_RETRIES must be zero or a positive integer",
            details={"setting": "RAZORPAY_MAX_RETRIES"},
        )

    return RazorpayConfiguration(
        key_id=key_id,
        key_secret=key_secret,
        webhook_secret=webhook_secret,
        environment=environment,
        timeout=_positive_int("RAZORPAY_API_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        max_retries=max_retries,
        supported_currencies=supported_currencies,
        payment_event_marker_ttl=timedelta(
            seconds=_positive_int(
                "RAZORPAY_PAYMENT_EVENT_MARKER_TTL_SECONDS",
                DEFAULT_PAYMENT_EVENT_MARKER_TTL_SECONDS,
            )
        ),
        webhook_event_marker_ttl=timedelta(
            seconds=_positive_int(
                "RAZORPAY_WEBHOOK_EVENT_MARKER_TTL_SECONDS",
                DEFAULT_WEBHOOK_EVENT_MARKER_TTL_SECONDS,
            )
        ),
        refund_lock_ttl=_positive_int("RAZORPAY_REFUND_LOCK_TTL_SECONDS", DEFAULT_REFUND_LOCK_TTL_SECONDS),
    )
