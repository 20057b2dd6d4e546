"""
Tests for the Razorpay configuration provider.
"""

from datetime import timedelta

import pytest

from payments.configuration import get_razorpay_configuration
from payments.exceptions import RazorpayConfigurationError


class TestGetRazorpayConfiguration:
    """Tests for get_razorpay_configuration."""

    def test_reads_settings(self, settings):
        config = get_razorpay_configuration()

        assert config.key_id == "rzp_test_key_id"
        assert config.key_secret == "test_key_secret"
        assert config.webhook_secret == "test_webhook_secret"
        assert config.is_test_mode is True
        assert config.timeout == 30
        assert config.max_retries == 3
        assert config.supported_currencies == ("INR", "USD")
        assert config.payment_event_marker_ttl == timedelta(hours=24)
        assert config.webhook_event_marker_ttl == timedelta(hours=1)
        assert config.refund_lock_ttl == 120

    @pytest.mark.parametrize(
        "name",
        ["RAZORPAY_KEY_ID", "RAZORPAY_KEY_SECRET", "RAZORPAY_WEBHOOK_SECRET"],
    )
    def test_missing_credential_raises(self, settings, name):
        """Should name the missing setting."""
        setattr(settings, name, "")

        with pytest.raises(RazorpayConfigurationError) as exc_info:
            get_razorpay_configuration()

        assert name in exc_info.value.message
        assert exc_info.value.details == {"setting": name}
        assert exc_info.value.status_code == 500

    def test_whitespace_credential_is_missing(self, settings):
        settings.RAZORPAY_KEY_SECRET = "   "

        with pytest.raises(RazorpayConfigurationError):
            get_razorpay_configuration()

    def test_error_never_contains_secret_value(self, settings):
        """An invalid setting is named, its neighbours' secrets are not echoed."""
        settings.RAZORPAY_WEBHOOK_SECRET = ""

        with pytest.raises(RazorpayConfigurationError) as exc_info:
            get_razorpay_configuration()

        rendered = f"{exc_info.value} {exc_info.value.to_dict()}"
        assert "test_key_secret" not in rendered

    def test_invalid_environment_raises(self, settings):
        settings.RAZORPAY_ENVIRONMENT = "staging"

        with pytest.raises(RazorpayConfigurationError) as exc_info:
            get_razorpay_configuration()

        assert exc_info.value.details == {"setting": "RAZORPAY_ENVIRONMENT"}

    def test_live_environment(self, settings):
        settings.RAZORPAY_ENVIRONMENT = "LIVE"

        config = get_razorpay_configuration()

        assert config.environment == "live"
        assert config.is_test_mode is False

    @pytest.mark.parametrize("value", [0, -5, "abc", None])
    def test_invalid_timeout_raises(self, settings, value):
        settings.RAZORPAY_API_TIMEOUT_SECONDS = value

        with pytest.raises(RazorpayConfigurationError):
            get_razorpay_configuration()

    def test_zero_retries_allowed(self, settings):
        settings.RAZORPAY_MAX_RETRIES = 0

        assert get_razorpay_configuration().max_retries == 0

    def test_negative_retries_raise(self, settings):
        settings.RAZORPAY_MAX_RETRIES = -1

        with pytest.raises(RazorpayConfigurationError):
            get_razorpay_configuration()

    def test_currencies_are_normalised(self, settings):
        settings.RAZORPAY_SUPPORTED_CURRENCIES = [" inr", "usd ", ""]

        assert get_razorpay_configuration().supported_currencies == ("INR", "USD")

    def test_empty_currency_list_uses_defaults(self, settings):
        settings.RAZORPAY_SUPPORTED_CURRENCIES = []

        assert "INR" in get_razorpay_configuration().supported_currencies


class TestRazorpayConfiguration:
    def test_repr_hides_secrets(self):
        config = get_razorpay_configuration()

        assert "test_key_secret" not in repr(config)
        assert "test_webhook_secret" not in repr(config)
        assert "rzp_test_key_id" in repr(config)

    def test_summary_hides_secrets(self):
        summary = get_razorpay_configuration().summary()

        assert summary["key_secret_configured"] is True
        assert summary["webhook_secret_configured"] is True
        assert "test_key_secret" not in str(summary)
        assert "test_webhook_secret" not in str(summary)
