"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App fixtures live in payments/conftest.py and each tests/conftest.py.

Project-wide fixtures:
    razorpay_settings: Test Razorpay credentials (autouse)
    mock_gateway: MagicMock adapter injected into every payment service
    mock_redis: Patched Redis connection for DistributedLock
"""

import os
from unittest.mock import MagicMock, patch

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

TEST_KEY_ID = "rzp_test_key_id"
TEST_KEY_SECRET = "test_key_secret"
TEST_WEBHOOK_SECRET = "test_webhook_secret"


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # Tests use the plain test client over http
    settings.SECURE_SSL_REDIRECT = False

    # Keep tests independent of a running Redis; locks patch the connection
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
    }
    settings.SESSION_ENGINE = "django.contrib.sessions.backends.db"

    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full payment journeys)
    - test_views.py, test_services.py, test_tasks.py, etc. → integration
    - test_models.py, test_signatures.py, test_events.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    # Filename patterns for each category
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_handlers.py",
        "test_pipeline.py",
        "test_order_binding_service.py",
        "test_verification_service.py",
        "test_refund_service.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_signatures.py",
        "test_configuration.py",
        "test_amounts.py",
        "test_events.py",
        "test_locks.py",
        "test_razorpay_adapter.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filepath = str(item.fspath)
        filename = filepath.split("/")[-1]

        # Check patterns in priority order
        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            # Default: integration (safe for Django where most tests hit DB)
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Razorpay Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def razorpay_settings(settings):
    """Known Razorpay credentials for every test."""
    settings.RAZORPAY_KEY_ID = TEST_KEY_ID
    settings.RAZORPAY_KEY_SECRET = TEST_KEY_SECRET
    settings.RAZORPAY_WEBHOOK_SECRET = TEST_WEBHOOK_SECRET
    settings.RAZORPAY_ENVIRONMENT = "test"
    settings.RAZORPAY_API_TIMEOUT_SECONDS = 30
    settings.RAZORPAY_MAX_RETRIES = 3
    settings.RAZORPAY_SUPPORTED_CURRENCIES = ["INR", "USD"]
    settings.RAZORPAY_PAYMENT_EVENT_MARKER_TTL_SECONDS = 24 * 60 * 60
    settings.RAZORPAY_WEBHOOK_EVENT_MARKER_TTL_SECONDS = 60 * 60
    settings.RAZORPAY_REFUND_LOCK_TTL_SECONDS = 120
    return settings


@pytest.fixture
def mock_gateway():
    """
    Inject one MagicMock adapter into every payment service.

    Signature checks pass by default; set return values per test:
        mock_gateway.fetch_payment.return_value = PaymentDetailsFactory()
    """
    from payments.services import (
        OrderBindingService,
        PaymentVerificationService,
        RefundService,
    )

    services = (OrderBindingService, PaymentVerificationService, RefundService)
    gateway = MagicMock()
    gateway.verify_payment_signature.return_value = True

    for service in services:
        service.set_gateway_adapter(gateway)
    yield gateway
    for service in services:
        service.set_gateway_adapter(None)


@pytest.fixture
def mock_redis():
    """Patch the Redis connection used by DistributedLock."""
    with patch("payments.locks.get_redis_connection") as mock_get_connection:
        redis = MagicMock()
        redis.set.return_value = True
        redis.eval.return_value = 1
        mock_get_connection.return_value = redis
        yield redis


def _patch_postgresql_flush_for_cascade():
    """
    Patch PostgreSQL flush to always use CASCADE.

    This fixes the "cannot truncate a table referenced in a foreign key constraint"
    error that occurs when TransactionTestCase tries to flush the database.

    Django's TransactionTestCase uses TRUNCATE to reset the database, but without
    CASCADE this fails when tables have foreign key constraints.
    """
    from django.db.backends.postgresql import operations

    original_sql_flush = operations.DatabaseOperations.sql_flush

    def sql_flush_with_cascade(
        self, style, tables, *, reset_sequences=False, allow_cascade=False
    ):
        # Force CASCADE for PostgreSQL to handle FK constraints
        return original_sql_flush(
            self, style, tables, reset_sequences=reset_sequences, allow_cascade=True
        )

    operations.DatabaseOperations.sql_flush = sql_flush_with_cascade


# Apply the patch when conftest is loaded
_patch_postgresql_flush_for_cascade()
