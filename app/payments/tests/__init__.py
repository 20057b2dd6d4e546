"""
Tests for payments app.

This package contains test modules for:
- test_models.py: PaymentBinding and IdempotencyMarker model tests
- test_amounts.py, test_signatures.py: Amount conversion and HMAC helpers
- test_configuration.py: Razorpay settings loading
- test_locks.py: Redis distributed lock
- test_tasks.py: Marker purge task
- test_views.py: Checkout, verification and refund API endpoints

Services, adapters and webhooks keep their tests beside the code in
their own tests/ packages.

Usage:
    pytest payments/tests/
    pytest payments/webhooks/tests/test_pipeline.py
"""
