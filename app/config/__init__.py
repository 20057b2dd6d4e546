# =============================================================================
# Django Project Configuration Package
# =============================================================================
# Settings, URLs, the WSGI entry point and the Celery app.
#
# The Celery app is imported here so that shared tasks such as
# payments.tasks.purge_expired_idempotency_markers bind to it when Django
# starts.
# =============================================================================

from config.celery import app as celery_app

__all__ = ("celery_app",)
