"""
Celery tasks for payment processing.

This module provides periodic tasks for:
- Purging expired idempotency markers

Usage:
    from payments.tasks import purge_expired_idempotency_markers

    # Scheduled hourly via celery-beat (see migration 0002)
    purge_expired_idempotency_markers.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from payments.models import IdempotencyMarkerStore

logger = logging.getLogger(__name__)


@shared_task
def purge_expired_idempotency_markers() -> dict:
    """
    Periodic task to delete expired idempotency markers.

    Expired markers no longer suppress redeliveries, so removing them
    changes no behaviour; it only keeps the table small.

    Returns:
        Dict with count of markers deleted
    """
    deleted_count = IdempotencyMarkerStore().purge_expired()

    if deleted_count > 0:
        logger.info(
            f"Deleted {deleted_count} expired idempotency markers",
            extra={"deleted_count": deleted_count},
        )

    return {"deleted_count": deleted_count}
