"""
Celery application for the payments service.

The only periodic work is housekeeping: the hourly purge of expired
webhook idempotency markers. Its schedule lives in the database
(django-celery-beat) and is created by payments migration 0002;
CELERY_BEAT_SCHEDULER selects the database scheduler.

    celery -A config worker -l info
    celery -A config beat -l info

Redis is both broker and result backend (CELERY_BROKER_URL,
CELERY_RESULT_BACKEND).

See https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# Celery settings are read from Django settings with the CELERY_ prefix
app.config_from_object("django.conf:settings", namespace="CELERY")

# Picks up payments/tasks.py
app.autodiscover_tasks()
