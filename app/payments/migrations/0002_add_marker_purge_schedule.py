"""
Add celery-beat schedule for purging expired idempotency markers.

This migration creates the periodic task schedule for the
purge_expired_idempotency_markers task, which runs every hour and
deletes markers whose expires_at has passed.
"""

from django.db import migrations

TASK_NAME = "Purge Expired Idempotency Markers"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for purging expired markers."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    # Create interval schedule: every hour
    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "payments.tasks.purge_expired_idempotency_markers",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Deletes webhook idempotency markers whose TTL has passed. "
                "Expired markers no longer suppress redeliveries."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
