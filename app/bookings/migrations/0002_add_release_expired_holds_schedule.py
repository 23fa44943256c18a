"""
Add celery-beat schedule for releasing expired booking holds.

Runs release_expired_holds every 5 minutes so lapsed unpaid reservations
free their slot.
"""

from django.db import migrations

TASK_NAME = "Release Expired Booking Holds"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for releasing expired holds."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=5,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "bookings.tasks.release_expired_holds",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Cancels hold/pending bookings whose expires_at has passed."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("bookings", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
