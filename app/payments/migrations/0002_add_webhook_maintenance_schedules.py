"""
Add celery-beat schedules for webhook event maintenance.

Creates:
- Retry Failed Webhooks: every 5 minutes
- Reset Stuck Webhooks: every 5 minutes
- Clean Up Old Webhooks: daily
"""

from django.db import migrations

PERIODIC_TASKS = [
    {
        "name": "Retry Failed Webhooks",
        "task": "payments.tasks.retry_failed_webhooks",
        "every": 5,
        "period": "minutes",
        "description": "Re-queues failed webhook events below the retry limit.",
    },
    {
        "name": "Reset Stuck Webhooks",
        "task": "payments.tasks.cleanup_stuck_webhooks",
        "every": 5,
        "period": "minutes",
        "description": "Marks events stuck in processing as failed for retry.",
    },
    {
        "name": "Clean Up Old Webhooks",
        "task": "payments.tasks.cleanup_old_webhooks",
        "every": 1,
        "period": "days",
        "description": "Deletes finished webhook events older than 90 days.",
    },
]


def create_periodic_tasks(apps, schema_editor):
    """Create the webhook maintenance periodic tasks."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    for task_def in PERIODIC_TASKS:
        schedule, _ = IntervalSchedule.objects.get_or_create(
            every=task_def["every"],
            period=task_def["period"],
        )
        PeriodicTask.objects.get_or_create(
            name=task_def["name"],
            defaults={
                "task": task_def["task"],
                "interval": schedule,
                "enabled": True,
                "description": task_def["description"],
            },
        )


def remove_periodic_tasks(apps, schema_editor):
    """Remove the periodic tasks on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(
        name__in=[task_def["name"] for task_def in PERIODIC_TASKS],
    ).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
