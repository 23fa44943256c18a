"""
Celery configuration for the booking reconciliation service.

Celery runs the work that must not block a webhook response:
- Processing of recorded Stripe webhook events
- Periodic retries of failed events and cleanup of stuck/old events
- Release of booking holds whose expiry has passed

Schedules live in the database (django-celery-beat) and are installed by
data migrations in the payments and bookings apps.

Usage:
    from payments.tasks import process_webhook_event

    process_webhook_event.delay(str(webhook_event.id))

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import logging
import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

logger = logging.getLogger(__name__)

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Celery will look for a tasks.py module in each installed app
app.autodiscover_tasks()


@app.task(bind=True, ignore_result=True)
def debug_task(self):
    """
    Debug task for testing Celery connectivity.

    Usage:
        from config.celery import debug_task
        debug_task.delay()
    """
    logger.info("Celery debug task request: %r", self.request)
