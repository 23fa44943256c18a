"""
ASGI config for the booking reconciliation service.

The service only speaks HTTP (webhook delivery and health checks), so the
plain Django ASGI application is exposed without a protocol router.

For more information on this file, see:
https://docs.djangoproject.com/en/5.2/howto/deployment/asgi/
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_asgi_application()
