"""
WSGI entry point for the payments service.

Gunicorn serves ``application`` from this module. Every endpoint is
synchronous: checkout, verification and refunds call the Razorpay API
inline, and the webhook endpoint answers only after the event has been
applied and committed.

See https://docs.djangoproject.com/en/5.2/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

application = get_wsgi_application()
