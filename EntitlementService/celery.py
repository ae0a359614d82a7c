"""
Celery configuration for background tasks.

Used for the invoice and confirmation email notifications.
"""
import os

from celery import Celery

# Set default Django settings module
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "EntitlementService.settings.dev")

app = Celery("EntitlementService")

# Load configuration from Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Tasks live in core.tasks
app.autodiscover_tasks(["core"])
