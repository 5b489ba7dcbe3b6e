"""
Celery configuration for the chat backend.

Celery runs the work that must not block a request or a live event:
- Adding freshly created profiles to the global group
- Periodic cleanup of stale, unconnected profiles
- Resetting durable presence flags after a crash

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps; periodic schedules
live in the database (django-celery-beat).

Usage:
    from accounts.tasks import add_user_to_global_group

    add_user_to_global_group.delay(user.code)

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
    logger.info(f"Request: {self.request!r}")
