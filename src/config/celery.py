"""
Celery application for the retail exchange backend.

DJANGO_SETTINGS_MODULE is set before the app is created so Celery reads
its configuration from Django settings (``CELERY_`` prefix).
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("barter")

# Read CELERY_* keys from Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Find tasks.py in every installed app
app.autodiscover_tasks()
