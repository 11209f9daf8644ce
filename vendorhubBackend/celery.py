"""
Celery Configuration for VendorHub Backend

Configures Celery for scheduled marketplace jobs: vendor payout batches,
commission tier refreshes and age verification session expiry.
"""

import os

from celery import Celery
from celery.schedules import crontab


# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "vendorhubBackend.settings")

# Create Celery app
app = Celery("vendorhubBackend")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Celery Beat configuration for periodic tasks
app.conf.beat_schedule = {
    # Weekly vendor payouts, Monday 06:00 UTC
    "create-batch-payouts-weekly": {
        "task": "marketplace.create_batch_payouts",
        "schedule": crontab(hour=6, minute=0, day_of_week=1),
        "options": {"expires": 60.0 * 60.0, "queue": "payout_tasks"},
    },
    # Re-evaluate shop commission tiers daily
    "refresh-commission-tiers-daily": {
        "task": "marketplace.refresh_commission_tiers",
        "schedule": 60.0 * 60.0 * 24.0,  # 24 hours
        "options": {"expires": 30.0 * 60.0, "queue": "marketplace_tasks"},
    },
    # Expire abandoned age verification sessions every hour
    "expire-age-verification-sessions": {
        "task": "marketplace.expire_age_verification_sessions",
        "schedule": 60.0 * 60.0,  # Every hour
        "options": {"expires": 15.0 * 60.0, "queue": "marketplace_tasks"},
    },
}

# Celery configuration settings
app.conf.update(
    # Task routing - organize tasks by type
    task_routes={
        "marketplace.create_batch_payouts": {"queue": "payout_tasks"},
        "marketplace.process_payout": {"queue": "payout_tasks"},
        "marketplace.*": {"queue": "marketplace_tasks"},
    },
    # Task execution settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task result settings
    result_expires=60 * 60 * 24,  # Results expire after 24 hours
    # Worker settings
    worker_max_tasks_per_child=1000,
    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
)
