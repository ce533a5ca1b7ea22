import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("wedplan")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Purge old cancelled bookings - daily at 03:30
    "purge-cancelled-bookings": {
        "task": "bookings.purge_cancelled_bookings",
        "schedule": crontab(minute=30, hour=3),
    },
}
