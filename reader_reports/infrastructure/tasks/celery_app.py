"""Celery application for weekly report batch work, backed by Redis.

Beat schedule (UTC; the business calendar defaults to UTC+3):
  weekly-reports  Monday 08:00   reports for the previous complete week
  report-catch-up daily 00:30    reports missing from recent complete weeks

The quote week backfill is dispatched on demand.
"""

from celery import Celery
from celery.schedules import crontab

from reader_reports.core.config import settings

celery_app = Celery(
    "reader_reports",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["reader_reports.infrastructure.tasks.report_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    result_expires=86400,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_reject_on_worker_lost=True,
    beat_schedule={
        "weekly-reports": {
            "task": "reports.generate_weekly",
            "schedule": crontab(minute=0, hour=8, day_of_week=1),
        },
        "report-catch-up": {
            "task": "reports.catch_up",
            "schedule": crontab(minute=30, hour=0),
        },
    },
)
