"""Celery task wrappers for weekly report batch jobs.

Each task runs one coroutine from ``reader_reports.services.jobs`` with
``asyncio.run()`` and returns its stats dict.  Failures are retried up to
three times, five minutes apart.
"""

import asyncio
import logging
from typing import Optional

from reader_reports.infrastructure.tasks.celery_app import celery_app
from reader_reports.services.jobs import (
    backfill_quote_weeks_job,
    catch_up_job,
    generate_week_job,
)

logger = logging.getLogger(__name__)

RETRY_COUNTDOWN = 300


@celery_app.task(bind=True, name="reports.generate_weekly", max_retries=3)
def generate_weekly_reports(
    self,
    iso_week: Optional[int] = None,
    iso_year: Optional[int] = None,
    user_ids: Optional[list[str]] = None,
) -> dict:
    try:
        return asyncio.run(generate_week_job(iso_week, iso_year, user_ids))
    except Exception as exc:
        logger.warning(
            "generate_weekly_reports failed (attempt %d/%d): %s",
            self.request.retries + 1,
            self.max_retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=RETRY_COUNTDOWN)


@celery_app.task(bind=True, name="reports.catch_up", max_retries=3)
def catch_up_weekly_reports(self) -> dict:
    try:
        return asyncio.run(catch_up_job())
    except Exception as exc:
        logger.warning(
            "catch_up_weekly_reports failed (attempt %d/%d): %s",
            self.request.retries + 1,
            self.max_retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=RETRY_COUNTDOWN)


@celery_app.task(bind=True, name="reports.backfill_quote_weeks", max_retries=3)
def backfill_quote_weeks(self, batch_size: Optional[int] = None) -> dict:
    """Restamp quote week fields; safe to run repeatedly."""
    try:
        return asyncio.run(backfill_quote_weeks_job(batch_size))
    except Exception as exc:
        logger.warning(
            "backfill_quote_weeks failed (attempt %d/%d): %s",
            self.request.retries + 1,
            self.max_retries + 1,
            exc,
        )
        raise self.retry(exc=exc, countdown=RETRY_COUNTDOWN)
