"""Async batch jobs executed by the Celery worker.

Each job is self-contained: it reads settings, reference data and the user
data store on its own, runs one batch operation and writes the store back.
Results are plain dicts so they fit the JSON result backend.

The Celery wrappers in ``reader_reports.infrastructure.tasks.report_tasks``
call these with ``asyncio.run()``.
"""

import logging
from dataclasses import asdict
from typing import Optional

from reader_reports.core.calendar import BusinessCalendar
from reader_reports.core.config import Settings, get_settings
from reader_reports.core.dependencies import build_batch_runner, get_business_calendar
from reader_reports.infrastructure.reference.loader import load_reference_data
from reader_reports.infrastructure.storage.json_store import (
    UserDataStore,
    load_user_data,
    save_user_data,
)
from reader_reports.services.backfill import QuoteWeekBackfill
from reader_reports.services.batch import WeeklyReportBatchRunner

logger = logging.getLogger(__name__)


async def _open_runner(
    settings: Settings, calendar: BusinessCalendar
) -> tuple[WeeklyReportBatchRunner, UserDataStore]:
    reference = await load_reference_data(settings.reference_data_path)
    store = await load_user_data(settings.data_store_path)
    runner = build_batch_runner(
        settings,
        reference,
        quote_repository=store.quotes,
        profile_repository=store.profiles,
        report_repository=store.reports,
        calendar=calendar,
    )
    return runner, store


async def generate_week_job(
    iso_week: Optional[int] = None,
    iso_year: Optional[int] = None,
    user_ids: Optional[list[str]] = None,
    settings: Optional[Settings] = None,
    calendar: Optional[BusinessCalendar] = None,
) -> dict:
    """Generate reports for one week, the previous complete one by default."""
    settings = settings or get_settings()
    calendar = calendar or get_business_calendar(settings)
    if iso_week is None or iso_year is None:
        week = calendar.previous_complete_week()
        iso_week, iso_year = week.iso_week, week.iso_year

    logger.info("JOB: weekly reports for week %d/%d", iso_week, iso_year)
    runner, store = await _open_runner(settings, calendar)
    stats = await runner.generate_week(iso_week, iso_year, user_ids)
    await save_user_data(settings.data_store_path, store)
    return asdict(stats)


async def catch_up_job(
    settings: Optional[Settings] = None, calendar: Optional[BusinessCalendar] = None
) -> dict:
    """Fill in reports missing from the recent complete weeks."""
    settings = settings or get_settings()
    calendar = calendar or get_business_calendar(settings)

    logger.info("JOB: weekly report catch-up")
    runner, store = await _open_runner(settings, calendar)
    result = await runner.catch_up()
    if result.weeks_processed:
        await save_user_data(settings.data_store_path, store)
    return asdict(result)


async def backfill_quote_weeks_job(
    batch_size: Optional[int] = None,
    settings: Optional[Settings] = None,
    calendar: Optional[BusinessCalendar] = None,
) -> dict:
    """Restamp cached ISO week fields on stored quotes."""
    settings = settings or get_settings()
    calendar = calendar or get_business_calendar(settings)

    logger.info("JOB: quote week backfill")
    store = await load_user_data(settings.data_store_path)
    stats = await QuoteWeekBackfill(store.quotes, calendar).run(
        batch_size or settings.backfill_batch_size
    )
    if stats.updated:
        await save_user_data(settings.data_store_path, store)
    return asdict(stats)
