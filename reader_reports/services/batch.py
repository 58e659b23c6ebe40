"""Weekly fan-out and catch-up of missing reports.

Per-user runs are independent: they share only read-only reference data, so
they may run with bounded concurrency.  A failure for one user is logged and
counted, never aborting the rest of the batch.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from reader_reports.core.calendar import BusinessCalendar
from reader_reports.domain.repositories import (
    IQuoteRepository,
    IUserProfileRepository,
    IWeeklyReportRepository,
)
from reader_reports.domain.services import IWeeklyReportService

logger = logging.getLogger(__name__)


@dataclass
class BatchStats:
    iso_week: int
    iso_year: int
    total_users: int = 0
    generated: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def week(self) -> str:
        return f"{self.iso_week}/{self.iso_year}"


@dataclass
class MissingWeek:
    iso_week: int
    iso_year: int
    user_ids: list[str] = field(default_factory=list)


@dataclass
class CatchUpResult:
    weeks_processed: int = 0
    total_generated: int = 0
    weeks: list[BatchStats] = field(default_factory=list)


class WeeklyReportBatchRunner:
    def __init__(
        self,
        report_service: IWeeklyReportService,
        quote_repository: IQuoteRepository,
        profile_repository: IUserProfileRepository,
        report_repository: IWeeklyReportRepository,
        calendar: BusinessCalendar,
        concurrency: int = 1,
        lookback_weeks: int = 8,
    ):
        self.report_service = report_service
        self.quote_repository = quote_repository
        self.profile_repository = profile_repository
        self.report_repository = report_repository
        self.calendar = calendar
        self.concurrency = max(1, concurrency)
        self.lookback_weeks = lookback_weeks

    async def generate_week(
        self, iso_week: int, iso_year: int, user_ids: Optional[list[str]] = None
    ) -> BatchStats:
        """Generate and save reports for every user with quotes in the week."""
        if user_ids is None:
            user_ids = sorted(await self.quote_repository.user_ids_for_week(iso_week, iso_year))
        stats = BatchStats(iso_week=iso_week, iso_year=iso_year, total_users=len(user_ids))
        logger.info("Starting weekly report batch for week %s (%d users)", stats.week, len(user_ids))

        semaphore = asyncio.Semaphore(self.concurrency)

        async def run_one(user_id: str) -> str:
            async with semaphore:
                try:
                    return await self._generate_for_user(user_id, iso_week, iso_year)
                except Exception as exc:
                    logger.error(
                        "Failed to generate report for user %s, week %d/%d: %s",
                        user_id, iso_week, iso_year, exc, exc_info=True,
                    )
                    return "error"

        outcomes = await asyncio.gather(*(run_one(uid) for uid in user_ids))
        for outcome in outcomes:
            if outcome == "generated":
                stats.generated += 1
            elif outcome == "skipped":
                stats.skipped += 1
            else:
                stats.errors += 1

        logger.info(
            "Batch for week %s finished: generated=%d skipped=%d errors=%d",
            stats.week, stats.generated, stats.skipped, stats.errors,
        )
        return stats

    async def _generate_for_user(self, user_id: str, iso_week: int, iso_year: int) -> str:
        existing = await self.report_repository.find_by_user_week(user_id, iso_week, iso_year)
        if existing is not None:
            logger.debug("Report already exists for user %s, week %d/%d", user_id, iso_week, iso_year)
            return "skipped"

        quotes = await self.quote_repository.get_weekly_quotes(user_id, iso_week, iso_year)
        if not quotes:
            logger.debug("No quotes for user %s, week %d/%d", user_id, iso_week, iso_year)
            return "skipped"

        profile = await self.profile_repository.get_by_user_id(user_id)
        if profile is None:
            logger.warning("Profile not found for user %s; skipping report", user_id)
            return "skipped"

        report = await self.report_service.generate(
            user_id, quotes, profile, {"iso_week": iso_week, "iso_year": iso_year}
        )
        await self.report_repository.save(report)
        return "generated"

    async def find_missing_weeks(self, now: Optional[datetime] = None) -> list[MissingWeek]:
        """Completed weeks in the lookback window with users lacking a report."""
        missing: list[MissingWeek] = []
        for week in self.calendar.recent_weeks(self.lookback_weeks, now):
            if not self.calendar.is_week_complete(week, now):
                continue
            with_quotes = await self.quote_repository.user_ids_for_week(week.iso_week, week.iso_year)
            if not with_quotes:
                continue
            with_reports = await self.report_repository.user_ids_with_reports(
                week.iso_week, week.iso_year
            )
            pending = sorted(set(with_quotes) - set(with_reports))
            if pending:
                missing.append(MissingWeek(week.iso_week, week.iso_year, pending))
        return missing

    async def catch_up(self, now: Optional[datetime] = None) -> CatchUpResult:
        logger.info("Starting weekly report catch-up (lookback %d weeks)", self.lookback_weeks)
        result = CatchUpResult()
        missing = await self.find_missing_weeks(now)
        if not missing:
            logger.info("No missing weekly reports found")
            return result

        for week in missing:
            stats = await self.generate_week(week.iso_week, week.iso_year, week.user_ids)
            result.weeks.append(stats)
            result.weeks_processed += 1
            result.total_generated += stats.generated

        logger.info(
            "Catch-up completed: %d reports generated across %d weeks",
            result.total_generated, result.weeks_processed,
        )
        return result
