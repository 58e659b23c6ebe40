"""Keep cached quote week coordinates in line with ``created_at``."""

import logging
from dataclasses import dataclass, replace

from reader_reports.core.calendar import BusinessCalendar
from reader_reports.domain.entities import Quote
from reader_reports.domain.repositories import IQuoteRepository

logger = logging.getLogger(__name__)


def stamp_week_fields(quote: Quote, calendar: BusinessCalendar) -> Quote:
    """Copy of ``quote`` with ``week_number``/``year_number`` recomputed."""
    info = calendar.iso_week_info(quote.created_at)
    return replace(quote, week_number=info.iso_week, year_number=info.iso_year)


def needs_backfill(quote: Quote, calendar: BusinessCalendar) -> bool:
    info = calendar.iso_week_info(quote.created_at)
    return (quote.week_number, quote.year_number) != (info.iso_week, info.iso_year)


@dataclass
class BackfillStats:
    scanned: int = 0
    updated: int = 0
    skipped: int = 0  # rows without an id cannot be written back


class QuoteWeekBackfill:
    def __init__(self, quote_repository: IQuoteRepository, calendar: BusinessCalendar):
        self.quote_repository = quote_repository
        self.calendar = calendar

    async def run(self, batch_size: int = 500) -> BackfillStats:
        stats = BackfillStats()
        skip = 0
        while True:
            batch = await self.quote_repository.list_quotes(skip=skip, limit=batch_size)
            if not batch:
                break
            for quote in batch:
                stats.scanned += 1
                if not needs_backfill(quote, self.calendar):
                    continue
                if not quote.id:
                    stats.skipped += 1
                    continue
                fixed = stamp_week_fields(quote, self.calendar)
                await self.quote_repository.update_week_fields(
                    quote.id, fixed.week_number, fixed.year_number
                )
                stats.updated += 1
            skip += len(batch)

        logger.info(
            "Quote week backfill: scanned=%d updated=%d skipped=%d",
            stats.scanned, stats.updated, stats.skipped,
        )
        return stats
