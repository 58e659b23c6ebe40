"""In-memory repository implementations.

Catalog, promo and UTM repositories serve read-only reference data loaded
once at startup.  Quote, profile and report repositories back the batch
runner in development and tests.
"""

import logging
import random
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from reader_reports.core.constants import UNIVERSAL_CATEGORY
from reader_reports.domain.entities import (
    CatalogEntry,
    PromoCode,
    Quote,
    UserProfile,
    UtmTemplate,
    WeeklyReport,
)
from reader_reports.domain.repositories import (
    ICatalogRepository,
    IPromoCodeRepository,
    IQuoteRepository,
    IUserProfileRepository,
    IUtmTemplateRepository,
    IWeeklyReportRepository,
)

logger = logging.getLogger(__name__)


class InMemoryCatalogRepository(ICatalogRepository):
    """Theme lookup over a fixed list of catalog entries."""

    def __init__(self, entries: Iterable[CatalogEntry]):
        self._entries = tuple(entries)

    def _active(self) -> list[CatalogEntry]:
        return [entry for entry in self._entries if entry.is_active]

    async def find_active_by_themes(self, themes: list[str], limit: int = 2) -> list[CatalogEntry]:
        wanted = {theme.strip().lower() for theme in themes if theme and theme.strip()}
        if not wanted:
            return []
        scored = []
        for entry in self._active():
            tags = {tag.lower() for tag in entry.categories} | {
                tag.lower() for tag in entry.target_themes
            }
            relevance = len(wanted & tags)
            if relevance:
                scored.append((relevance, entry))
        # Stable sort keeps catalog order among equal scores.
        scored.sort(key=lambda item: (-item[0], -item[1].priority))
        return [entry for _, entry in scored[:limit]]

    async def find_universal(self, limit: int = 2) -> list[CatalogEntry]:
        universal = [
            entry for entry in self._active()
            if entry.is_universal or UNIVERSAL_CATEGORY in entry.categories
        ]
        universal.sort(key=lambda entry: -entry.priority)
        return universal[:limit]

    async def list_target_themes(self) -> list[str]:
        return [theme for entry in self._active() for theme in entry.target_themes]


class InMemoryPromoCodeRepository(IPromoCodeRepository):
    def __init__(
        self,
        promo_codes: Iterable[PromoCode],
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self._promo_codes = tuple(promo_codes)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._rng = rng or random.Random()

    async def random_active_for_context(self, context: str) -> Optional[PromoCode]:
        now = self._clock()
        candidates = [
            promo for promo in self._promo_codes
            if context in promo.usage_contexts and promo.is_valid_at(now)
        ]
        if not candidates:
            return None
        return self._rng.choice(candidates)


class InMemoryUtmTemplateRepository(IUtmTemplateRepository):
    def __init__(self, templates: Iterable[UtmTemplate]):
        self._templates = tuple(templates)

    async def templates_for_context(self, context: str) -> list[UtmTemplate]:
        matching = [tpl for tpl in self._templates if tpl.context == context and tpl.is_active]
        return sorted(matching, key=lambda tpl: tpl.name)


class InMemoryWeeklyReportRepository(IWeeklyReportRepository):
    def __init__(self, reports: Iterable[WeeklyReport] = ()):
        self._reports: dict[tuple[str, int, int], WeeklyReport] = {}
        for report in reports:
            self._reports[(report.user_id, report.week_number, report.year)] = report

    async def find_by_user_week(
        self, user_id: str, iso_week: int, iso_year: int
    ) -> Optional[WeeklyReport]:
        return self._reports.get((user_id, iso_week, iso_year))

    async def save(self, report: WeeklyReport) -> WeeklyReport:
        key = (report.user_id, report.week_number, report.year)
        if key in self._reports:
            logger.info("Replacing report for user %s week %d/%d", *key)
        self._reports[key] = report
        return report

    async def user_ids_with_reports(self, iso_week: int, iso_year: int) -> set[str]:
        return {uid for uid, week, year in self._reports if (week, year) == (iso_week, iso_year)}

    def all(self) -> list[WeeklyReport]:
        return list(self._reports.values())


class InMemoryQuoteRepository(IQuoteRepository):
    """Quotes keyed by their cached week coordinates."""

    def __init__(self, quotes: Iterable[Quote] = ()):
        self._quotes: list[Quote] = list(quotes)

    async def get_weekly_quotes(self, user_id: str, iso_week: int, iso_year: int) -> list[Quote]:
        selected = [
            q for q in self._quotes
            if q.user_id == user_id and (q.week_number, q.year_number) == (iso_week, iso_year)
        ]
        return sorted(selected, key=lambda q: q.created_at)

    async def user_ids_for_week(self, iso_week: int, iso_year: int) -> set[str]:
        return {
            q.user_id for q in self._quotes
            if (q.week_number, q.year_number) == (iso_week, iso_year)
        }

    async def list_quotes(self, skip: int = 0, limit: int = 500) -> list[Quote]:
        return self._quotes[skip:skip + limit]

    async def update_week_fields(self, quote_id: str, week_number: int, year_number: int) -> None:
        for index, quote in enumerate(self._quotes):
            if quote.id == quote_id:
                self._quotes[index] = replace(
                    quote, week_number=week_number, year_number=year_number
                )
                return
        raise KeyError(f"Quote {quote_id} not found")

    def all(self) -> list[Quote]:
        return list(self._quotes)


class InMemoryUserProfileRepository(IUserProfileRepository):
    def __init__(self, profiles: Iterable[UserProfile] = ()):
        self._profiles = {profile.user_id: profile for profile in profiles}

    async def get_by_user_id(self, user_id: str) -> Optional[UserProfile]:
        return self._profiles.get(user_id)

    def all(self) -> list[UserProfile]:
        return list(self._profiles.values())
