"""Weekly report assembly.

Stages run strictly in order, each consuming the previous one's output:

    week resolved -> analysis -> secondary themes -> recommendations
    -> promo code -> metrics -> report

Only :class:`MissingWeekMetadataError` leaves :meth:`WeeklyReportService.generate`;
every collaborator failure degrades to fallback content instead.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from typing import Mapping, Optional

from reader_reports.core.calendar import BusinessCalendar
from reader_reports.domain.entities import (
    Quote,
    UserProfile,
    WeekMetrics,
    WeeklyReport,
    WeekRange,
)
from reader_reports.domain.errors import InvalidPriceError, MissingWeekMetadataError
from reader_reports.domain.repositories import ICatalogRepository, IWeeklyReportRepository
from reader_reports.domain.services import IWeeklyReportService, WeekMeta
from reader_reports.services.analysis import WeeklyAnalysisService
from reader_reports.services.promo import PromoAssigner
from reader_reports.services.recommendation import RecommendationMatcher
from reader_reports.services.theme_miner import mine_secondary_themes

logger = logging.getLogger(__name__)

TARGET_QUOTES = 30
TARGET_DAYS = 7

_WEEK_KEYS = ("iso_week", "isoWeek", "isoWeekNumber", "week_number", "weekNumber")
_YEAR_KEYS = ("iso_year", "isoYear", "year_number", "yearNumber", "year")


# ----------------------------------------------------------------------
# Prices
# ----------------------------------------------------------------------
_NON_NUMERIC_RE = re.compile(r"[^\d.,\-]")
_THOUSANDS_RE = re.compile(r"^-?\d{1,3}(,\d{3})+$")
_DOT_THOUSANDS_RE = re.compile(r"^-?\d{1,3}(\.\d{3})+$")


def parse_price(value) -> float:
    """Read ``"$8"``, ``"1,200 ₽"``, ``"1.200,50 ₽"``, ``"8,50 BYN"`` or a number as a float.

    Raises ``InvalidPriceError`` for unparsable, negative or non-finite values.
    """
    if value is None or isinstance(value, bool):
        raise InvalidPriceError(value)
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _NON_NUMERIC_RE.sub("", str(value)).strip(".,")
        if "," in text and "." in text:
            # The separator that comes last is the decimal point.
            if text.rfind(",") > text.rfind("."):
                text = text.replace(".", "").replace(",", ".")
            else:
                text = text.replace(",", "")
        elif "," in text:
            if _THOUSANDS_RE.match(text):
                text = text.replace(",", "")
            else:
                text = text.replace(",", ".")
        elif text.count(".") > 1 and _DOT_THOUSANDS_RE.match(text):
            text = text.replace(".", "")
        try:
            number = float(text)
        except ValueError:
            raise InvalidPriceError(value) from None
    if not math.isfinite(number) or number < 0:
        raise InvalidPriceError(value)
    return number


def normalize_price(value) -> Optional[float]:
    """Float price, or ``None`` when the price is unknown."""
    try:
        return parse_price(value)
    except InvalidPriceError as exc:
        logger.debug("Price normalised to unknown: %s", exc)
        return None


# ----------------------------------------------------------------------
# Metrics
# ----------------------------------------------------------------------
def progress_pct(value: int, target: int) -> int:
    # Half-up rounding, capped at 100.
    return min(100, math.floor(value / target * 100 + 0.5))


def compute_metrics(
    quotes: list[Quote],
    calendar: BusinessCalendar,
    target_quotes: int = TARGET_QUOTES,
    target_days: int = TARGET_DAYS,
) -> WeekMetrics:
    authors = {q.author.strip() for q in quotes if q.author and q.author.strip()}
    days = {calendar.business_date(q.created_at) for q in quotes}
    return WeekMetrics(
        quotes=len(quotes),
        unique_authors=len(authors),
        active_days=len(days),
        target_quotes=target_quotes,
        target_days=target_days,
        progress_quotes_pct=progress_pct(len(quotes), target_quotes),
        progress_days_pct=progress_pct(len(days), target_days),
    )


def _pick(meta: Mapping, keys: tuple[str, ...]):
    for key in keys:
        value = meta.get(key)
        if value is not None:
            return value
    return None


class WeeklyReportService(IWeeklyReportService):
    """Report assembler wiring calendar, analysis, matching and promo."""

    def __init__(
        self,
        calendar: BusinessCalendar,
        analysis_service: WeeklyAnalysisService,
        recommendation_matcher: RecommendationMatcher,
        promo_assigner: PromoAssigner,
        catalog_repository: Optional[ICatalogRepository] = None,
        report_repository: Optional[IWeeklyReportRepository] = None,
        target_quotes: int = TARGET_QUOTES,
        target_days: int = TARGET_DAYS,
        promo_context: str = "weekly_report",
    ):
        self.calendar = calendar
        self.analysis_service = analysis_service
        self.recommendation_matcher = recommendation_matcher
        self.promo_assigner = promo_assigner
        self.catalog_repository = catalog_repository
        self.report_repository = report_repository
        self.target_quotes = target_quotes
        self.target_days = target_days
        self.promo_context = promo_context

    async def generate(
        self,
        user_id: str,
        quotes: list[Quote],
        user_profile: UserProfile,
        week_meta: Optional[WeekMeta] = None,
    ) -> WeeklyReport:
        week = self.resolve_week(week_meta)
        week_quotes = self._select_week_quotes(quotes, week)
        logger.info(
            "Generating weekly report for user %s, week %d/%d with %d quotes",
            user_id, week.iso_week, week.iso_year, len(week_quotes),
        )

        previous_analysis = await self._previous_analysis_text(user_id, week)
        analysis, source = await self.analysis_service.analyze(
            week_quotes, user_profile, previous_analysis
        )

        catalog_themes = await self._catalog_target_themes()
        analysis.secondary_themes = mine_secondary_themes(week_quotes, catalog_themes)

        recommendations = await self.recommendation_matcher.recommend(analysis, user_profile)
        recommendations = [replace(rec, price=normalize_price(rec.price)) for rec in recommendations]

        promo_code = await self.promo_assigner.assign_promo(self.promo_context)
        metrics = compute_metrics(week_quotes, self.calendar, self.target_quotes, self.target_days)

        report = WeeklyReport(
            user_id=user_id,
            week_number=week.iso_week,
            year=week.iso_year,
            analysis=analysis,
            recommendations=recommendations,
            promo_code=promo_code,
            metrics=metrics,
            generated_at=self.calendar.business_now(),
            quote_ids=[q.id for q in week_quotes if q.id],
            analysis_source=source,
        )
        logger.info(
            "Weekly report ready for user %s, week %d/%d (analysis: %s, recommendations: %d)",
            user_id, week.iso_week, week.iso_year, source, len(recommendations),
        )
        return report

    def resolve_week(self, week_meta: Optional[WeekMeta]) -> WeekRange:
        if week_meta is None:
            return self.calendar.previous_complete_week()
        if isinstance(week_meta, WeekRange):
            return week_meta

        if isinstance(week_meta, Mapping):
            iso_week = _pick(week_meta, _WEEK_KEYS)
            iso_year = _pick(week_meta, _YEAR_KEYS)
            received = sorted(str(key) for key in week_meta)
        elif hasattr(week_meta, "iso_week") and hasattr(week_meta, "iso_year"):
            iso_week, iso_year = week_meta.iso_week, week_meta.iso_year
            received = ["iso_week", "iso_year"]
        else:
            raise MissingWeekMetadataError(
                "Week metadata must be a mapping or an ISO week",
                received=type(week_meta).__name__,
            )
        if iso_week is None or iso_year is None:
            raise MissingWeekMetadataError(
                "Week metadata must contain iso_week and iso_year", received=received
            )
        try:
            return self.calendar.iso_week_range(int(iso_week), int(iso_year))
        except (TypeError, ValueError) as exc:
            raise MissingWeekMetadataError(
                f"Week metadata does not name a valid ISO week: {exc}",
                iso_week=iso_week, iso_year=iso_year,
            ) from exc

    def _select_week_quotes(self, quotes: list[Quote], week: WeekRange) -> list[Quote]:
        """Quotes whose business-time creation date falls inside ``week``."""
        selected = []
        for quote in quotes:
            info = self.calendar.iso_week_info(quote.created_at)
            if (info.iso_week, info.iso_year) == (week.iso_week, week.iso_year):
                selected.append(quote)
        dropped = len(quotes) - len(selected)
        if dropped:
            logger.warning(
                "Ignored %d quotes outside week %d/%d", dropped, week.iso_week, week.iso_year
            )
        return selected

    async def _previous_analysis_text(self, user_id: str, week: WeekRange) -> str:
        if self.report_repository is None:
            return ""
        prev = self.calendar.previous_week(week.iso_week, week.iso_year)
        try:
            report = await self.report_repository.find_by_user_week(
                user_id, prev.iso_week, prev.iso_year
            )
        except Exception as exc:
            logger.warning("Previous report lookup failed for user %s: %s", user_id, exc)
            return ""
        if report is None:
            return ""
        parts = (report.analysis.summary, report.analysis.insights)
        return "\n".join(part for part in parts if part)

    async def _catalog_target_themes(self) -> list[str]:
        if self.catalog_repository is None:
            return []
        try:
            return await self.catalog_repository.list_target_themes()
        except Exception as exc:
            logger.warning("Catalog themes unavailable, skipping secondary themes: %s", exc)
            return []
