"""Rule-based book recommendations for weekly reports.

Themes from the analysis are matched against the catalog in a fixed,
reproducible order:

  1. Theme list     -- dominant themes first, then new secondary themes
  2. Catalog match  -- entries whose categories / target themes intersect
  3. Universal pick -- catalog-wide general recommendations
  4. Static table   -- built-in fallback books when the catalog is unusable

Results are deduplicated by slug and capped (2 by default).  Each carries a
tracked link and reasoning personalised by the week's emotional tone.
"""

from __future__ import annotations

import logging
from typing import Optional

from reader_reports.core.constants import DEFAULT_FALLBACK_BOOK, FALLBACK_BOOKS, TONE_CLAUSES
from reader_reports.domain.entities import CatalogEntry, Recommendation, UserProfile, WeeklyAnalysis
from reader_reports.domain.errors import CatalogUnavailableError
from reader_reports.domain.repositories import ICatalogRepository
from reader_reports.services.promo import LinkGenerator

logger = logging.getLogger(__name__)

MAX_REASONING_CHARS = 300
MAX_DESCRIPTION_CHARS = 500


def ordered_themes(analysis: WeeklyAnalysis) -> list[str]:
    themes: list[str] = []
    for theme in list(analysis.dominant_themes) + list(analysis.secondary_themes):
        if theme and theme not in themes:
            themes.append(theme)
    return themes


def personalize_reasoning(base: str, emotional_tone: str) -> str:
    clause = TONE_CLAUSES.get((emotional_tone or "").lower(), "")
    reasoning = (base or "").strip()
    if clause:
        reasoning = reasoning.rstrip(". ") + clause
    return reasoning[:MAX_REASONING_CHARS]


def dedupe_by_slug(entries: list[CatalogEntry], limit: int) -> list[CatalogEntry]:
    seen: set[str] = set()
    unique: list[CatalogEntry] = []
    for entry in entries:
        if not entry.book_slug or entry.book_slug in seen:
            continue
        seen.add(entry.book_slug)
        unique.append(entry)
        if len(unique) >= limit:
            break
    return unique


def static_fallback_entry(themes: list[str]) -> CatalogEntry:
    """First built-in book whose keyword stems occur in a theme, in theme order."""
    for theme in themes:
        lowered = theme.lower()
        for stems, entry in FALLBACK_BOOKS:
            if any(stem in lowered for stem in stems):
                return entry
    return DEFAULT_FALLBACK_BOOK


class RecommendationMatcher:
    def __init__(
        self,
        catalog_repository: Optional[ICatalogRepository],
        link_generator: LinkGenerator,
        max_results: int = 2,
        link_context: str = "weekly_report",
    ):
        self.catalog_repository = catalog_repository
        self.link_generator = link_generator
        self.max_results = max_results
        self.link_context = link_context

    async def recommend(
        self, analysis: WeeklyAnalysis, user_profile: UserProfile
    ) -> list[Recommendation]:
        themes = ordered_themes(analysis)
        try:
            entries = await self._catalog_entries(themes)
        except CatalogUnavailableError as exc:
            logger.warning("Catalog unavailable, using static recommendation: %s", exc)
            entries = [static_fallback_entry(themes)]

        selected = dedupe_by_slug(entries, self.max_results)
        if not selected:
            logger.warning("Catalog returned no usable entries, using static recommendation")
            selected = [static_fallback_entry(themes)]

        recommendations = []
        for entry in selected:
            link = await self.link_generator.build_link(
                entry.book_slug, self.link_context, user_profile.user_id
            )
            recommendations.append(self._to_recommendation(entry, analysis, link))
        logger.info(
            "Matched %d recommendations for user %s (themes: %s)",
            len(recommendations), user_profile.user_id, ", ".join(themes) or "-",
        )
        return recommendations

    async def _catalog_entries(self, themes: list[str]) -> list[CatalogEntry]:
        if self.catalog_repository is None:
            raise CatalogUnavailableError("book_catalog")
        # Over-fetch so that duplicates do not starve the final list.
        fetch_limit = self.max_results * 3
        try:
            entries = []
            if themes:
                entries = await self.catalog_repository.find_active_by_themes(themes, fetch_limit)
            if not entries:
                logger.info("No catalog match for themes %s; trying universal picks", themes)
                entries = await self.catalog_repository.find_universal(fetch_limit)
        except Exception as exc:
            raise CatalogUnavailableError("book_catalog", exc) from exc
        if not entries:
            raise CatalogUnavailableError("book_catalog")
        return entries

    @staticmethod
    def _to_recommendation(
        entry: CatalogEntry, analysis: WeeklyAnalysis, link: str
    ) -> Recommendation:
        return Recommendation(
            title=entry.title,
            author=entry.author,
            description=(entry.description or "")[:MAX_DESCRIPTION_CHARS],
            price=entry.price,
            price_byn=entry.price_byn,
            book_slug=entry.book_slug,
            reasoning=personalize_reasoning(entry.reasoning, analysis.emotional_tone),
            link=link,
        )
