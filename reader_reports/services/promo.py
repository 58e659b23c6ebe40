"""Promo code selection and tracked-link generation.

Both prefer reference data from their repositories and fall back to static
values when the repository is missing, fails, or has nothing for the context.
"""

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence
from urllib.parse import urlencode

from reader_reports.domain.entities import PromoCode
from reader_reports.domain.errors import CatalogUnavailableError
from reader_reports.domain.repositories import IPromoCodeRepository, IUtmTemplateRepository

logger = logging.getLogger(__name__)

DEFAULT_PROMO_CODES = ("READER20", "WISDOM20", "QUOTES20", "BOOKS20")
DEFAULT_LINK_BASE_URL = "https://anna-busel.com/books"


class PromoAssigner:
    def __init__(
        self,
        promo_repository: Optional[IPromoCodeRepository] = None,
        fallback_codes: Sequence[str] = DEFAULT_PROMO_CODES,
        fallback_discount: int = 20,
        fallback_valid_days: int = 3,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.promo_repository = promo_repository
        self.fallback_codes = tuple(fallback_codes)
        self.fallback_discount = fallback_discount
        self.fallback_valid_days = fallback_valid_days
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._rng = rng or random.Random()

    async def assign_promo(self, context: str) -> PromoCode:
        try:
            return await self._from_repository(context)
        except CatalogUnavailableError as exc:
            logger.info("Using fallback promo code: %s", exc)
            return self.fallback_promo()

    async def _from_repository(self, context: str) -> PromoCode:
        if self.promo_repository is None:
            raise CatalogUnavailableError("promo_codes")
        try:
            promo = await self.promo_repository.random_active_for_context(context)
        except Exception as exc:
            logger.warning("Promo repository failed for context %r: %s", context, exc)
            raise CatalogUnavailableError("promo_codes", exc) from exc
        if promo is None:
            raise CatalogUnavailableError("promo_codes")
        return promo

    def fallback_promo(self) -> PromoCode:
        now = self._clock()
        return PromoCode(
            code=self._rng.choice(self.fallback_codes),
            discount=self.fallback_discount,
            valid_until=now + timedelta(days=self.fallback_valid_days),
            description=f"Скидка {self.fallback_discount}% на разборы книг",
            valid_from=now,
        )


class LinkGenerator:
    def __init__(
        self,
        template_repository: Optional[IUtmTemplateRepository] = None,
        base_url: str = DEFAULT_LINK_BASE_URL,
        utm_source: str = "telegram_bot",
        utm_campaign: str = "reader_recommendations",
    ):
        self.template_repository = template_repository
        self.base_url = base_url.rstrip("?")
        self.utm_source = utm_source
        self.utm_campaign = utm_campaign

    async def build_link(self, book_slug: str, context: str, user_id: Optional[str] = None) -> str:
        variables = {"book_slug": book_slug, "context": context}
        if user_id:
            variables["user_id"] = user_id

        templates = await self._templates(context)
        if templates:
            return templates[0].generate_link(variables)
        return self.fallback_link(book_slug, context, user_id)

    async def _templates(self, context: str):
        if self.template_repository is None:
            return []
        try:
            templates = await self.template_repository.templates_for_context(context)
        except Exception as exc:
            logger.warning("UTM template lookup failed for context %r: %s", context, exc)
            return []
        return [tpl for tpl in templates if tpl.is_active]

    def fallback_link(self, book_slug: str, context: str, user_id: Optional[str] = None) -> str:
        params = {
            "utm_source": self.utm_source,
            "utm_medium": context,
            "utm_campaign": self.utm_campaign,
            "utm_content": book_slug,
        }
        if user_id:
            params["user_id"] = user_id
        return f"{self.base_url}?{urlencode(params)}"
