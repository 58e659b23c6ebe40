"""Tests for promo code assignment and tracked links."""

import random
from datetime import timedelta

import pytest

from reader_reports.domain.entities import PromoCode, UtmTemplate
from reader_reports.domain.repositories import IPromoCodeRepository
from reader_reports.infrastructure.reference.memory import InMemoryPromoCodeRepository
from reader_reports.services.promo import DEFAULT_PROMO_CODES, LinkGenerator, PromoAssigner
from tests.helpers import FIXED_NOW, fixed_clock


class BrokenPromoRepository(IPromoCodeRepository):
    async def random_active_for_context(self, context):
        raise TimeoutError("promo store timed out")


def promo(code, days=10, contexts=("weekly_report",), **kwargs):
    return PromoCode(
        code=code,
        discount=kwargs.pop("discount", 15),
        valid_until=FIXED_NOW + timedelta(days=days),
        usage_contexts=list(contexts),
        **kwargs,
    )


class TestPromoAssigner:
    @pytest.mark.asyncio
    async def test_static_fallback_without_repository(self):
        assigner = PromoAssigner(clock=fixed_clock(), rng=random.Random(7))
        result = await assigner.assign_promo("weekly_report")
        assert result.code in DEFAULT_PROMO_CODES
        assert result.discount == 20
        assert result.valid_until == FIXED_NOW + timedelta(days=3)
        assert result.description == "Скидка 20% на разборы книг"

    @pytest.mark.asyncio
    async def test_repository_promo_for_context(self):
        repo = InMemoryPromoCodeRepository(
            [promo("WEEK15"), promo("OTHER", contexts=("quote_handler",))],
            clock=fixed_clock(),
        )
        result = await PromoAssigner(repo, clock=fixed_clock()).assign_promo("weekly_report")
        assert result.code == "WEEK15"
        assert result.discount == 15

    @pytest.mark.asyncio
    async def test_expired_and_inactive_codes_are_ignored(self):
        repo = InMemoryPromoCodeRepository(
            [promo("OLD", days=-1), promo("OFF", is_active=False)],
            clock=fixed_clock(),
        )
        assigner = PromoAssigner(repo, fallback_codes=["SPARE20"], clock=fixed_clock())
        result = await assigner.assign_promo("weekly_report")
        assert result.code == "SPARE20"

    @pytest.mark.asyncio
    async def test_repository_failure_uses_fallback(self):
        assigner = PromoAssigner(BrokenPromoRepository(), clock=fixed_clock())
        result = await assigner.assign_promo("weekly_report")
        assert result.code in DEFAULT_PROMO_CODES
        assert result.discount == 20

    def test_not_yet_valid_promo(self):
        code = promo("SOON", valid_from=FIXED_NOW + timedelta(days=1))
        assert not code.is_valid_at(FIXED_NOW)
        assert code.is_valid_at(FIXED_NOW + timedelta(days=2))


class TestUtmTemplate:
    def test_replace_variables_leaves_unknown_placeholders(self):
        assert UtmTemplate.replace_variables("{a}-{b}", {"a": "x"}) == "x-{b}"

    def test_additional_params(self):
        template = UtmTemplate(
            name="t",
            context="weekly_report",
            base_url="https://example.com",
            utm_source="bot",
            utm_medium="telegram",
            utm_campaign="weekly",
            utm_content="{book_slug}",
        )
        link = template.generate_link({"book_slug": "little_prince", "additional_params": {"ref": "w2"}})
        assert link == (
            "https://example.com?utm_source=bot&utm_medium=telegram&utm_campaign=weekly"
            "&utm_content=little_prince&ref=w2"
        )


class TestLinkGenerator:
    @pytest.mark.asyncio
    async def test_fallback_link_without_user(self):
        link = await LinkGenerator(base_url="https://shop.example/books").build_link(
            "little_prince", "weekly_report"
        )
        assert link == (
            "https://shop.example/books?utm_source=telegram_bot&utm_medium=weekly_report"
            "&utm_campaign=reader_recommendations&utm_content=little_prince"
        )
