"""Weekly analysis: AI call, validation and deterministic fallback."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from reader_reports.core.constants import (
    ALLOWED_TONES,
    DEFAULT_THEME,
    DEFAULT_TONE,
    MAX_FALLBACK_THEMES,
    THEME_KEYWORDS,
    TONE_SYNONYMS,
    UNCATEGORIZED,
)
from reader_reports.domain.entities import Quote, UserProfile, WeeklyAnalysis
from reader_reports.domain.errors import MalformedAIResponseError
from reader_reports.domain.repositories import ILLMService
from reader_reports.infrastructure.llm.prompts import WEEKLY_ANALYSIS_PROMPT
from reader_reports.services.response_parser import AnalysisCandidate, ResponseParser

logger = logging.getLogger(__name__)

MAX_SUMMARY_CHARS = 500
MAX_INSIGHTS_CHARS = 2000
MAX_GROWTH_CHARS = 1000


def normalize_emotional_tone(value: Optional[str]) -> str:
    """Map free-form model tones onto :data:`ALLOWED_TONES`."""
    if not value:
        return DEFAULT_TONE
    tone = str(value).strip().lower().replace("ё", "е")
    if tone in ALLOWED_TONES:
        return tone
    return TONE_SYNONYMS.get(tone, DEFAULT_TONE)


def extract_fallback_themes(quotes: list[Quote]) -> list[str]:
    """Keyword-matched themes over quote texts, most frequent first."""
    counts: dict[str, int] = {}
    for quote in quotes:
        text = (quote.text or "").lower()
        for theme, stems in THEME_KEYWORDS.items():
            if any(stem in text for stem in stems):
                counts[theme] = counts.get(theme, 0) + 1
        category = (quote.category or "").strip()
        if category and category != UNCATEGORIZED:
            key = category.lower()
            counts[key] = counts.get(key, 0) + 1

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    themes = [theme for theme, _ in ranked[:MAX_FALLBACK_THEMES]]
    return themes or [DEFAULT_THEME]


def build_fallback_analysis(quotes: list[Quote], user_profile: UserProfile) -> WeeklyAnalysis:
    """Deterministic analysis used whenever the AI result is unusable."""
    themes = extract_fallback_themes(quotes)
    name = (user_profile.name or "").strip()
    address = f"{name}, эта неделя" if name else "Эта неделя"
    if quotes:
        insights = (
            f"{address} показывает ваш интерес к глубоким жизненным вопросам. "
            f"Вы ищете ответы и вдохновение в словах мудрых людей. Главные темы "
            f"недели: {', '.join(themes)}. Ваши цитаты говорят о стремлении к росту "
            f"и пониманию себя."
        )
    else:
        insights = (
            f"{address} прошла без новых цитат. Иногда пауза тоже часть пути, "
            f"попробуйте записать хотя бы одну мысль, которая откликнется вам."
        )
    return WeeklyAnalysis(
        summary="Ваши цитаты отражают глубокий внутренний поиск и стремление к мудрости",
        insights=insights,
        dominant_themes=themes,
        emotional_tone="позитивный" if quotes else DEFAULT_TONE,
        personal_growth="",
    )


def format_quotes(quotes: list[Quote]) -> str:
    lines = []
    for quote in quotes:
        author = f" ({quote.author.strip()})" if quote.author and quote.author.strip() else ""
        lines.append(f'"{quote.text}"{author}')
    return "\n\n".join(lines)


def validate_candidate(candidate: AnalysisCandidate) -> WeeklyAnalysis:
    """Turn a parsed candidate into an analysis or raise ``MalformedAIResponseError``."""
    missing = candidate.missing_fields()
    if missing:
        raise MalformedAIResponseError(missing, tier=candidate.tier)
    return WeeklyAnalysis(
        summary=candidate.summary[:MAX_SUMMARY_CHARS],
        insights=candidate.insights[:MAX_INSIGHTS_CHARS],
        dominant_themes=candidate.dominant_themes or [DEFAULT_THEME],
        emotional_tone=normalize_emotional_tone(candidate.emotional_tone),
        personal_growth=candidate.personal_growth[:MAX_GROWTH_CHARS],
    )


class WeeklyAnalysisService:
    """Produces a :class:`WeeklyAnalysis`, never failing.

    The AI call is bounded by ``timeout``.  Timeouts, provider errors and
    responses missing ``summary``/``insights`` all end in
    :func:`build_fallback_analysis`.
    """

    def __init__(
        self,
        llm_service: Optional[ILLMService],
        parser: Optional[ResponseParser] = None,
        timeout: float = 60.0,
    ):
        self.llm_service = llm_service
        self.parser = parser or ResponseParser()
        self.timeout = timeout

    def build_prompt(
        self, quotes: list[Quote], user_profile: UserProfile, previous_analysis: str = ""
    ) -> str:
        return WEEKLY_ANALYSIS_PROMPT.render_flat(
            user_name=user_profile.name,
            test_results=json.dumps(user_profile.test_results or {}, ensure_ascii=False),
            quotes_text=format_quotes(quotes),
            previous_analysis=previous_analysis or "нет",
        )

    async def analyze(
        self, quotes: list[Quote], user_profile: UserProfile, previous_analysis: str = ""
    ) -> tuple[WeeklyAnalysis, str]:
        """Return ``(analysis, source)`` where source is ``"ai"`` or ``"fallback"``."""
        if not quotes:
            logger.info("No quotes for user %s; using fallback analysis", user_profile.user_id)
            return build_fallback_analysis(quotes, user_profile), "fallback"
        if self.llm_service is None:
            logger.warning("No LLM service configured; using fallback analysis")
            return build_fallback_analysis(quotes, user_profile), "fallback"

        prompt = self.build_prompt(quotes, user_profile, previous_analysis)
        try:
            raw = await asyncio.wait_for(self.llm_service.complete(prompt), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("AI analysis timed out after %.1fs; using fallback", self.timeout)
            return build_fallback_analysis(quotes, user_profile), "fallback"
        except Exception as exc:
            logger.warning("AI analysis unavailable (%s); using fallback", exc)
            return build_fallback_analysis(quotes, user_profile), "fallback"

        try:
            candidate = self.parser.parse(raw)
        except Exception as exc:
            logger.warning("Unparsable AI analysis (%r); using fallback", exc)
            return build_fallback_analysis(quotes, user_profile), "fallback"
        try:
            return validate_candidate(candidate), "ai"
        except MalformedAIResponseError as exc:
            logger.warning("Rejected AI analysis: %s", exc)
            return build_fallback_analysis(quotes, user_profile), "fallback"
