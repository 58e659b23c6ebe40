"""Domain entities for the weekly report pipeline."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union
from urllib.parse import urlencode


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Quote:
    user_id: str
    text: str
    category: str = "ПОИСК СЕБЯ"
    author: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    week_number: Optional[int] = None  # cached ISO week, see QuoteWeekBackfill
    year_number: Optional[int] = None  # cached ISO year
    id: Optional[str] = None


@dataclass
class UserProfile:
    user_id: str
    name: str
    test_results: dict = field(default_factory=dict)
    preferences: dict = field(default_factory=dict)


@dataclass(frozen=True)
class IsoWeek:
    iso_week: int
    iso_year: int


@dataclass(frozen=True)
class WeekRange:
    """A full ISO week: Monday 00:00 to Sunday 23:59:59.999 in business time."""

    iso_week: int
    iso_year: int
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


@dataclass
class WeeklyAnalysis:
    """AI (or fallback) reading of a week of quotes.

    ``summary`` and ``insights`` are never empty once an analysis reaches a
    report; candidates without them are replaced by the fallback analysis.
    """

    summary: str
    insights: str
    dominant_themes: list[str] = field(default_factory=list)
    secondary_themes: list[str] = field(default_factory=list)
    emotional_tone: str = "размышляющий"
    personal_growth: str = ""


@dataclass
class CatalogEntry:
    """Subset of a book-catalog record consumed by the matcher."""

    title: str
    description: str
    book_slug: str
    reasoning: str = "Рекомендация на основе анализа ваших цитат"
    author: Optional[str] = None
    target_themes: list[str] = field(default_factory=list)  # free-text tags
    categories: list[str] = field(default_factory=list)  # canonical categories
    price: Union[str, float, None] = None  # legacy "$8" style strings allowed
    price_byn: Optional[float] = None
    priority: int = 0
    is_active: bool = True
    is_universal: bool = False


@dataclass
class Recommendation:
    title: str
    description: str
    book_slug: str
    reasoning: str
    link: str
    price: Union[str, float, None] = None  # normalised to float or None (unknown) on assembly
    author: Optional[str] = None
    price_byn: Optional[float] = None


@dataclass
class PromoCode:
    code: str
    discount: int
    valid_until: datetime
    description: str = ""
    valid_from: Optional[datetime] = None
    usage_contexts: list[str] = field(default_factory=list)
    is_active: bool = True

    def is_valid_at(self, moment: datetime) -> bool:
        if not self.is_active:
            return False
        if self.valid_from is not None and moment < self.valid_from:
            return False
        return moment <= self.valid_until


_VARIABLE_RE = re.compile(r"\{(\w+)\}")


@dataclass
class UtmTemplate:
    """Tracked-link template; ``{name}`` placeholders are filled per link."""

    name: str
    context: str
    base_url: str
    utm_source: str
    utm_medium: str
    utm_campaign: str
    utm_content: Optional[str] = None
    utm_term: Optional[str] = None
    is_active: bool = True

    def generate_link(self, variables: Optional[dict] = None) -> str:
        variables = variables or {}
        params = {
            "utm_source": self.utm_source,
            "utm_medium": self.utm_medium,
            "utm_campaign": self.replace_variables(self.utm_campaign, variables),
        }
        if self.utm_content:
            params["utm_content"] = self.replace_variables(self.utm_content, variables)
        if self.utm_term:
            params["utm_term"] = self.replace_variables(self.utm_term, variables)
        params.update(variables.get("additional_params") or {})
        return f"{self.base_url}?{urlencode(params)}"

    @staticmethod
    def replace_variables(value: str, variables: dict) -> str:
        """Fill ``{key}`` placeholders; unknown keys are left untouched."""
        return _VARIABLE_RE.sub(
            lambda m: str(variables.get(m.group(1)) or m.group(0)), value
        )


@dataclass
class WeekMetrics:
    quotes: int
    unique_authors: int
    active_days: int
    target_quotes: int
    target_days: int
    progress_quotes_pct: int
    progress_days_pct: int


@dataclass
class WeeklyReport:
    user_id: str
    week_number: int
    year: int
    analysis: WeeklyAnalysis
    recommendations: list[Recommendation]
    promo_code: PromoCode
    metrics: WeekMetrics
    generated_at: datetime = field(default_factory=_utcnow)
    quote_ids: list[str] = field(default_factory=list)
    analysis_source: str = "ai"  # ai | fallback
