"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from reader_reports.domain.entities import Quote, UserProfile


# ---------------------------------------------------------------------------
# Weeks
# ---------------------------------------------------------------------------
class WeekResponse(BaseModel):
    iso_week: int
    iso_year: int
    start: datetime
    end: datetime
    key: str
    label: str


class WeekMetaRequest(BaseModel):
    iso_week: int = Field(..., ge=1, le=53)
    iso_year: int = Field(..., ge=1970, le=9999)


# ---------------------------------------------------------------------------
# Report generation
# ---------------------------------------------------------------------------
class QuoteRequest(BaseModel):
    id: Optional[str] = None
    text: str = Field(..., min_length=1, max_length=1000)
    author: Optional[str] = Field(None, max_length=200)
    category: str = "ПОИСК СЕБЯ"
    created_at: datetime

    def to_entity(self, user_id: str) -> Quote:
        return Quote(
            id=self.id,
            user_id=user_id,
            text=self.text,
            author=self.author,
            category=self.category,
            created_at=self.created_at,
        )


class UserProfileRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    test_results: dict = Field(default_factory=dict)
    preferences: dict = Field(default_factory=dict)

    def to_entity(self, user_id: str) -> UserProfile:
        return UserProfile(
            user_id=user_id,
            name=self.name,
            test_results=self.test_results,
            preferences=self.preferences,
        )


class GenerateReportRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    profile: UserProfileRequest
    quotes: list[QuoteRequest] = Field(default_factory=list)
    week: Optional[WeekMetaRequest] = None


class AnalysisResponse(BaseModel):
    summary: str
    insights: str
    dominant_themes: list[str]
    secondary_themes: list[str]
    emotional_tone: str
    personal_growth: str

    model_config = ConfigDict(from_attributes=True)


class RecommendationResponse(BaseModel):
    title: str
    author: Optional[str] = None
    description: str
    price: Optional[float] = None  # None means unknown
    price_byn: Optional[float] = None
    book_slug: str
    reasoning: str
    link: str

    model_config = ConfigDict(from_attributes=True)


class PromoCodeResponse(BaseModel):
    code: str
    discount: int
    valid_until: datetime
    description: str

    model_config = ConfigDict(from_attributes=True)


class MetricsResponse(BaseModel):
    quotes: int
    unique_authors: int
    active_days: int
    target_quotes: int
    target_days: int
    progress_quotes_pct: int
    progress_days_pct: int

    model_config = ConfigDict(from_attributes=True)


class WeeklyReportResponse(BaseModel):
    user_id: str
    week_number: int
    year: int
    analysis: AnalysisResponse
    recommendations: list[RecommendationResponse]
    promo_code: PromoCodeResponse
    metrics: MetricsResponse
    generated_at: datetime
    quote_ids: list[str]
    analysis_source: str

    model_config = ConfigDict(from_attributes=True)
