"""Dependency injection container.

Every collaborator of the report pipeline is built here from settings and
reference data and handed over through constructors.
"""

from typing import Optional

from fastapi import Depends, Request

from reader_reports.core.calendar import BusinessCalendar
from reader_reports.core.config import Settings, get_settings
from reader_reports.domain.repositories import (
    ILLMService,
    IQuoteRepository,
    IUserProfileRepository,
    IWeeklyReportRepository,
)
from reader_reports.domain.services import IWeeklyReportService
from reader_reports.infrastructure.llm.services import (
    LlamaLLMService,
    MockLLMService,
    OpenAILLMService,
)
from reader_reports.infrastructure.reference.loader import ReferenceData
from reader_reports.services.analysis import WeeklyAnalysisService
from reader_reports.services.batch import WeeklyReportBatchRunner
from reader_reports.services.promo import LinkGenerator, PromoAssigner
from reader_reports.services.recommendation import RecommendationMatcher
from reader_reports.services.report_service import WeeklyReportService


# ---------------------------------------------------------------------------
# Infrastructure providers
# ---------------------------------------------------------------------------
def get_llm_service(settings: Settings) -> ILLMService:
    """Return the configured LLM provider."""
    if settings.llm_provider == "mock":
        return MockLLMService()
    elif settings.llm_provider == "llama":
        return LlamaLLMService(
            base_url=settings.llm_base_url,
            model=settings.llm_model,
            timeout=settings.llm_timeout_seconds,
        )
    elif settings.llm_provider == "openai":
        return OpenAILLMService(
            api_key=settings.llm_api_key,
            model=settings.openai_model,
            timeout=settings.llm_timeout_seconds,
        )
    raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")


def get_business_calendar(settings: Settings) -> BusinessCalendar:
    return BusinessCalendar(offset_minutes=settings.business_tz_offset_min)


# ---------------------------------------------------------------------------
# Service construction
# ---------------------------------------------------------------------------
def build_report_service(
    settings: Settings,
    reference: ReferenceData,
    llm_service: Optional[ILLMService] = None,
    calendar: Optional[BusinessCalendar] = None,
    report_repository: Optional[IWeeklyReportRepository] = None,
) -> WeeklyReportService:
    calendar = calendar or get_business_calendar(settings)
    link_generator = LinkGenerator(
        template_repository=reference.utm_templates,
        base_url=settings.fallback_link_base_url,
    )
    return WeeklyReportService(
        calendar=calendar,
        analysis_service=WeeklyAnalysisService(
            llm_service=llm_service or get_llm_service(settings),
            timeout=settings.llm_timeout_seconds,
        ),
        recommendation_matcher=RecommendationMatcher(
            catalog_repository=reference.catalog,
            link_generator=link_generator,
            max_results=settings.max_recommendations,
            link_context=settings.promo_context,
        ),
        promo_assigner=PromoAssigner(
            promo_repository=reference.promo_codes,
            fallback_codes=settings.fallback_promo_codes,
            fallback_discount=settings.fallback_promo_discount,
            fallback_valid_days=settings.fallback_promo_valid_days,
            clock=calendar.business_now,
        ),
        catalog_repository=reference.catalog,
        report_repository=report_repository,
        target_quotes=settings.target_quotes,
        target_days=settings.target_days,
        promo_context=settings.promo_context,
    )


def build_batch_runner(
    settings: Settings,
    reference: ReferenceData,
    quote_repository: IQuoteRepository,
    profile_repository: IUserProfileRepository,
    report_repository: IWeeklyReportRepository,
    llm_service: Optional[ILLMService] = None,
    calendar: Optional[BusinessCalendar] = None,
) -> WeeklyReportBatchRunner:
    """Batch runner sharing one report service across all users of a week."""
    calendar = calendar or get_business_calendar(settings)
    report_service = build_report_service(
        settings, reference, llm_service, calendar, report_repository
    )
    return WeeklyReportBatchRunner(
        report_service=report_service,
        quote_repository=quote_repository,
        profile_repository=profile_repository,
        report_repository=report_repository,
        calendar=calendar,
        concurrency=settings.batch_concurrency,
        lookback_weeks=settings.catchup_lookback_weeks,
    )


# ---------------------------------------------------------------------------
# FastAPI providers
# ---------------------------------------------------------------------------
def get_app_settings() -> Settings:
    return get_settings()


def get_reference_data(request: Request) -> ReferenceData:
    """Reference data loaded during the application lifespan."""
    return getattr(request.app.state, "reference_data", None) or ReferenceData()


def get_calendar(settings: Settings = Depends(get_app_settings)) -> BusinessCalendar:
    return get_business_calendar(settings)


def get_report_service(
    settings: Settings = Depends(get_app_settings),
    reference: ReferenceData = Depends(get_reference_data),
    calendar: BusinessCalendar = Depends(get_calendar),
) -> IWeeklyReportService:
    return build_report_service(settings, reference, calendar=calendar)
