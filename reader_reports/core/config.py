"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings

# Real-world UTC offsets range from UTC-12:00 to UTC+14:00.
MIN_TZ_OFFSET_MIN = -12 * 60
MAX_TZ_OFFSET_MIN = 14 * 60


class Settings(BaseSettings):
    """Application settings."""

    business_tz_offset_min: int = 180  # Europe/Moscow, UTC+3
    llm_provider: Literal["mock", "llama", "openai"] = "mock"
    llm_base_url: str = "http://localhost:11434"  # Ollama endpoint
    llm_model: str = "llama3"  # Ollama model tag
    llm_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 60.0
    reference_data_path: str = ""  # JSON file with catalog, promo codes, UTM templates
    data_store_path: str = ""  # JSON file with quotes, profiles and reports for batch jobs
    redis_url: str = "redis://localhost:6379/0"  # Celery broker and result backend
    target_quotes: int = 30
    target_days: int = 7
    max_recommendations: int = 2
    promo_context: str = "weekly_report"
    fallback_promo_codes: list[str] = ["READER20", "WISDOM20", "QUOTES20", "BOOKS20"]
    fallback_promo_discount: int = 20
    fallback_promo_valid_days: int = 3
    fallback_link_base_url: str = "https://anna-busel.com/books"
    catchup_lookback_weeks: int = 8
    batch_concurrency: int = 1
    backfill_batch_size: int = 500
    log_level: str = "INFO"

    model_config = {"env_file": ".env"}

    @field_validator("business_tz_offset_min")
    @classmethod
    def _check_tz_offset(cls, value: int) -> int:
        if not MIN_TZ_OFFSET_MIN <= value <= MAX_TZ_OFFSET_MIN:
            raise ValueError(
                f"business_tz_offset_min must be within "
                f"[{MIN_TZ_OFFSET_MIN}, {MAX_TZ_OFFSET_MIN}], got {value}"
            )
        return value

    @field_validator(
        "target_quotes", "target_days", "max_recommendations", "batch_concurrency", "backfill_batch_size"
    )
    @classmethod
    def _check_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("fallback_promo_codes")
    @classmethod
    def _check_codes(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one fallback promo code is required")
        return value


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
