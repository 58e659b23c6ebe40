"""Repository interfaces (ports) for dependency inversion.

Persistence, catalog storage and the AI provider live outside the report
pipeline; the pipeline only sees these contracts.
"""

from abc import ABC, abstractmethod
from typing import Optional

from reader_reports.domain.entities import (
    CatalogEntry,
    PromoCode,
    Quote,
    UserProfile,
    UtmTemplate,
    WeeklyReport,
)


class ILLMService(ABC):

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send a single user-role prompt and return the raw model text.

        Implementations raise ``AIUnavailableError`` on transport, auth or
        provider failures.
        """
        pass


class ICatalogRepository(ABC):

    @abstractmethod
    async def find_active_by_themes(self, themes: list[str], limit: int = 2) -> list[CatalogEntry]:
        """Active entries whose categories or target themes intersect ``themes``."""
        pass

    @abstractmethod
    async def find_universal(self, limit: int = 2) -> list[CatalogEntry]:
        """Active entries flagged for general recommendation."""
        pass

    @abstractmethod
    async def list_target_themes(self) -> list[str]:
        """All free-text target themes of active entries (theme-mining corpus)."""
        pass


class IPromoCodeRepository(ABC):

    @abstractmethod
    async def random_active_for_context(self, context: str) -> Optional[PromoCode]:
        pass


class IUtmTemplateRepository(ABC):

    @abstractmethod
    async def templates_for_context(self, context: str) -> list[UtmTemplate]:
        pass


class IWeeklyReportRepository(ABC):

    @abstractmethod
    async def find_by_user_week(
        self, user_id: str, iso_week: int, iso_year: int
    ) -> Optional[WeeklyReport]:
        pass

    @abstractmethod
    async def save(self, report: WeeklyReport) -> WeeklyReport:
        pass

    @abstractmethod
    async def user_ids_with_reports(self, iso_week: int, iso_year: int) -> set[str]:
        pass


class IQuoteRepository(ABC):

    @abstractmethod
    async def get_weekly_quotes(self, user_id: str, iso_week: int, iso_year: int) -> list[Quote]:
        pass

    @abstractmethod
    async def user_ids_for_week(self, iso_week: int, iso_year: int) -> set[str]:
        """Users that have at least one quote in the given week."""
        pass

    @abstractmethod
    async def list_quotes(self, skip: int = 0, limit: int = 500) -> list[Quote]:
        pass

    @abstractmethod
    async def update_week_fields(self, quote_id: str, week_number: int, year_number: int) -> None:
        pass


class IUserProfileRepository(ABC):

    @abstractmethod
    async def get_by_user_id(self, user_id: str) -> Optional[UserProfile]:
        pass
