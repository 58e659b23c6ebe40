"""Domain-level application service interfaces (ports).

Concrete implementations live in ``reader_reports/services/`` and are wired
together by the composition root in ``reader_reports/core/dependencies.py``.
Route handlers and the batch runner depend on these contracts only.
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional, Union

from reader_reports.domain.entities import IsoWeek, Quote, UserProfile, WeeklyReport, WeekRange

WeekMeta = Union[WeekRange, IsoWeek, Mapping[str, int]]


class IWeeklyReportService(ABC):

    @abstractmethod
    async def generate(
        self,
        user_id: str,
        quotes: list[Quote],
        user_profile: UserProfile,
        week_meta: Optional[WeekMeta] = None,
    ) -> WeeklyReport:
        """Assemble the weekly report for one user.

        ``week_meta`` selects the report week (``iso_week``/``iso_year``);
        without it the previous complete business week is used.  Only
        ``MissingWeekMetadataError`` is raised; every other failure degrades
        to fallback content.
        """
        pass
