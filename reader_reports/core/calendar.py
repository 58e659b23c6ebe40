"""ISO-8601 week arithmetic in the operator's business timezone.

The business timezone is a fixed UTC offset in minutes (default UTC+3), so
week boundaries never depend on the host's TZ configuration.

Aware datetimes are converted into business time before their calendar date
is taken; naive datetimes and plain ``date`` objects are treated as business
wall-clock values already.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Iterator, Optional, Union

from reader_reports.core.config import MAX_TZ_OFFSET_MIN, MIN_TZ_OFFSET_MIN
from reader_reports.core.constants import RUSSIAN_MONTHS_GENITIVE
from reader_reports.domain.entities import IsoWeek, WeekRange

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]

# A week becomes eligible for reporting one day after it ends.
WEEK_COMPLETION_GRACE = timedelta(days=1)


def _utc_clock() -> datetime:
    return datetime.now(timezone.utc)


class BusinessCalendar:
    """Business-timezone clock plus ISO week conversions."""

    def __init__(
        self,
        offset_minutes: int = 180,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not MIN_TZ_OFFSET_MIN <= offset_minutes <= MAX_TZ_OFFSET_MIN:
            raise ValueError(f"Invalid business timezone offset: {offset_minutes} minutes")
        self.offset_minutes = offset_minutes
        self.tz = timezone(timedelta(minutes=offset_minutes))
        self._clock = clock or _utc_clock

    # -- clock ---------------------------------------------------------------

    def business_now(self) -> datetime:
        """Current instant expressed in the business timezone."""
        return self.to_business_time(self._clock())

    def to_business_time(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self.tz)
        return moment.astimezone(self.tz)

    def business_date(self, value: DateLike) -> date:
        if isinstance(value, datetime):
            return self.to_business_time(value).date()
        return value

    # -- ISO weeks -----------------------------------------------------------

    def iso_week_info(self, value: Optional[DateLike] = None) -> IsoWeek:
        """ISO week and ISO year of ``value`` (business now by default).

        The date is moved to the Thursday of its Monday-based week; that
        Thursday's calendar year is the ISO year and its ordinal day gives the
        week number.
        """
        day = self.business_date(value if value is not None else self.business_now())
        thursday = day + timedelta(days=3 - day.weekday())
        iso_week = (thursday.timetuple().tm_yday - 1) // 7 + 1
        return IsoWeek(iso_week=iso_week, iso_year=thursday.year)

    @staticmethod
    def weeks_in_iso_year(iso_year: int) -> int:
        """53 if January 1 or December 31 falls on a Thursday, else 52."""
        jan1 = date(iso_year, 1, 1).weekday()
        dec31 = date(iso_year, 12, 31).weekday()
        return 53 if 3 in (jan1, dec31) else 52

    def iso_week_range(self, iso_week: int, iso_year: int) -> WeekRange:
        weeks = self.weeks_in_iso_year(iso_year)
        if not 1 <= iso_week <= weeks:
            raise ValueError(f"ISO year {iso_year} has weeks 1..{weeks}, got {iso_week}")

        jan4 = date(iso_year, 1, 4)  # always inside week 1
        week1_monday = jan4 - timedelta(days=jan4.weekday())
        monday = week1_monday + timedelta(weeks=iso_week - 1)
        sunday = monday + timedelta(days=6)

        start = datetime.combine(monday, time.min, tzinfo=self.tz)
        end = datetime.combine(sunday, time(23, 59, 59, 999000), tzinfo=self.tz)
        return WeekRange(iso_week=iso_week, iso_year=iso_year, start=start, end=end)

    def previous_week(self, iso_week: int, iso_year: int) -> IsoWeek:
        if iso_week > 1:
            return IsoWeek(iso_week=iso_week - 1, iso_year=iso_year)
        prev_year = iso_year - 1
        return IsoWeek(iso_week=self.weeks_in_iso_year(prev_year), iso_year=prev_year)

    def previous_complete_week(self) -> WeekRange:
        current = self.iso_week_info(self.business_now())
        prev = self.previous_week(current.iso_week, current.iso_year)
        return self.iso_week_range(prev.iso_week, prev.iso_year)

    def recent_weeks(self, count: int, now: Optional[datetime] = None) -> Iterator[WeekRange]:
        """The ``count`` weeks before the current one, most recent first."""
        current = self.iso_week_info(now if now is not None else self.business_now())
        week = current
        for _ in range(count):
            week = self.previous_week(week.iso_week, week.iso_year)
            yield self.iso_week_range(week.iso_week, week.iso_year)

    def is_week_complete(self, week_range: WeekRange, now: Optional[datetime] = None) -> bool:
        now = self.to_business_time(now) if now is not None else self.business_now()
        return now >= week_range.end + WEEK_COMPLETION_GRACE

    # -- formatting ----------------------------------------------------------

    def week_key(self, value: Optional[DateLike] = None) -> str:
        info = self.iso_week_info(value)
        return f"{info.iso_year}-W{info.iso_week:02d}"

    def format_week_label(self, iso_week: int, iso_year: int) -> str:
        """Human label such as ``"6-12 января 2025"``."""
        week = self.iso_week_range(iso_week, iso_year)
        start, end = week.start, week.end
        start_month = RUSSIAN_MONTHS_GENITIVE[start.month - 1]
        end_month = RUSSIAN_MONTHS_GENITIVE[end.month - 1]

        if start.year != end.year:
            return f"{start.day} {start_month} {start.year} - {end.day} {end_month} {end.year}"
        if start.month != end.month:
            return f"{start.day} {start_month} - {end.day} {end_month} {start.year}"
        return f"{start.day}-{end.day} {start_month} {start.year}"
