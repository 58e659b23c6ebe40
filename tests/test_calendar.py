"""Tests for ISO week arithmetic in the business timezone."""

from datetime import date, datetime, timedelta, timezone

import pytest

from reader_reports.core.calendar import BusinessCalendar
from reader_reports.domain.entities import IsoWeek
from tests.helpers import fixed_clock

MSK = timezone(timedelta(hours=3))


class TestIsoWeekInfo:
    def test_late_december_belongs_to_next_iso_year(self, calendar):
        assert calendar.iso_week_info(date(2024, 12, 30)) == IsoWeek(1, 2025)

    def test_early_january_belongs_to_previous_iso_year(self, calendar):
        assert calendar.iso_week_info(date(2021, 1, 3)) == IsoWeek(53, 2020)

    def test_utc_timestamp_is_read_in_business_time(self, calendar):
        # Sunday 21:30 UTC is already Monday 00:30 in UTC+3.
        moment = datetime(2025, 1, 5, 21, 30, tzinfo=timezone.utc)
        assert calendar.iso_week_info(moment) == IsoWeek(2, 2025)

    def test_same_instant_differs_by_offset(self):
        moment = datetime(2025, 1, 5, 21, 30, tzinfo=timezone.utc)
        utc_calendar = BusinessCalendar(offset_minutes=0)
        assert utc_calendar.iso_week_info(moment) == IsoWeek(1, 2025)

    def test_naive_datetime_is_business_local(self, calendar):
        assert calendar.iso_week_info(datetime(2025, 1, 5, 23, 59)) == IsoWeek(1, 2025)

    def test_defaults_to_business_now(self, calendar):
        assert calendar.iso_week_info() == IsoWeek(3, 2025)

    def test_week_key(self, calendar):
        assert calendar.week_key(date(2025, 1, 6)) == "2025-W02"


class TestWeeksInYear:
    @pytest.mark.parametrize("year, weeks", [(2020, 53), (2026, 53), (2024, 52), (2025, 52)])
    def test_weeks_in_iso_year(self, year, weeks):
        assert BusinessCalendar.weeks_in_iso_year(year) == weeks


class TestIsoWeekRange:
    def test_first_week_starts_in_previous_calendar_year(self, calendar):
        week = calendar.iso_week_range(1, 2025)
        assert week.start == datetime(2024, 12, 30, 0, 0, tzinfo=MSK)
        assert week.end == datetime(2025, 1, 5, 23, 59, 59, 999000, tzinfo=MSK)

    def test_range_and_info_agree_for_every_week(self, calendar):
        for year in (2020, 2025):
            for week_no in range(1, calendar.weeks_in_iso_year(year) + 1):
                week = calendar.iso_week_range(week_no, year)
                assert calendar.iso_week_info(week.start) == IsoWeek(week_no, year)
                assert calendar.iso_week_info(week.end) == IsoWeek(week_no, year)

    def test_week_53_only_in_long_years(self, calendar):
        assert calendar.iso_week_range(53, 2026).iso_week == 53
        with pytest.raises(ValueError):
            calendar.iso_week_range(53, 2025)

    def test_week_zero_is_rejected(self, calendar):
        with pytest.raises(ValueError):
            calendar.iso_week_range(0, 2025)

    def test_contains(self, calendar):
        week = calendar.iso_week_range(2, 2025)
        assert week.contains(datetime(2025, 1, 6, 0, 0, tzinfo=MSK))
        assert not week.contains(datetime(2025, 1, 13, 0, 0, tzinfo=MSK))


class TestPreviousWeek:
    def test_previous_week_in_same_year(self, calendar):
        assert calendar.previous_week(10, 2025) == IsoWeek(9, 2025)

    def test_rollover_to_52_week_year(self, calendar):
        assert calendar.previous_week(1, 2026) == IsoWeek(52, 2025)

    def test_rollover_to_53_week_year(self, calendar):
        assert calendar.previous_week(1, 2021) == IsoWeek(53, 2020)

    def test_previous_complete_week(self, calendar):
        week = calendar.previous_complete_week()
        assert (week.iso_week, week.iso_year) == (2, 2025)

    def test_previous_complete_week_from_first_week(self):
        calendar = BusinessCalendar(
            clock=fixed_clock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))
        )
        week = calendar.previous_complete_week()
        assert (week.iso_week, week.iso_year) == (52, 2025)

    def test_recent_weeks_most_recent_first(self, calendar):
        weeks = [(w.iso_week, w.iso_year) for w in calendar.recent_weeks(3)]
        assert weeks == [(2, 2025), (1, 2025), (52, 2024)]


class TestWeekCompletion:
    def test_week_is_not_complete_on_the_following_monday(self, calendar):
        week = calendar.iso_week_range(1, 2025)
        assert not calendar.is_week_complete(week, datetime(2025, 1, 6, 12, 0, tzinfo=MSK))

    def test_week_is_complete_a_day_after_it_ends(self, calendar):
        week = calendar.iso_week_range(1, 2025)
        assert calendar.is_week_complete(week, datetime(2025, 1, 7, 0, 0, tzinfo=MSK))


class TestLabels:
    def test_label_within_one_month(self, calendar):
        assert calendar.format_week_label(2, 2025) == "6-12 января 2025"

    def test_label_across_months(self, calendar):
        assert calendar.format_week_label(5, 2025) == "27 января - 2 февраля 2025"

    def test_label_across_years(self, calendar):
        assert calendar.format_week_label(1, 2025) == "30 декабря 2024 - 5 января 2025"


class TestOffsetValidation:
    @pytest.mark.parametrize("offset", [-721, 841, 10_000])
    def test_out_of_range_offset_is_rejected(self, offset):
        with pytest.raises(ValueError):
            BusinessCalendar(offset_minutes=offset)

    def test_business_now_uses_offset(self, calendar):
        now = calendar.business_now()
        assert now.utcoffset() == timedelta(hours=3)
        assert now.hour == 13
