"""Shared fixtures for the weekly report tests."""

from datetime import datetime, timezone

import pytest

from reader_reports.core.calendar import BusinessCalendar
from reader_reports.domain.entities import UserProfile
from tests.helpers import fixed_clock, make_quote


@pytest.fixture
def calendar():
    return BusinessCalendar(offset_minutes=180, clock=fixed_clock())


@pytest.fixture
def profile():
    return UserProfile(user_id="u1", name="Мария", test_results={"name": "Мария"})


@pytest.fixture
def week2_quotes():
    """Two quotes inside ISO week 2/2025 and one from week 4."""
    return [
        make_quote(
            "Любовь терпелива и милосердна",
            datetime(2025, 1, 7, 9, 0, tzinfo=timezone.utc),
            author="Апостол Павел",
            category="ЛЮБОВЬ",
            id="q1",
        ),
        make_quote(
            "Счастье любит тишину",
            datetime(2025, 1, 8, 18, 30, tzinfo=timezone.utc),
            category="СЧАСТЬЕ",
            id="q2",
        ),
        make_quote(
            "Время лечит",
            datetime(2025, 1, 20, 12, 0, tzinfo=timezone.utc),
            id="q3",
        ),
    ]
