"""JSON-file store for the user data processed by batch jobs.

Expected document shape::

    {
      "quotes": [{"id": "q1", "user_id": "u1", "text": ..., "category": "ЛЮБОВЬ",
                  "created_at": "2025-01-07T09:00:00+00:00",
                  "week_number": 2, "year_number": 2025}],
      "profiles": [{"user_id": "u1", "name": "Мария", "test_results": {...}}],
      "reports": [<weekly report>]
    }

A job reads the whole document into in-memory repositories and writes it
back once it is done, so generated reports and restamped quotes persist.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles
from pydantic import TypeAdapter

from reader_reports.domain.entities import Quote, UserProfile, WeeklyReport
from reader_reports.infrastructure.reference.memory import (
    InMemoryQuoteRepository,
    InMemoryUserProfileRepository,
    InMemoryWeeklyReportRepository,
)

logger = logging.getLogger(__name__)

_QUOTES = TypeAdapter(list[Quote])
_PROFILES = TypeAdapter(list[UserProfile])
_REPORTS = TypeAdapter(list[WeeklyReport])


@dataclass
class UserDataStore:
    quotes: InMemoryQuoteRepository = field(default_factory=InMemoryQuoteRepository)
    profiles: InMemoryUserProfileRepository = field(default_factory=InMemoryUserProfileRepository)
    reports: InMemoryWeeklyReportRepository = field(default_factory=InMemoryWeeklyReportRepository)


def parse_user_data(document: dict) -> UserDataStore:
    quotes = _QUOTES.validate_python(document.get("quotes") or [])
    profiles = _PROFILES.validate_python(document.get("profiles") or [])
    reports = _REPORTS.validate_python(document.get("reports") or [])
    logger.info(
        "Loaded %d quotes, %d profiles and %d reports", len(quotes), len(profiles), len(reports)
    )
    return UserDataStore(
        quotes=InMemoryQuoteRepository(quotes),
        profiles=InMemoryUserProfileRepository(profiles),
        reports=InMemoryWeeklyReportRepository(reports),
    )


def dump_user_data(store: UserDataStore) -> dict:
    return {
        "quotes": _QUOTES.dump_python(store.quotes.all(), mode="json"),
        "profiles": _PROFILES.dump_python(store.profiles.all(), mode="json"),
        "reports": _REPORTS.dump_python(store.reports.all(), mode="json"),
    }


async def load_user_data(path: str) -> UserDataStore:
    """Read the store at ``path``; an empty path yields an empty store."""
    if not path:
        logger.warning("No user data store configured; batch jobs have nothing to process")
        return UserDataStore()
    file_path = Path(path)
    try:
        async with aiofiles.open(file_path, "r", encoding="utf-8") as f:
            content = await f.read()
    except FileNotFoundError:
        logger.error("User data store not found: %s", file_path)
        raise
    return parse_user_data(json.loads(content))


async def save_user_data(path: str, store: UserDataStore) -> None:
    if not path:
        return
    content = json.dumps(dump_user_data(store), ensure_ascii=False, indent=2)
    async with aiofiles.open(Path(path), "w", encoding="utf-8") as f:
        await f.write(content)
    logger.info("User data store written to %s", path)
