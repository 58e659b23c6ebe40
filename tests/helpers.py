"""Test doubles and builders shared across test modules."""

import json
from datetime import datetime, timezone

from reader_reports.domain.entities import Quote
from reader_reports.domain.repositories import ILLMService

# Wednesday of ISO week 3/2025 (13:00 in UTC+3).
FIXED_NOW = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc)


def fixed_clock(moment: datetime = FIXED_NOW):
    return lambda: moment


def make_quote(text, created_at, user_id="u1", author=None, category="ПОИСК СЕБЯ", id=None):
    return Quote(
        id=id,
        user_id=user_id,
        text=text,
        author=author,
        category=category,
        created_at=created_at,
    )


class StaticLLM(ILLMService):
    """Answers every prompt with the same text and remembers the prompts."""

    def __init__(self, response: str):
        self.response = response
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.response


class FailingLLM(ILLMService):
    def __init__(self, exc: Exception = None):
        self.exc = exc or RuntimeError("provider down")
        self.calls = 0

    async def complete(self, prompt: str) -> str:
        self.calls += 1
        raise self.exc


def analysis_json(**overrides) -> str:
    payload = {
        "summary": "Неделя тишины и внимания к себе",
        "dominantThemes": ["любовь", "счастье"],
        "emotionalTone": "задумчивый",
        "insights": "Вы много думаете о близких людях и о том, что делает вас счастливой.",
        "personalGrowth": "Больше бережности к себе.",
    }
    payload.update(overrides)
    return json.dumps(payload, ensure_ascii=False)
