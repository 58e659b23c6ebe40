"""Resilient extraction of a weekly analysis from free-text model output.

Model output is untrusted: it may be fenced in markdown, preceded by prose,
truncated, or not JSON at all.  Parsing is an ordered chain of pure
functions, first hit wins:

  1. strict   -- strip code fences, decode the whole text as JSON
  2. salvage  -- decode the outermost ``{ ... }`` substring
  3. regex    -- scrape labelled fields; never fails, unmatched fields get
                generic placeholders

The returned candidate may still lack content (e.g. valid JSON with no
``summary``); validation is the analysis service's concern.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

PLACEHOLDER_SUMMARY = "Неделя размышлений над цитатами, которые откликнулись именно вам"
PLACEHOLDER_INSIGHTS = (
    "Ваши цитаты показывают стремление к рефлексии и поиску смысла. "
    "Продолжайте собирать слова, которые помогают лучше понять себя."
)
PLACEHOLDER_TONE = "размышляющий"


@dataclass
class AnalysisCandidate:
    """Possibly partial analysis recovered from a model response."""

    summary: str = ""
    insights: str = ""
    dominant_themes: list[str] = field(default_factory=list)
    emotional_tone: str = ""
    personal_growth: str = ""
    tier: str = ""

    def missing_fields(self) -> list[str]:
        return [name for name in ("summary", "insights") if not getattr(self, name).strip()]


# ======================================================================
# Helpers
# ======================================================================
_FENCE_RE = re.compile(r"^\s*```[\w-]*[ \t]*\n?|\n?[ \t]*```\s*$")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return " ".join(_as_text(v) for v in value).strip()
    return str(value).strip()


def _as_themes(value) -> list[str]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = value
    else:
        return []
    themes = []
    for item in items:
        theme = _as_text(item).strip("\"' ")
        if theme and theme not in themes:
            themes.append(theme)
    return themes


def _first(data: dict, *keys):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def candidate_from_mapping(data: dict, tier: str) -> AnalysisCandidate:
    """Map camelCase or snake_case keys onto a candidate."""
    return AnalysisCandidate(
        summary=_as_text(_first(data, "summary")),
        insights=_as_text(_first(data, "insights")),
        dominant_themes=_as_themes(_first(data, "dominantThemes", "dominant_themes", "themes")),
        emotional_tone=_as_text(_first(data, "emotionalTone", "emotional_tone", "tone")),
        personal_growth=_as_text(_first(data, "personalGrowth", "personal_growth")),
        tier=tier,
    )


def _loads_object(text: str) -> Optional[dict]:
    try:
        # strict=False tolerates raw newlines inside strings, common in model output
        data = json.loads(text, strict=False)
    except (ValueError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


# ======================================================================
# Tier 1 -- strict JSON
# ======================================================================
def parse_strict_json(text: str) -> Optional[AnalysisCandidate]:
    cleaned = strip_code_fences(text)
    if not cleaned:
        return None
    data = _loads_object(cleaned)
    return candidate_from_mapping(data, "strict") if data is not None else None


# ======================================================================
# Tier 2 -- JSON object embedded in prose
# ======================================================================
def parse_embedded_json(text: str) -> Optional[AnalysisCandidate]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    data = _loads_object(text[start:end + 1])
    return candidate_from_mapping(data, "salvage") if data is not None else None


# ======================================================================
# Tier 3 -- labelled field scraping
# ======================================================================
_FIELD_LABELS = {
    "summary": ("summary", "резюме", "итог недели", "краткий анализ"),
    "insights": ("insights", "инсайты", "выводы", "психологический анализ"),
    "emotional_tone": ("emotionalTone", "emotional_tone", "эмоциональный тон", "tone", "тон"),
    "personal_growth": ("personalGrowth", "personal_growth", "личностный рост"),
}

_THEMES_LABELS = ("dominantThemes", "dominant_themes", "темы", "themes")


def _label_pattern(labels: tuple[str, ...]) -> re.Pattern:
    alternatives = "|".join(re.escape(label) for label in labels)
    return re.compile(
        r"(?<!\w)[\"']?(?:" + alternatives + r")[\"']?\s*[:=]\s*"
        r"(?:\"((?:[^\"\\]|\\.)*)\"|([^\n]+))",
        re.IGNORECASE,
    )


_FIELD_PATTERNS = {name: _label_pattern(labels) for name, labels in _FIELD_LABELS.items()}

_THEMES_PATTERN = re.compile(
    r"(?<!\w)[\"']?(?:" + "|".join(_THEMES_LABELS) + r")[\"']?\s*[:=]\s*"
    r"(?:\[([^\]]*)\]|([^\n]+))",
    re.IGNORECASE,
)


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"')
    except ValueError:
        return value


def _scrape(pattern: re.Pattern, text: str) -> str:
    match = pattern.search(text)
    if not match:
        return ""
    quoted, bare = match.groups()
    if quoted is not None:
        return _unescape(quoted).strip()
    return bare.strip().rstrip(",").strip("\"' ")


def scrape_labeled_fields(text: str) -> AnalysisCandidate:
    values = {name: _scrape(pattern, text) for name, pattern in _FIELD_PATTERNS.items()}

    themes: list[str] = []
    match = _THEMES_PATTERN.search(text)
    if match:
        themes = _as_themes(match.group(1) if match.group(1) is not None else match.group(2))

    return AnalysisCandidate(
        summary=values["summary"] or PLACEHOLDER_SUMMARY,
        insights=values["insights"] or PLACEHOLDER_INSIGHTS,
        dominant_themes=themes,
        emotional_tone=values["emotional_tone"] or PLACEHOLDER_TONE,
        personal_growth=values["personal_growth"],
        tier="regex",
    )


ParserFn = Callable[[str], Optional[AnalysisCandidate]]

PARSER_CHAIN: tuple[tuple[str, ParserFn], ...] = (
    ("strict", parse_strict_json),
    ("salvage", parse_embedded_json),
    ("regex", scrape_labeled_fields),
)


class ResponseParser:
    """Runs :data:`PARSER_CHAIN` over raw model output."""

    def __init__(self, chain: tuple[tuple[str, ParserFn], ...] = PARSER_CHAIN):
        self.chain = chain

    def parse(self, raw_text: Optional[str]) -> AnalysisCandidate:
        text = raw_text or ""
        for tier, parser in self.chain:
            try:
                candidate = parser(text)
            except Exception as exc:
                logger.warning("Parser tier %s failed on AI response: %r", tier, exc)
                continue
            if candidate is not None:
                logger.info("AI response parsed by %s tier (%d chars)", tier, len(text))
                return candidate
        # Only reachable with a custom chain lacking a total final tier.
        logger.warning("No parser tier accepted the AI response; using placeholders")
        return scrape_labeled_fields("")
