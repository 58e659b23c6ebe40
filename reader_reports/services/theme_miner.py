"""Secondary-theme mining from catalog free-text tags.

A catalog tag is a secondary theme of the week when it literally occurs in
the week's quotes often enough.  Canonical categories are excluded: they are
already covered by the analysis' dominant themes.
"""

import logging
from collections import Counter
from typing import Iterable

from reader_reports.core.constants import CANONICAL_CATEGORIES
from reader_reports.domain.entities import Quote

logger = logging.getLogger(__name__)

MIN_THEME_LENGTH = 4
MAX_SECONDARY_THEMES = 5
# Weeks with more quotes than this require a theme to appear at least twice.
DENSE_WEEK_QUOTES = 15


def min_frequency(quote_count: int) -> int:
    return 2 if quote_count > DENSE_WEEK_QUOTES else 1


def mine_secondary_themes(
    quotes: list[Quote],
    catalog_target_themes: Iterable[str],
    canonical_category_keys: Iterable[str] = CANONICAL_CATEGORIES,
) -> list[str]:
    if not quotes:
        return []

    candidates = sorted({
        theme.strip().lower()
        for theme in catalog_target_themes
        if theme and len(theme.strip()) >= MIN_THEME_LENGTH
    })
    if not candidates:
        return []

    canonical = {key.upper() for key in canonical_category_keys}
    candidates = [theme for theme in candidates if theme.upper() not in canonical]

    frequency: Counter = Counter()
    for quote in quotes:
        text = (quote.text or "").lower()
        for theme in candidates:
            if theme in text:
                frequency[theme] += 1

    threshold = min_frequency(len(quotes))
    ranked = sorted(
        ((theme, count) for theme, count in frequency.items() if count >= threshold),
        key=lambda item: (-item[1], item[0]),
    )
    themes = [theme for theme, _ in ranked[:MAX_SECONDARY_THEMES]]
    logger.debug(
        "Mined %d secondary themes from %d candidates (threshold %d)",
        len(themes), len(candidates), threshold,
    )
    return themes
