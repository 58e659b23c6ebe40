"""Load read-only reference data (catalog, promo codes, UTM templates) from JSON.

Expected document shape::

    {
      "catalog": [{"title": ..., "book_slug": ..., "target_themes": [...], ...}],
      "promo_codes": [{"code": "READER20", "discount": 20,
                       "valid_until": "2026-12-31T00:00:00+00:00",
                       "usage_contexts": ["weekly_report"]}],
      "utm_templates": [{"name": ..., "context": "weekly_report", "base_url": ...,
                         "utm_source": ..., "utm_medium": ..., "utm_campaign": ...}]
    }

Every section is optional.  A missing section leaves the matching repository
unset so the pipeline uses its static fallbacks.
"""

import json
import logging
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiofiles

from reader_reports.domain.entities import CatalogEntry, PromoCode, UtmTemplate
from reader_reports.infrastructure.reference.memory import (
    InMemoryCatalogRepository,
    InMemoryPromoCodeRepository,
    InMemoryUtmTemplateRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class ReferenceData:
    catalog: Optional[InMemoryCatalogRepository] = None
    promo_codes: Optional[InMemoryPromoCodeRepository] = None
    utm_templates: Optional[InMemoryUtmTemplateRepository] = None


def _known_fields(cls, raw: dict) -> dict:
    names = {f.name for f in fields(cls)}
    unknown = set(raw) - names
    if unknown:
        logger.debug("Ignoring unknown %s fields: %s", cls.__name__, sorted(unknown))
    return {key: value for key, value in raw.items() if key in names}


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _promo_from_dict(raw: dict) -> PromoCode:
    data = _known_fields(PromoCode, raw)
    data["valid_until"] = _parse_datetime(data.get("valid_until"))
    data["valid_from"] = _parse_datetime(data.get("valid_from"))
    return PromoCode(**data)


def parse_reference_data(document: dict) -> ReferenceData:
    data = ReferenceData()
    if "catalog" in document:
        entries = [CatalogEntry(**_known_fields(CatalogEntry, row)) for row in document["catalog"]]
        data.catalog = InMemoryCatalogRepository(entries)
        logger.info("Loaded %d catalog entries", len(entries))
    if "promo_codes" in document:
        promos = [_promo_from_dict(row) for row in document["promo_codes"]]
        data.promo_codes = InMemoryPromoCodeRepository(promos)
        logger.info("Loaded %d promo codes", len(promos))
    if "utm_templates" in document:
        templates = [UtmTemplate(**_known_fields(UtmTemplate, row)) for row in document["utm_templates"]]
        data.utm_templates = InMemoryUtmTemplateRepository(templates)
        logger.info("Loaded %d UTM templates", len(templates))
    return data


async def load_reference_data(path: str) -> ReferenceData:
    """Read reference data from ``path``; an empty path yields no repositories."""
    if not path:
        logger.info("No reference data configured; static fallbacks will be used")
        return ReferenceData()
    file_path = Path(path)
    try:
        async with aiofiles.open(file_path, "r", encoding="utf-8") as f:
            content = await f.read()
    except FileNotFoundError:
        logger.error("Reference data file not found: %s", file_path)
        raise
    return parse_reference_data(json.loads(content))
