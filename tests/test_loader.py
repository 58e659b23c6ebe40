"""Tests for reference data loading."""

import json
from datetime import timezone

import pytest

from reader_reports.infrastructure.reference.loader import load_reference_data, parse_reference_data

DOCUMENT = {
    "catalog": [
        {
            "title": "Искусство любить",
            "author": "Эрих Фромм",
            "description": "О любви",
            "book_slug": "art_of_loving",
            "categories": ["ЛЮБОВЬ"],
            "target_themes": ["любовь"],
            "price": "$8",
            "legacy_field": "ignored",
        },
        {
            "title": "Быть собой",
            "description": "О самопринятии",
            "book_slug": "be_yourself",
            "is_universal": True,
        },
    ],
    "promo_codes": [
        {
            "code": "READER20",
            "discount": 20,
            "valid_until": "2099-12-31T00:00:00",
            "usage_contexts": ["weekly_report"],
        },
    ],
    "utm_templates": [
        {
            "name": "weekly",
            "context": "weekly_report",
            "base_url": "https://example.com/books",
            "utm_source": "bot",
            "utm_medium": "telegram",
            "utm_campaign": "weekly",
        },
    ],
}


class TestReferenceLoader:
    @pytest.mark.asyncio
    async def test_load_from_file(self, tmp_path):
        path = tmp_path / "reference.json"
        path.write_text(json.dumps(DOCUMENT, ensure_ascii=False), encoding="utf-8")

        data = await load_reference_data(str(path))

        universal = await data.catalog.find_universal()
        assert [entry.book_slug for entry in universal] == ["be_yourself"]
        assert await data.catalog.list_target_themes() == ["любовь"]

        promo = await data.promo_codes.random_active_for_context("weekly_report")
        assert promo.code == "READER20"
        assert promo.valid_until.tzinfo == timezone.utc

        templates = await data.utm_templates.templates_for_context("weekly_report")
        assert [tpl.name for tpl in templates] == ["weekly"]

    @pytest.mark.asyncio
    async def test_empty_path_gives_no_repositories(self):
        data = await load_reference_data("")
        assert (data.catalog, data.promo_codes, data.utm_templates) == (None, None, None)

    @pytest.mark.asyncio
    async def test_missing_file_is_reported(self, tmp_path, caplog):
        missing = tmp_path / "absent.json"
        with caplog.at_level("ERROR", logger="reader_reports.infrastructure.reference.loader"):
            with pytest.raises(FileNotFoundError):
                await load_reference_data(str(missing))
        record = caplog.records[-1]
        assert record.msg == "Reference data file not found: %s"
        assert record.getMessage() == f"Reference data file not found: {missing}"

    def test_sections_are_optional(self):
        data = parse_reference_data({"promo_codes": []})
        assert data.catalog is None
        assert data.promo_codes is not None
