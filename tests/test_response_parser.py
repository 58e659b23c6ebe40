"""Tests for the tiered AI response parser."""

from reader_reports.services.response_parser import (
    PLACEHOLDER_INSIGHTS,
    PLACEHOLDER_SUMMARY,
    PLACEHOLDER_TONE,
    ResponseParser,
    parse_embedded_json,
    parse_strict_json,
    scrape_labeled_fields,
    strip_code_fences,
)
from tests.helpers import analysis_json


class TestStrictTier:
    def test_plain_json(self):
        candidate = ResponseParser().parse(analysis_json())
        assert candidate.tier == "strict"
        assert candidate.summary == "Неделя тишины и внимания к себе"
        assert candidate.dominant_themes == ["любовь", "счастье"]
        assert candidate.emotional_tone == "задумчивый"
        assert candidate.missing_fields() == []

    def test_fenced_json(self):
        raw = "```json\n" + analysis_json(summary="S") + "\n```"
        candidate = ResponseParser().parse(raw)
        assert candidate.tier == "strict"
        assert candidate.summary == "S"

    def test_snake_case_keys(self):
        raw = '{"summary": "A", "insights": "B", "dominant_themes": "время, смысл", "emotional_tone": "позитивный"}'
        candidate = parse_strict_json(raw)
        assert candidate.dominant_themes == ["время", "смысл"]
        assert candidate.emotional_tone == "позитивный"

    def test_raw_newline_inside_string(self):
        candidate = parse_strict_json('{"summary": "первая\nвторая", "insights": "x"}')
        assert candidate.summary == "первая\nвторая"

    def test_json_without_summary_reports_missing_field(self):
        candidate = ResponseParser().parse('{"insights": "только инсайты"}')
        assert candidate.tier == "strict"
        assert candidate.missing_fields() == ["summary"]

    def test_non_object_json_is_not_accepted(self):
        assert parse_strict_json('["summary"]') is None

    def test_deeply_nested_json_is_not_fatal(self):
        nested = "[" * 200000 + "]" * 200000
        assert parse_strict_json(nested) is None
        assert ResponseParser().parse(nested).tier == "regex"

    def test_failing_tier_is_skipped(self):
        def broken(text):
            raise RecursionError("maximum recursion depth exceeded")

        parser = ResponseParser(chain=(("broken", broken), ("regex", scrape_labeled_fields)))
        candidate = parser.parse("ответ без меток")
        assert candidate.tier == "regex"
        assert candidate.summary == PLACEHOLDER_SUMMARY

    def test_strip_code_fences(self):
        assert strip_code_fences("```\n{}\n```") == "{}"


class TestSalvageTier:
    def test_json_inside_prose(self):
        raw = 'Вот анализ: {"summary": "A", "insights": "B"} Надеюсь, помогло.'
        candidate = ResponseParser().parse(raw)
        assert candidate.tier == "salvage"
        assert (candidate.summary, candidate.insights) == ("A", "B")

    def test_no_braces(self):
        assert parse_embedded_json("просто текст") is None


class TestRegexTier:
    def test_labelled_fields(self):
        raw = (
            'summary: "затянувшаяся неделя"\n'
            "insights: много мыслей о времени\n"
            "тон: задумчивый"
        )
        candidate = ResponseParser().parse(raw)
        assert candidate.tier == "regex"
        assert candidate.summary == "затянувшаяся неделя"
        assert candidate.insights == "много мыслей о времени"
        assert candidate.emotional_tone == "задумчивый"

    def test_truncated_json_keeps_quoted_fields(self):
        raw = '{"summary": "Неделя перемен", "insights": "Вы ищете опору", "dominantThemes": ["вре'
        candidate = ResponseParser().parse(raw)
        assert candidate.tier == "regex"
        assert candidate.summary == "Неделя перемен"
        assert candidate.insights == "Вы ищете опору"

    def test_unlabelled_text_gets_placeholders(self):
        candidate = scrape_labeled_fields("Модель ответила что-то странное")
        assert candidate.summary == PLACEHOLDER_SUMMARY
        assert candidate.insights == PLACEHOLDER_INSIGHTS
        assert candidate.emotional_tone == PLACEHOLDER_TONE

    def test_empty_input_never_fails(self):
        for raw in ("", None):
            candidate = ResponseParser().parse(raw)
            assert candidate.tier == "regex"
            assert candidate.summary == PLACEHOLDER_SUMMARY
            assert candidate.dominant_themes == []
