"""
Tests for language-model output normalisation.
"""

import pendulum
import pytest

from agendaai.domain.intent import normalize_language, normalize_understanding, parse_json_object


class TestParseJsonObject:
    """Tests for parse_json_object."""

    def test_plain_object(self):
        assert parse_json_object('{"language": "pt"}') == {"language": "pt"}

    def test_fenced_object(self):
        text = '```json\n{"understood": true}\n```'

        assert parse_json_object(text) == {"understood": True}

    @pytest.mark.parametrize("text", [None, "", "not json", "[1, 2]", '"pt"'])
    def test_malformed_returns_none(self, text):
        assert parse_json_object(text) is None


class TestNormalizeLanguage:
    """Tests for normalize_language."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ({"language": "pt"}, "pt"),
            ({"language": " ES "}, "es"),
            ({"language": "EN"}, "en"),
            ("pt", "pt"),
            ({"language": "fr"}, "en"),
            ({"language": 42}, "en"),
            ({}, "en"),
            (None, "en"),
        ],
    )
    def test_normalisation(self, raw, expected):
        assert normalize_language(raw) == expected


class TestNormalizeUnderstanding:
    """Tests for normalize_understanding."""

    def test_full_request(self):
        result = normalize_understanding(
            {
                "understood": True,
                "dateTime": "2025-05-20T14:00:00.000Z",
                "duration": 30,
                "subject": "  Doctor's visit ",
            }
        )

        assert result.understood is True
        assert result.date_time == pendulum.parse("2025-05-20T14:00:00Z")
        assert result.duration_minutes == 30
        assert result.subject == "Doctor's visit"

    def test_understood_without_details(self):
        result = normalize_understanding({"understood": True, "subject": "check availability"})

        assert result.understood is True
        assert result.date_time is None
        assert result.duration_minutes is None

    @pytest.mark.parametrize(
        "raw",
        [None, {}, {"understood": "yes"}, {"understood": 1}, ["understood"]],
    )
    def test_malformed_defaults_to_not_understood(self, raw):
        result = normalize_understanding(raw)

        assert result.understood is False
        assert result.date_time is None
        assert result.subject is None

    def test_invalid_optional_fields_are_dropped(self):
        result = normalize_understanding(
            {
                "understood": True,
                "dateTime": "next tuesday-ish",
                "duration": -15,
                "subject": "   ",
            }
        )

        assert result.understood is True
        assert result.date_time is None
        assert result.duration_minutes is None
        assert result.subject is None

    def test_boolean_duration_is_ignored(self):
        result = normalize_understanding({"understood": True, "duration": True})

        assert result.duration_minutes is None
