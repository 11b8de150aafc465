"""
Tests for localized messages.
"""

import pendulum
import pytest

from agendaai.domain.messages import MESSAGES, format_slot, localize


class TestLocalize:
    """Tests for localize."""

    def test_every_message_has_all_languages(self):
        for key, translations in MESSAGES.items():
            assert set(translations) == {"en", "pt", "es"}, key

    @pytest.mark.parametrize(
        "language, expected",
        [("en", "Appointment"), ("pt", "Compromisso"), ("es", "Cita")],
    )
    def test_language_selection(self, language, expected):
        assert localize("default_subject", language) == expected

    def test_unknown_language_falls_back_to_english(self):
        assert localize("default_subject", "de") == "Appointment"
        assert localize("default_subject", None) == "Appointment"

    def test_parameters_are_substituted(self):
        text = localize("confirmed", "pt", subject="Consulta")

        assert '"Consulta"' in text
        assert text.startswith("Ótimo!")

    def test_unknown_key_raises(self):
        with pytest.raises(KeyError):
            localize("does_not_exist", "en")


class TestFormatSlot:
    """Tests for format_slot."""

    def test_english_in_requester_timezone(self):
        slot = pendulum.parse("2024-04-29T14:00:00Z")

        assert format_slot(slot, "en", "America/Sao_Paulo") == "Monday, Apr 29 2024 11:00"

    def test_other_timezone_changes_hour(self):
        slot = pendulum.parse("2024-04-29T14:00:00Z")

        assert format_slot(slot, "en", "Europe/Lisbon").endswith("15:00")

    def test_portuguese_uses_portuguese_day_names(self):
        slot = pendulum.parse("2024-04-29T14:00:00Z")

        text = format_slot(slot, "pt", "America/Sao_Paulo")

        assert "Monday" not in text
        assert text.endswith("11:00")
