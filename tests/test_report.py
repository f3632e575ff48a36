# tests/test_report.py
"""Tests for report templates and user-facing texts"""
from weatherbot.core.domain import Command, WeatherSnapshot
from weatherbot.core.report import format_by_coordinates, format_by_name
from weatherbot.core.texts import (
    COMMAND_DESCRIPTIONS,
    bot_commands_payload,
    get_text,
    help_text,
)


SNAPSHOT = WeatherSnapshot(
    condition="Clear",
    temperature=20.0,
    feels_like=19.5,
    humidity=50,
    precipitation_probability=10,
)


class TestReport:
    def test_by_name(self):
        report = format_by_name("Madrid", "Madrid", "Spain", SNAPSHOT)
        assert report == (
            "🌤️ The weather in Madrid, Madrid, Spain is\n"
            "Weather Condition: Clear\n"
            "Temperature: 20.0°C\n"
            "Feels Like: 19.5°C\n"
            "Humidity: 50%\n"
            "Precipitation Probability: 10%"
        )

    def test_by_coordinates_uses_display_name(self):
        report = format_by_coordinates("Centro, Madrid, Spain", SNAPSHOT)
        assert report.splitlines()[0] == "🌤️ The weather in Centro, Madrid, Spain is"
        assert len(report.splitlines()) == 6

    def test_negative_temperature(self):
        cold = WeatherSnapshot("Snow", -4.5, -9.0, 80.0, 90.0)
        report = format_by_name("Oslo", "Oslo", "Norway", cold)
        assert "Temperature: -4.5°C" in report
        assert "Precipitation Probability: 90.0%" in report


class TestTexts:
    def test_get_text_formats_params(self):
        assert get_text("q_province", location="Madrid") == "In which province or state is Madrid located?"

    def test_get_text_missing_key_returns_key(self):
        assert get_text("no_such_key") == "no_such_key"

    def test_help_text(self):
        text = help_text()
        assert text.startswith("Enable commands in the bot\n\n")
        assert "/start - Start bot 🚀" in text
        assert len(text.splitlines()) == 2 + len(Command)

    def test_bot_commands_payload(self):
        payload = bot_commands_payload()
        assert [item["command"] for item in payload] == [
            "start", "getweather", "getweatherlocation", "cancel", "help",
        ]
        assert all(item["description"] for item in payload)

    def test_every_command_is_described(self):
        assert {command for command, _ in COMMAND_DESCRIPTIONS} == set(Command)
