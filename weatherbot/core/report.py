# weatherbot/core/report.py
"""Weather report templates. Pure functions, no failure modes."""
from __future__ import annotations

from weatherbot.core.domain import WeatherSnapshot


def _report(label: str, snapshot: WeatherSnapshot) -> str:
    return (
        f"🌤️ The weather in {label} is\n"
        f"Weather Condition: {snapshot.condition}\n"
        f"Temperature: {snapshot.temperature}°C\n"
        f"Feels Like: {snapshot.feels_like}°C\n"
        f"Humidity: {snapshot.humidity}%\n"
        f"Precipitation Probability: {snapshot.precipitation_probability}%"
    )


def format_by_name(location: str, province: str, country: str, snapshot: WeatherSnapshot) -> str:
    """Report for a place the user described as location, province, country."""
    return _report(f"{location}, {province}, {country}", snapshot)


def format_by_coordinates(display_name: str, snapshot: WeatherSnapshot) -> str:
    """Report for a shared GPS location, labelled with its reverse-geocoded name."""
    return _report(display_name, snapshot)
