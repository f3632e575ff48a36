# tests/fakes.py
"""In-memory stand-ins for the geo / weather sources and the message sender."""
from __future__ import annotations

from weatherbot.core.domain import Coordinates, WeatherSnapshot
from weatherbot.core.errors import DeliveryError


MADRID = Coordinates(40.4168, -3.7038)

CLEAR_SNAPSHOT = WeatherSnapshot(
    condition="Clear",
    temperature=20.0,
    feels_like=19.5,
    humidity=50.0,
    precipitation_probability=10.0,
)


class FakeGeoResolver:
    """In-memory GeoResolver; set ``by_name_error`` / ``to_name_error`` to fail."""

    def __init__(self, coordinates=MADRID, display_name="Centro, Madrid, Spain"):
        self.coordinates = coordinates
        self.display_name = display_name
        self.by_name_error: Exception | None = None
        self.to_name_error: Exception | None = None
        self.by_name_calls: list[tuple[str, str, str]] = []
        self.to_name_calls: list[Coordinates] = []

    async def resolve_by_name(self, location, province, country):
        self.by_name_calls.append((location, province, country))
        if self.by_name_error is not None:
            raise self.by_name_error
        return self.coordinates

    async def resolve_to_name(self, coordinates):
        self.to_name_calls.append(coordinates)
        if self.to_name_error is not None:
            raise self.to_name_error
        return self.display_name


class FakeWeatherFetcher:
    def __init__(self, snapshot=CLEAR_SNAPSHOT):
        self.snapshot = snapshot
        self.error: Exception | None = None
        self.calls: list[Coordinates] = []

    async def fetch(self, coordinates):
        self.calls.append(coordinates)
        if self.error is not None:
            raise self.error
        return self.snapshot


class RecordingSender:
    """MessageSender that records (chat_id, text); set ``fail_on`` to fail the n-th send (1-based)."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.fail_on: int | None = None

    async def send(self, conversation_id, text):
        if self.fail_on is not None and len(self.sent) + 1 == self.fail_on:
            raise DeliveryError("delivery failed")
        self.sent.append((conversation_id, text))

    def texts(self) -> list[str]:
        return [text for _, text in self.sent]

