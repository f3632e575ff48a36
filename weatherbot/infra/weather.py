# weatherbot/infra/weather.py
"""
Current conditions via the Google Weather API.

The response body is validated with pydantic; a missing or mistyped field
is a ``ServiceError`` just like a network failure.  Numbers must arrive as
JSON numbers: numeric strings and booleans are rejected, not coerced.  A
partial snapshot is never returned.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictStr
from pydantic import ValidationError as PydanticValidationError

from weatherbot.config import GOOGLE_WEATHER_URL
from weatherbot.core.domain import Coordinates, WeatherSnapshot
from weatherbot.core.errors import ServiceError
from weatherbot.infra.http_client import fetch_json, get_default_session
from weatherbot.infra.logging_config import get_logger, mask_coordinates

logger = get_logger(__name__)

SERVICE_NAME = "weather"


class _Degrees(BaseModel):
    degrees: StrictFloat


class _Description(BaseModel):
    text: StrictStr


class _WeatherCondition(BaseModel):
    description: _Description


class _Probability(BaseModel):
    percent: StrictFloat


class _Precipitation(BaseModel):
    probability: _Probability


class CurrentConditions(BaseModel):
    """Subset of the ``currentConditions:lookup`` response we rely on."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    weather_condition: _WeatherCondition = Field(alias="weatherCondition")
    temperature: _Degrees
    feels_like_temperature: _Degrees = Field(alias="feelsLikeTemperature")
    relative_humidity: StrictFloat = Field(alias="relativeHumidity")
    precipitation: _Precipitation

    def to_snapshot(self) -> WeatherSnapshot:
        return WeatherSnapshot(
            condition=self.weather_condition.description.text,
            temperature=self.temperature.degrees,
            feels_like=self.feels_like_temperature.degrees,
            humidity=self.relative_humidity,
            precipitation_probability=self.precipitation.probability.percent,
        )


class GoogleWeatherFetcher:
    """Google Weather API client."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = GOOGLE_WEATHER_URL,
        timeout_seconds: float = 5.0,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds

    async def fetch(self, coordinates: Coordinates) -> WeatherSnapshot:
        params = {
            "key": self._api_key,
            "location.latitude": str(coordinates.latitude),
            "location.longitude": str(coordinates.longitude),
        }
        session = get_default_session()
        data = await fetch_json(
            session,
            self._base_url,
            params=params,
            timeout_seconds=self._timeout_seconds,
            service=SERVICE_NAME,
        )

        try:
            snapshot = CurrentConditions.model_validate(data).to_snapshot()
        except PydanticValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            raise ServiceError(SERVICE_NAME, f"malformed response ({fields})") from exc

        logger.info(
            "Weather for (%s): %s, %s°C",
            mask_coordinates(coordinates.latitude, coordinates.longitude),
            snapshot.condition, snapshot.temperature,
        )
        return snapshot
