# weatherbot/infra/geocoding.py
"""
Forward and reverse geocoding via the Google Geocoding API.

``GoogleGeoResolver.resolve_by_name()`` turns "location province country"
into coordinates; ``resolve_to_name()`` turns coordinates into a display
name.  Uses the shared aiohttp session from ``http_client`` with a short
per-call timeout.

Failure policy: a ``ZERO_RESULTS`` answer is a ``NoResultsError`` (the
conversation apologises); anything else that goes wrong is a
``ServiceError``.
"""
from __future__ import annotations

from typing import Any

from weatherbot.config import GOOGLE_GEOCODING_URL
from weatherbot.core.domain import Coordinates, PlaceQuery
from weatherbot.core.errors import NoResultsError, ServiceError
from weatherbot.infra.http_client import fetch_json, get_default_session
from weatherbot.infra.logging_config import get_logger, mask_coordinates

logger = get_logger(__name__)

SERVICE_NAME = "geocoding"

# Reverse geocoding returns candidates from most to least specific
# (street address, route, neighbourhood, locality, ...).  The third one
# reads best in a chat message.  Fixed, not configurable.
REVERSE_GEOCODE_RESULT_INDEX = 2


def _json_number(value: Any) -> float:
    # bool is an int subclass; "40.4" is not a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a JSON number, got {type(value).__name__}")
    return float(value)


class GoogleGeoResolver:
    """Google Geocoding API client."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = GOOGLE_GEOCODING_URL,
        timeout_seconds: float = 5.0,
    ):
        self._api_key = api_key
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds

    async def resolve_by_name(self, location: str, province: str, country: str) -> Coordinates:
        query = PlaceQuery(location, province, country)
        data = await self._lookup({"address": query.address})

        status = data.get("status")
        results = data.get("results") or []
        if status == "ZERO_RESULTS" or (status == "OK" and not results):
            logger.info("Geocoding found no results for %r", query.address)
            raise NoResultsError(query.address)
        if status != "OK":
            raise ServiceError(SERVICE_NAME, f"status {status}")

        try:
            point = results[0]["geometry"]["location"]
            coordinates = Coordinates(_json_number(point["lat"]), _json_number(point["lng"]))
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise ServiceError(SERVICE_NAME, "result has no geometry.location") from exc

        logger.info(
            "Geocoded %r → (%s)",
            query.address, mask_coordinates(coordinates.latitude, coordinates.longitude),
        )
        return coordinates

    async def resolve_to_name(self, coordinates: Coordinates) -> str:
        masked = mask_coordinates(coordinates.latitude, coordinates.longitude)
        data = await self._lookup(
            {"latlng": f"{coordinates.latitude},{coordinates.longitude}"}
        )

        status = data.get("status")
        if status != "OK":
            raise ServiceError(SERVICE_NAME, f"reverse lookup status {status}")

        try:
            name = data["results"][REVERSE_GEOCODE_RESULT_INDEX]["formatted_address"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ServiceError(
                SERVICE_NAME,
                f"reverse lookup has no formatted_address at index {REVERSE_GEOCODE_RESULT_INDEX}",
            ) from exc
        if not isinstance(name, str) or not name:
            raise ServiceError(SERVICE_NAME, "formatted_address is not a string")

        logger.info("Reverse geocoded (%s) → %s", masked, name[:60])
        return name

    async def _lookup(self, params: dict[str, str]) -> dict[str, Any]:
        session = get_default_session()
        return await fetch_json(
            session,
            self._base_url,
            params={**params, "key": self._api_key},
            timeout_seconds=self._timeout_seconds,
            service=SERVICE_NAME,
        )
