# weatherbot/core/errors.py
"""
Typed errors for the weather bot.

``NoResultsError`` is the only error the conversation recovers from
locally (by-name lookup).  Everything that talks to the outside world
fails with a ``TransportError`` subtype:

- ``ServiceError``  – Google Geocoding / Weather call failed
  (HTTP status, network, timeout, invalid JSON, missing field).
- ``DeliveryError`` – an outbound chat message could not be delivered.
"""
from __future__ import annotations


class WeatherBotError(Exception):
    """Base class for all weather bot errors."""


class NoResultsError(WeatherBotError):
    """Forward geocoding returned zero matches."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"No geocoding results for {query!r}")


class TransportError(WeatherBotError):
    """External call or message delivery failed."""


class ServiceError(TransportError):
    """Error returned by (or while talking to) an external API.

    Attributes:
        service: Short service name (``"geocoding"``, ``"weather"``).
        detail:  Human-readable cause, safe to log (never contains the API key).
    """

    def __init__(self, service: str, detail: str):
        self.service = service
        self.detail = detail
        super().__init__(f"{service} service error: {detail}")


class DeliveryError(TransportError):
    """Outbound message could not be delivered to the chat platform."""
