# weatherbot/core/ports.py
from __future__ import annotations
from typing import Protocol, Optional
from weatherbot.core.domain import ConversationState, Coordinates, WeatherSnapshot


class GeoResolver(Protocol):
    async def resolve_by_name(self, location: str, province: str, country: str) -> Coordinates:
        """
        Raises:
            NoResultsError: the geocoder found no match
            ServiceError:   network / decoding / missing-field failure
        """
        ...

    async def resolve_to_name(self, coordinates: Coordinates) -> str: ...


class WeatherFetcher(Protocol):
    async def fetch(self, coordinates: Coordinates) -> WeatherSnapshot: ...


class MessageSender(Protocol):
    async def send(self, conversation_id: str, text: str) -> None:
        """Deliver a plain-text message. Raises DeliveryError on failure."""
        ...


class ConversationStore(Protocol):
    async def get(self, conversation_id: str) -> Optional[ConversationState]: ...
    async def upsert(self, conversation_id: str, state: ConversationState) -> None: ...
    async def delete(self, conversation_id: str) -> None: ...
