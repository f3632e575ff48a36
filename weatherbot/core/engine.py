# weatherbot/core/engine.py
"""
Conversation state machine.

``ConversationEngine.handle(conversation_id, state, event)`` dispatches on
(state, event kind), optionally runs one of the two lookup pipelines, and
returns the next state plus the messages it emitted.  Messages go out
through the injected ``MessageSender`` as soon as they are emitted, so the
"please wait" message reaches the user before a slow lookup.

The engine holds no per-conversation data: the state is handed in and
handed back.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from weatherbot.core.domain import (
    AwaitingAttachedLocation,
    AwaitingCountry,
    AwaitingProvince,
    AwaitingTextLocation,
    Command,
    CommandEvent,
    ConversationState,
    Coordinates,
    CoordinatesQuery,
    Event,
    Idle,
    LocationEvent,
    LocationQuery,
    PlaceQuery,
    TextEvent,
)
from weatherbot.core.errors import NoResultsError
from weatherbot.core.ports import GeoResolver, MessageSender, WeatherFetcher
from weatherbot.core.report import format_by_coordinates, format_by_name
from weatherbot.core.texts import get_text, help_text
from weatherbot.infra.logging_config import get_logger, mask_coordinates
from weatherbot.infra.metrics import AppMetrics

logger = get_logger(__name__)


class _Outbox:
    """Collects emitted messages and delivers them immediately."""

    def __init__(self, conversation_id: str, sender: Optional[MessageSender]):
        self.conversation_id = conversation_id
        self.sender = sender
        self.messages: list[str] = []

    async def emit(self, text: str) -> None:
        if self.sender is not None:
            await self.sender.send(self.conversation_id, text)
        self.messages.append(text)


class ConversationEngine:
    """
    Dialogue driver for one bot.

    Raises:
        DeliveryError: emitting a message failed
        ServiceError:  a lookup pipeline failed (other than "no results")
    """

    def __init__(
        self,
        *,
        geo: GeoResolver,
        weather: WeatherFetcher,
        sender: Optional[MessageSender] = None,
    ) -> None:
        self.geo = geo
        self.weather = weather
        self.sender = sender

    async def handle(
        self,
        conversation_id: str,
        state: ConversationState,
        event: Event,
    ) -> tuple[ConversationState, list[str]]:
        outbox = _Outbox(conversation_id, self.sender)

        # Cancel is the only command honoured in every state
        if isinstance(event, CommandEvent) and event.command is Command.CANCEL:
            await outbox.emit(get_text("cancelled"))
            return Idle(), outbox.messages

        if isinstance(state, Idle):
            next_state = await self._on_idle(event, outbox)
        elif isinstance(state, AwaitingTextLocation):
            next_state = await self._on_awaiting_text_location(state, event, outbox)
        elif isinstance(state, AwaitingAttachedLocation):
            next_state = await self._on_awaiting_attached_location(state, event, outbox)
        elif isinstance(state, AwaitingProvince):
            next_state = await self._on_awaiting_province(state, event, outbox)
        elif isinstance(state, AwaitingCountry):
            next_state = await self._on_awaiting_country(state, event, outbox)
        else:
            raise TypeError(f"Unknown conversation state: {state!r}")

        return next_state, outbox.messages

    # ------------------------------------------------------------------
    # Per-state handlers
    # ------------------------------------------------------------------

    async def _on_idle(self, event: Event, outbox: _Outbox) -> ConversationState:
        if not isinstance(event, CommandEvent):
            # Free text / attachments outside a dialogue are ignored
            return Idle()

        if event.command is Command.START:
            await outbox.emit(get_text("welcome"))
            return Idle()
        if event.command is Command.HELP:
            await outbox.emit(help_text())
            return Idle()
        if event.command is Command.GET_WEATHER:
            await outbox.emit(get_text("q_location"))
            return AwaitingTextLocation()
        if event.command is Command.GET_WEATHER_LOCATION:
            await outbox.emit(get_text("q_attach_location"))
            return AwaitingAttachedLocation()
        return Idle()

    async def _on_awaiting_text_location(
        self, state: AwaitingTextLocation, event: Event, outbox: _Outbox,
    ) -> ConversationState:
        if isinstance(event, TextEvent):
            await outbox.emit(get_text("q_province", location=event.text))
            return AwaitingProvince(location=event.text)

        await outbox.emit(get_text("err_invalid_name"))
        return state

    async def _on_awaiting_attached_location(
        self, state: AwaitingAttachedLocation, event: Event, outbox: _Outbox,
    ) -> ConversationState:
        if not isinstance(event, LocationEvent):
            await outbox.emit(get_text("err_invalid_location"))
            return state

        await outbox.emit(get_text("progress_by_coordinates"))
        report = await self.lookup(CoordinatesQuery(event.coordinates))
        await outbox.emit(report)
        return Idle()

    async def _on_awaiting_province(
        self, state: AwaitingProvince, event: Event, outbox: _Outbox,
    ) -> ConversationState:
        if isinstance(event, TextEvent):
            await outbox.emit(
                get_text("q_country", location=state.location, province=event.text)
            )
            return AwaitingCountry(location=state.location, province=event.text)

        await outbox.emit(get_text("err_invalid_name"))
        return state

    async def _on_awaiting_country(
        self, state: AwaitingCountry, event: Event, outbox: _Outbox,
    ) -> ConversationState:
        if not isinstance(event, TextEvent):
            await outbox.emit(get_text("err_invalid_name"))
            return Idle()

        country = event.text
        await outbox.emit(
            get_text(
                "progress_by_name",
                location=state.location, province=state.province, country=country,
            )
        )
        report = await self.lookup(PlaceQuery(state.location, state.province, country))
        await outbox.emit(report)
        return Idle()

    # ------------------------------------------------------------------
    # Lookup pipelines
    # ------------------------------------------------------------------

    async def lookup(self, query: LocationQuery) -> str:
        """Run the pipeline matching the kind of query."""
        if isinstance(query, PlaceQuery):
            return await self.resolve_by_name_pipeline(query.location, query.province, query.country)
        if isinstance(query, CoordinatesQuery):
            coordinates = query.coordinates
            return await self.resolve_by_coordinates_pipeline(coordinates.latitude, coordinates.longitude)
        raise TypeError(f"Unknown location query: {query!r}")

    async def resolve_by_name_pipeline(self, location: str, province: str, country: str) -> str:
        """
        Geocode the place, fetch its weather, format the report.

        "No results" becomes an apology text; every other failure propagates.
        """
        with AppMetrics.track_lookup_time("by_name"):
            try:
                coordinates = await self.geo.resolve_by_name(location, province, country)
                snapshot = await self.weather.fetch(coordinates)
            except NoResultsError:
                AppMetrics.lookup_finished("by_name", "no_results")
                return get_text("err_no_results")
            except Exception:
                AppMetrics.lookup_finished("by_name", "failed")
                raise

        AppMetrics.lookup_finished("by_name", "ok")
        return format_by_name(location, province, country, snapshot)

    async def resolve_by_coordinates_pipeline(self, latitude: float, longitude: float) -> str:
        """
        Reverse-geocode and fetch weather concurrently, format the report.

        Any failure propagates; no partial report is produced.
        """
        coordinates = Coordinates(latitude, longitude)
        with AppMetrics.track_lookup_time("by_coordinates"):
            try:
                display_name, snapshot = await asyncio.gather(
                    self.geo.resolve_to_name(coordinates),
                    self.weather.fetch(coordinates),
                )
            except Exception:
                AppMetrics.lookup_finished("by_coordinates", "failed")
                logger.warning(
                    "Lookup by coordinates failed for (%s)",
                    mask_coordinates(latitude, longitude),
                )
                raise

        AppMetrics.lookup_finished("by_coordinates", "ok")
        return format_by_coordinates(display_name, snapshot)
