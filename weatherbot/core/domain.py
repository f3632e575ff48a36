from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Optional, Union


# ============================================================================
# CONVERSATION STATE (one variant per dialogue step)
# ============================================================================

@dataclass(frozen=True)
class Idle:
    """No dialogue in progress. Initial state of every conversation."""
    name: ClassVar[str] = "idle"


@dataclass(frozen=True)
class AwaitingTextLocation:
    """Asked "What is your location?", waiting for a place name."""
    name: ClassVar[str] = "awaiting_text_location"


@dataclass(frozen=True)
class AwaitingAttachedLocation:
    """Asked the user to attach a GPS location."""
    name: ClassVar[str] = "awaiting_attached_location"


@dataclass(frozen=True)
class AwaitingProvince:
    """Place name collected, waiting for province or state."""
    location: str
    name: ClassVar[str] = "awaiting_province"


@dataclass(frozen=True)
class AwaitingCountry:
    """Place name and province collected, waiting for country."""
    location: str
    province: str
    name: ClassVar[str] = "awaiting_country"


ConversationState = Union[
    Idle,
    AwaitingTextLocation,
    AwaitingAttachedLocation,
    AwaitingProvince,
    AwaitingCountry,
]


# ============================================================================
# VALUE TYPES
# ============================================================================

@dataclass(frozen=True)
class Coordinates:
    """Latitude/longitude pair in degrees."""
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            raise ValueError(
                f"Coordinates must be finite, got ({self.latitude}, {self.longitude})"
            )


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current conditions as returned by the weather source."""
    condition: str
    temperature: float
    feels_like: float
    humidity: float
    precipitation_probability: float


@dataclass(frozen=True)
class PlaceQuery:
    """Free-text place description collected over three questions."""
    location: str
    province: str
    country: str

    @property
    def address(self) -> str:
        return " ".join(part.strip() for part in (self.location, self.province, self.country))


@dataclass(frozen=True)
class CoordinatesQuery:
    """Place given directly as a GPS location."""
    coordinates: Coordinates


LocationQuery = Union[PlaceQuery, CoordinatesQuery]


# ============================================================================
# COMMANDS & EVENTS
# ============================================================================

class Command(str, Enum):
    """Bot commands (Telegram command name = value)"""
    START = "start"
    GET_WEATHER = "getweather"
    GET_WEATHER_LOCATION = "getweatherlocation"
    CANCEL = "cancel"
    HELP = "help"


@dataclass(frozen=True)
class CommandEvent:
    command: Command


@dataclass(frozen=True)
class TextEvent:
    text: str


@dataclass(frozen=True)
class LocationEvent:
    coordinates: Coordinates


@dataclass(frozen=True)
class UnsupportedEvent:
    """Anything the dialogue cannot use: stickers, photos, unknown commands."""
    kind: str = "other"


Event = Union[CommandEvent, TextEvent, LocationEvent, UnsupportedEvent]


# ============================================================================
# INBOUND MESSAGE (provider-neutral)
# ============================================================================

@dataclass
class LocationData:
    """GPS coordinates shared by the user."""
    latitude: float
    longitude: float


@dataclass
class InboundMessage:
    """
    Normalized inbound message from the chat platform.
    This is the domain model that represents an incoming message.
    """
    provider: str  # "telegram"
    chat_id: str
    message_id: str
    text: Optional[str] = None
    location: Optional[LocationData] = None

    def has_text(self) -> bool:
        """Check if message contains text"""
        return bool(self.text and self.text.strip())

    def has_location(self) -> bool:
        """Check if message contains a GPS location"""
        return self.location is not None

    def is_command(self) -> bool:
        return self.has_text() and self.text.strip().startswith("/")


def parse_command(text: str) -> Optional[Command]:
    """
    Parse ``/command`` (optionally ``/command@BotName args``) into a Command.
    Returns None for unknown commands.
    """
    head = text.strip().split()[0]
    name = head.lstrip("/").split("@")[0].lower()
    try:
        return Command(name)
    except ValueError:
        return None


def event_from_message(message: InboundMessage) -> Event:
    """
    Convert an inbound message into a dialogue event.

    Priority: command > text > location (Telegram never sends both text and
    location in one message, but venues may carry a title).
    """
    if message.is_command():
        command = parse_command(message.text or "")
        if command is None:
            return UnsupportedEvent("command")
        return CommandEvent(command)

    if message.has_text():
        return TextEvent(message.text.strip())

    if message.has_location():
        loc = message.location
        try:
            return LocationEvent(Coordinates(loc.latitude, loc.longitude))
        except ValueError:
            return UnsupportedEvent("location")

    return UnsupportedEvent()
