# weatherbot/core/__init__.py
"""
Core -- provider-agnostic dialogue logic.

This package contains the domain models, errors, abstract protocols
(ports), user-facing texts, the report formatter, the conversation state
machine (ConversationEngine) and the use-case service (WeatherBotService).

Canonical imports:
    from weatherbot.core import ConversationEngine, WeatherBotService
    from weatherbot.core.domain import Idle, AwaitingCountry, InboundMessage
    from weatherbot.core.errors import NoResultsError, TransportError
"""
from weatherbot.core.domain import (  # noqa: F401
    Idle,
    AwaitingTextLocation,
    AwaitingAttachedLocation,
    AwaitingProvince,
    AwaitingCountry,
    ConversationState,
    Coordinates,
    WeatherSnapshot,
    Command,
    InboundMessage,
)
from weatherbot.core.errors import (  # noqa: F401
    WeatherBotError,
    NoResultsError,
    TransportError,
    ServiceError,
    DeliveryError,
)
from weatherbot.core.engine import ConversationEngine  # noqa: F401
from weatherbot.core.use_cases import WeatherBotService  # noqa: F401
