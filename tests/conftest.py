# tests/conftest.py
"""Pytest configuration and fixtures"""
import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

# Dummy credentials so settings-dependent modules import cleanly
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:test-token")
os.environ.setdefault("GOOGLE_API_KEY", "test-google-key")

from fakes import FakeGeoResolver, FakeWeatherFetcher, RecordingSender  # noqa: E402
from weatherbot.core.engine import ConversationEngine  # noqa: E402
from weatherbot.core.errors import NoResultsError  # noqa: E402
from weatherbot.core.use_cases import WeatherBotService  # noqa: E402
from weatherbot.infra.conversation_store import InMemoryConversationStore  # noqa: E402
from weatherbot.infra.metrics import get_metrics_collector  # noqa: E402


@pytest.fixture(autouse=True)
def reset_metrics():
    get_metrics_collector().reset()
    yield


@pytest.fixture
def chat_id():
    """Default chat ID for tests"""
    return "987654321"


@pytest.fixture
def geo():
    return FakeGeoResolver()


@pytest.fixture
def weather():
    return FakeWeatherFetcher()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def engine(geo, weather, sender):
    return ConversationEngine(geo=geo, weather=weather, sender=sender)


@pytest.fixture
def store():
    return InMemoryConversationStore()


@pytest.fixture
def service(engine, store, sender):
    return WeatherBotService(engine=engine, store=store, sender=sender)


@pytest.fixture
def no_results_error():
    return NoResultsError("Atlantis Nowhere Neverland")
