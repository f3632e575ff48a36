# tests/test_geocoding.py
"""
Tests for the Google geocoding client.

All tests mock the HTTP layer; no actual Google API calls.
"""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from weatherbot.core.domain import Coordinates
from weatherbot.core.errors import NoResultsError, ServiceError
from weatherbot.infra.geocoding import GoogleGeoResolver, REVERSE_GEOCODE_RESULT_INDEX


def _make_mock_response(status=200, json_data=None):
    """Create a mock aiohttp response."""
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data or {})
    return resp


def _make_mock_session(response):
    """Create a mock session whose .get() returns the given response."""
    ctx = AsyncMock()
    ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.get = MagicMock(return_value=ctx)
    return session


def _failing_session(exc):
    ctx = AsyncMock()
    ctx.__aenter__ = AsyncMock(side_effect=exc)
    ctx.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.get = MagicMock(return_value=ctx)
    return session


FORWARD_OK = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "Madrid, Spain",
            "geometry": {"location": {"lat": 40.4168, "lng": -3.7038}},
        }
    ],
}

REVERSE_OK = {
    "status": "OK",
    "results": [
        {"formatted_address": "Calle Mayor 1, 28013 Madrid, Spain"},
        {"formatted_address": "Calle Mayor, Madrid, Spain"},
        {"formatted_address": "Centro, Madrid, Spain"},
        {"formatted_address": "Madrid, Spain"},
    ],
}


@pytest.fixture
def resolver():
    return GoogleGeoResolver("test-key", base_url="https://geo.test/json", timeout_seconds=2.0)


# ============================================================================
# resolve_by_name()
# ============================================================================

class TestResolveByName:

    @pytest.mark.asyncio
    async def test_success(self, resolver):
        session = _make_mock_session(_make_mock_response(200, FORWARD_OK))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            result = await resolver.resolve_by_name("Madrid", "Madrid", "Spain")

        assert result == Coordinates(40.4168, -3.7038)

    @pytest.mark.asyncio
    async def test_request_params(self, resolver):
        session = _make_mock_session(_make_mock_response(200, FORWARD_OK))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            await resolver.resolve_by_name("Madrid", "Madrid", "Spain")

        args, kwargs = session.get.call_args
        assert args[0] == "https://geo.test/json"
        assert kwargs["params"] == {"address": "Madrid Madrid Spain", "key": "test-key"}

    @pytest.mark.asyncio
    async def test_zero_results_raises_no_results(self, resolver):
        session = _make_mock_session(
            _make_mock_response(200, {"status": "ZERO_RESULTS", "results": []})
        )

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(NoResultsError) as exc_info:
                await resolver.resolve_by_name("Atlantis", "Nowhere", "Neverland")

        assert exc_info.value.query == "Atlantis Nowhere Neverland"

    @pytest.mark.asyncio
    async def test_ok_with_empty_results_raises_no_results(self, resolver):
        session = _make_mock_session(_make_mock_response(200, {"status": "OK", "results": []}))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(NoResultsError):
                await resolver.resolve_by_name("a", "b", "c")

    @pytest.mark.asyncio
    async def test_denied_status_is_service_error(self, resolver):
        session = _make_mock_session(
            _make_mock_response(200, {"status": "REQUEST_DENIED", "results": []})
        )

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(ServiceError) as exc_info:
                await resolver.resolve_by_name("Madrid", "Madrid", "Spain")

        assert exc_info.value.service == "geocoding"
        assert "REQUEST_DENIED" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_missing_geometry_is_service_error(self, resolver):
        data = {"status": "OK", "results": [{"formatted_address": "Madrid"}]}
        session = _make_mock_session(_make_mock_response(200, data))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(ServiceError):
                await resolver.resolve_by_name("Madrid", "Madrid", "Spain")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("lat", ["40.4168", True], ids=["numeric_string", "bool"])
    async def test_non_number_coordinate_is_service_error(self, resolver, lat):
        data = {
            "status": "OK",
            "results": [{"geometry": {"location": {"lat": lat, "lng": -3.7038}}}],
        }
        session = _make_mock_session(_make_mock_response(200, data))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(ServiceError) as exc_info:
                await resolver.resolve_by_name("Madrid", "Madrid", "Spain")

        assert exc_info.value.service == "geocoding"

    @pytest.mark.asyncio
    async def test_integer_coordinates_are_accepted(self, resolver):
        data = {
            "status": "OK",
            "results": [{"geometry": {"location": {"lat": 40, "lng": -3}}}],
        }
        session = _make_mock_session(_make_mock_response(200, data))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            result = await resolver.resolve_by_name("Madrid", "Madrid", "Spain")

        assert result == Coordinates(40.0, -3.0)

    @pytest.mark.asyncio
    async def test_http_error_is_service_error(self, resolver):
        session = _make_mock_session(_make_mock_response(500))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(ServiceError) as exc_info:
                await resolver.resolve_by_name("Madrid", "Madrid", "Spain")

        assert exc_info.value.detail == "HTTP 500"

    @pytest.mark.asyncio
    async def test_timeout_is_service_error(self, resolver):
        session = _failing_session(asyncio.TimeoutError())

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(ServiceError) as exc_info:
                await resolver.resolve_by_name("Madrid", "Madrid", "Spain")

        assert "timed out" in exc_info.value.detail


# ============================================================================
# resolve_to_name()
# ============================================================================

class TestResolveToName:

    @pytest.mark.asyncio
    async def test_uses_third_result(self, resolver):
        session = _make_mock_session(_make_mock_response(200, REVERSE_OK))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            name = await resolver.resolve_to_name(Coordinates(40.4168, -3.7038))

        assert REVERSE_GEOCODE_RESULT_INDEX == 2
        assert name == "Centro, Madrid, Spain"

    @pytest.mark.asyncio
    async def test_request_params(self, resolver):
        session = _make_mock_session(_make_mock_response(200, REVERSE_OK))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            await resolver.resolve_to_name(Coordinates(40.4168, -3.7038))

        _, kwargs = session.get.call_args
        assert kwargs["params"] == {"latlng": "40.4168,-3.7038", "key": "test-key"}

    @pytest.mark.asyncio
    async def test_fewer_than_three_results_is_service_error(self, resolver):
        data = {"status": "OK", "results": REVERSE_OK["results"][:2]}
        session = _make_mock_session(_make_mock_response(200, data))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(ServiceError):
                await resolver.resolve_to_name(Coordinates(0.0, 0.0))

    @pytest.mark.asyncio
    async def test_zero_results_is_service_error(self, resolver):
        session = _make_mock_session(
            _make_mock_response(200, {"status": "ZERO_RESULTS", "results": []})
        )

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(ServiceError):
                await resolver.resolve_to_name(Coordinates(0.0, 0.0))

    @pytest.mark.asyncio
    async def test_non_string_address_is_service_error(self, resolver):
        results = [{}, {}, {"formatted_address": 42}]
        session = _make_mock_session(
            _make_mock_response(200, {"status": "OK", "results": results})
        )

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(ServiceError):
                await resolver.resolve_to_name(Coordinates(0.0, 0.0))

    @pytest.mark.asyncio
    async def test_network_error_is_service_error(self, resolver):
        session = _failing_session(aiohttp.ClientError("Connection refused"))

        with patch("weatherbot.infra.geocoding.get_default_session", return_value=session):
            with pytest.raises(ServiceError) as exc_info:
                await resolver.resolve_to_name(Coordinates(0.0, 0.0))

        assert "network error" in exc_info.value.detail
