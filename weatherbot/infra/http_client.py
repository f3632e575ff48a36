# weatherbot/infra/http_client.py
"""
Shared HTTP client sessions for the application.

Provides named, lazy-initialized aiohttp.ClientSession singletons
to avoid per-request session creation overhead and TCP connection churn.

Session profiles
~~~~~~~~~~~~~~~~
- **sender**  – Telegram Bot API calls (total=25 s, connect=5 s, pool limit=20)
- **default** – Google Geocoding / Weather calls (total=10 s, connect=5 s, pool limit=10);
  callers pass a tighter per-request timeout.

Shutdown
~~~~~~~~
Call ``close_all_sessions()`` once during application shutdown.
"""
from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from weatherbot.core.errors import ServiceError
from weatherbot.infra.logging_config import get_logger

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Internal state
# ---------------------------------------------------------------------------

_sessions: dict[str, aiohttp.ClientSession] = {}


def _get_or_create(
    name: str,
    timeout: aiohttp.ClientTimeout,
    limit: int = 10,
) -> aiohttp.ClientSession:
    """Return an existing session or create a new one."""
    session = _sessions.get(name)
    if session is None or session.closed:
        session = aiohttp.ClientSession(
            timeout=timeout,
            connector=aiohttp.TCPConnector(
                keepalive_timeout=30,
                limit=limit,
                enable_cleanup_closed=True,
            ),
        )
        _sessions[name] = session
        logger.debug("HTTP session '%s' created (limit=%d)", name, limit)
    return session


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_sender_session() -> aiohttp.ClientSession:
    """Session for Telegram Bot API calls."""
    return _get_or_create(
        "sender",
        aiohttp.ClientTimeout(total=25, connect=5),
        limit=20,
    )


def get_default_session() -> aiohttp.ClientSession:
    """General-purpose session (geocoding, weather)."""
    return _get_or_create(
        "default",
        aiohttp.ClientTimeout(total=10, connect=5),
        limit=10,
    )


async def fetch_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    params: dict[str, str],
    timeout_seconds: float,
    service: str,
) -> dict[str, Any]:
    """
    GET *url* and decode a JSON object body.

    Every failure is reported as ``ServiceError(service, ...)``: non-200
    status, timeout, connection error, invalid JSON, non-object body.
    Error details never include the query string (it carries the API key).
    """
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    try:
        async with session.get(url, params=params, timeout=timeout) as resp:
            if resp.status != 200:
                raise ServiceError(service, f"HTTP {resp.status}")
            data = await resp.json(content_type=None)

    except ServiceError:
        raise
    except asyncio.TimeoutError as exc:
        raise ServiceError(service, f"timed out after {timeout_seconds}s") from exc
    except aiohttp.ClientError as exc:
        raise ServiceError(service, f"network error: {exc.__class__.__name__}") from exc
    except ValueError as exc:
        raise ServiceError(service, "invalid JSON body") from exc

    if not isinstance(data, dict):
        raise ServiceError(service, f"unexpected body type {type(data).__name__}")
    return data


async def close_all_sessions() -> None:
    """Gracefully close every managed session.  Call during app shutdown."""
    for name in list(_sessions):
        session = _sessions.pop(name, None)
        if session is not None and not session.closed:
            await session.close()
            logger.debug("HTTP session '%s' closed", name)
