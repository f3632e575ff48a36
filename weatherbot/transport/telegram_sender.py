# weatherbot/transport/telegram_sender.py
"""
Telegram Bot API outbound calls.

Uses the Bot API to:
- Send text messages
- Long-poll for updates
- Register / remove the webhook
- Publish the command menu (setMyCommands)

Error classification (TelegramSendError.retryable):
- Token invalid / bot blocked  → NOT retryable (needs human intervention)
- Chat not found               → NOT retryable
- Rate limiting (429)          → retryable
- Network / timeout            → retryable  (transient)
- Unknown server error         → retryable  (optimistic)

The bot itself never retries; the flag is informational for logs.

HTTP session lifecycle:
- Uses the shared sender session from weatherbot.infra.http_client.
- Call close_all_sessions() during application shutdown.
"""
from __future__ import annotations

import asyncio

import aiohttp

from weatherbot.config import settings
from weatherbot.core.errors import DeliveryError
from weatherbot.infra.http_client import get_sender_session
from weatherbot.infra.logging_config import get_logger, mask_chat_id
from weatherbot.infra.metrics import inc_counter

logger = get_logger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _bot_url(method: str, token: str | None = None) -> str:
    """Build Telegram Bot API URL."""
    bot_token = token or settings.telegram_bot_token
    return f"{TELEGRAM_API_BASE}/bot{bot_token}/{method}"


# ---------------------------------------------------------------------------
# Error type
# ---------------------------------------------------------------------------

class TelegramSendError(DeliveryError):
    """Error calling the Telegram Bot API.

    Attributes:
        status:     HTTP status code (0 for connection-level errors).
        error_code: Telegram-specific error code from the response body.
        retryable:  Whether the failure looks transient.
    """

    def __init__(
        self,
        status: int,
        error_code: int | None,
        message: str,
        *,
        retryable: bool = False,
    ):
        self.status = status
        self.error_code = error_code
        self.retryable = retryable
        super().__init__(f"Telegram API error {status} (code={error_code}): {message}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class TelegramMessageSender:
    """``MessageSender`` implementation backed by ``sendMessage``."""

    def __init__(self, token: str | None = None):
        self._token = token

    async def send(self, conversation_id: str, text: str) -> None:
        await send_text_message(conversation_id, text, token=self._token)


async def send_text_message(
    chat_id: str,
    text: str,
    token: str | None = None,
) -> dict:
    """
    Send a plain-text message via Telegram Bot API.

    No parse_mode: replies echo user input, which must not be
    interpreted as markup.

    Raises:
        TelegramSendError: On API errors
    """
    url = _bot_url("sendMessage", token)
    payload = {
        "chat_id": chat_id,
        "text": text,
    }

    return await _send_request(url, payload, chat_id)


async def delete_webhook(token: str | None = None) -> dict:
    """Remove webhook so polling can work."""
    url = _bot_url("deleteWebhook", token)
    return await _send_request(url, {}, "system")


async def set_webhook(
    webhook_url: str,
    secret_token: str | None = None,
    token: str | None = None,
) -> dict:
    """
    Set webhook URL for Telegram bot.

    Args:
        webhook_url: Public HTTPS URL for receiving updates
        secret_token: Secret token for X-Telegram-Bot-Api-Secret-Token header validation
        token: Bot token override
    """
    url = _bot_url("setWebhook", token)
    payload: dict = {"url": webhook_url, "allowed_updates": ["message"]}
    if secret_token:
        payload["secret_token"] = secret_token

    return await _send_request(url, payload, "system")


async def set_my_commands(commands: list[dict], token: str | None = None) -> dict:
    """
    Publish the bot command menu.

    Args:
        commands: ``[{"command": "start", "description": "..."}, ...]``
    """
    url = _bot_url("setMyCommands", token)
    return await _send_request(url, {"commands": commands}, "system")


async def get_updates(
    offset: int | None = None,
    timeout: int = 30,
    token: str | None = None,
) -> list[dict]:
    """
    Long-poll for updates via getUpdates.

    Args:
        offset: Identifier of the first update to be returned
        timeout: Long-polling timeout in seconds
        token: Bot token override

    Returns:
        List of Update dicts
    """
    url = _bot_url("getUpdates", token)
    payload: dict = {"timeout": timeout, "allowed_updates": ["message"]}
    if offset is not None:
        payload["offset"] = offset

    session = get_sender_session()
    try:
        async with session.post(
            url,
            json=payload,
            timeout=aiohttp.ClientTimeout(total=timeout + 10, connect=5),
        ) as resp:
            body = await _safe_response_json(resp)

            if resp.status == 200 and body and body.get("ok"):
                return body.get("result", [])

            error_desc = (body or {}).get("description", "Unknown error")
            error_code = (body or {}).get("error_code")

            raise TelegramSendError(
                resp.status, error_code, error_desc,
                retryable=resp.status == 429 or resp.status >= 500,
            )

    except TelegramSendError:
        raise
    except aiohttp.ClientError as exc:
        logger.error(f"Telegram getUpdates connection error: {exc}", exc_info=True)
        raise TelegramSendError(0, None, str(exc), retryable=True)
    except asyncio.TimeoutError as exc:
        raise TelegramSendError(0, None, "getUpdates timeout", retryable=True) from exc


# ---------------------------------------------------------------------------
# Internal
# ---------------------------------------------------------------------------

async def _safe_response_json(resp: aiohttp.ClientResponse) -> dict | None:
    """Parse JSON from response, returning None if body is not valid JSON."""
    try:
        return await resp.json()
    except (aiohttp.ContentTypeError, ValueError):
        logger.warning(f"Telegram API returned non-JSON body: status={resp.status}")
        return None


async def _send_request(url: str, payload: dict, chat_id: str) -> dict:
    """
    Execute a Telegram Bot API request with error handling.
    """
    try:
        session = get_sender_session()
        async with session.post(url, json=payload) as resp:
            body = await _safe_response_json(resp)

            if resp.status == 200 and body and body.get("ok"):
                result = body.get("result", {})
                msg_id = result.get("message_id", "unknown") if isinstance(result, dict) else "ok"
                logger.info(f"Telegram request ok: to={mask_chat_id(chat_id)}, msg_id={msg_id}")
                inc_counter("telegram_outbound_sent")
                return body

            # --- Error path ------------------------------------------------
            error_desc = (body or {}).get("description", "Unknown error")
            error_code = (body or {}).get("error_code")

            # -- Auth failure: token invalid --------
            if resp.status == 401 or error_code == 401:
                logger.error(f"Telegram API auth error (token invalid): {error_desc}")
                inc_counter("telegram_outbound_auth_error")
                raise TelegramSendError(
                    resp.status, error_code, error_desc, retryable=False,
                )

            # -- Forbidden: bot blocked by user --
            if resp.status == 403:
                logger.warning(f"Telegram API forbidden: {error_desc}")
                inc_counter("telegram_outbound_forbidden")
                raise TelegramSendError(
                    resp.status, error_code, error_desc, retryable=False,
                )

            # -- Bad request: chat not found, message too long, etc. --
            if resp.status == 400:
                logger.warning(f"Telegram API bad request: {error_desc}")
                inc_counter("telegram_outbound_bad_request")
                raise TelegramSendError(
                    resp.status, error_code, error_desc, retryable=False,
                )

            # -- Rate limit --------------
            if resp.status == 429:
                retry_after = (body or {}).get("parameters", {}).get("retry_after", 30)
                logger.warning(f"Telegram API rate limit, retry_after={retry_after}s")
                inc_counter("telegram_outbound_rate_limited")
                raise TelegramSendError(
                    resp.status, error_code, error_desc, retryable=True,
                )

            logger.error(f"Telegram API error: status={resp.status}, code={error_code}, msg={error_desc}")
            inc_counter("telegram_outbound_error")
            raise TelegramSendError(
                resp.status, error_code, error_desc, retryable=True,
            )

    except TelegramSendError:
        raise
    except aiohttp.ClientError as exc:
        logger.error(f"Telegram API connection error: {exc}", exc_info=True)
        inc_counter("telegram_outbound_connection_error")
        raise TelegramSendError(0, None, str(exc), retryable=True)
    except asyncio.TimeoutError as exc:
        logger.error("Telegram API timeout")
        inc_counter("telegram_outbound_connection_error")
        raise TelegramSendError(0, None, "timeout", retryable=True) from exc
