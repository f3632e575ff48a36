# weatherbot/transport/telegram_webhook.py
"""
Telegram Bot API webhook handler.

Handles:
- POST /webhooks/telegram: inbound Updates from Telegram

Security features:
- X-Telegram-Bot-Api-Secret-Token header validation (if configured)

Telegram may deliver updates over several parallel connections, so events
are serialized per chat with ``ChatLocks`` before they reach the service.
The endpoint always answers 200 for well-authenticated requests so
Telegram does not retry.
"""
from __future__ import annotations

import hmac
import time

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

from weatherbot.config import settings
from weatherbot.core.errors import TransportError
from weatherbot.core.use_cases import WeatherBotService
from weatherbot.transport.adapters import TelegramAdapter
from weatherbot.transport.chat_locks import ChatLocks
from weatherbot.infra.logging_config import get_logger, LogContext, mask_chat_id
from weatherbot.infra.metrics import AppMetrics, inc_counter

logger = get_logger(__name__)

_chat_locks = ChatLocks()


# -------------------------------------------------------------------------
# Secret Token Verification
# -------------------------------------------------------------------------

def _verify_secret_token(request: Request) -> bool:
    """
    Verify X-Telegram-Bot-Api-Secret-Token header.
    Returns True if valid or if secret token verification is disabled.
    """
    if not settings.telegram_webhook_secret:
        return True

    header_token = request.headers.get("X-Telegram-Bot-Api-Secret-Token", "")
    if not header_token:
        logger.warning("Telegram webhook: missing X-Telegram-Bot-Api-Secret-Token header")
        return False

    return hmac.compare_digest(header_token, settings.telegram_webhook_secret)


# -------------------------------------------------------------------------
# POST: Inbound Updates
# -------------------------------------------------------------------------

async def telegram_webhook_handler(
    request: Request,
    *,
    service_override: WeatherBotService | None = None,
) -> JSONResponse:
    """
    Handle Telegram Bot API webhook Updates (POST).

    Args:
        request: FastAPI request
        service_override: Optional service (overrides app.state.service)
    """
    start_time = time.time()

    if not _verify_secret_token(request):
        logger.error("Telegram webhook: secret token verification failed")
        AppMetrics.webhook_validation_failed("telegram")
        raise HTTPException(status_code=403, detail="Invalid secret token")

    # Always return 200 on malformed input
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("Telegram webhook: invalid JSON payload, returning 200 to suppress retries")
        inc_counter("telegram_webhook_malformed_payload")
        return JSONResponse({"ok": True}, status_code=200)

    if not isinstance(payload, dict):
        inc_counter("telegram_webhook_malformed_payload")
        return JSONResponse({"ok": True}, status_code=200)

    messages = TelegramAdapter().adapt_update(payload)
    if not messages:
        # Non-message update (edited_message, callback_query): acknowledge
        return JSONResponse({"ok": True}, status_code=200)

    service: WeatherBotService = service_override or request.app.state.service
    request_id = getattr(request.state, "request_id", "unknown")

    results = []
    for message in messages:
        log_ctx = LogContext(logger, chat_id=message.chat_id, request_id=request_id)
        try:
            log_ctx.info(
                f"Telegram webhook received: chat_id={mask_chat_id(message.chat_id)}, "
                f"has_text={message.has_text()}, has_location={message.has_location()}"
            )

            async with _chat_locks.hold(message.chat_id):
                with AppMetrics.track_processing_time("telegram_webhook"):
                    result = await service.process_inbound_message(message)

            inc_counter("inbound_messages_total", provider="telegram")
            elapsed_ms = (time.time() - start_time) * 1000
            log_ctx.info(
                f"Telegram webhook processed: state={result['state']}, "
                f"elapsed={elapsed_ms:.0f}ms"
            )
            results.append({
                "message_id": message.message_id,
                "status": "processed",
                "state": result["state"],
            })

        except TransportError as exc:
            log_ctx.error(f"Telegram webhook delivery failed: {exc}")
            inc_counter("outbound_messages_total", provider="telegram", status="failed")
            results.append({"message_id": message.message_id, "status": "error"})

        except Exception as exc:
            log_ctx.error(
                f"Telegram webhook processing failed: {exc.__class__.__name__}",
                exc_info=True,
            )
            results.append({"message_id": message.message_id, "status": "error"})

    # Always return 200 to prevent Telegram retries
    return JSONResponse({"ok": True, "processed": len(results)}, status_code=200)
