# weatherbot/transport/telegram_polling.py
"""
Telegram Bot API long-polling handler.

Alternative to webhook mode. Calls getUpdates in a loop with long-polling.
Simpler ops (no public URL or SSL required).

Each update is handled in its own task, so a slow weather lookup in one
chat never holds up the others. Events of the same chat are serialized
with ``ChatLocks`` and keep their arrival order.

Usage:
    poller = TelegramPoller(service=service)
    await poller.start()
    # ... on shutdown:
    await poller.stop()
"""
from __future__ import annotations

import asyncio

from weatherbot.core.errors import TransportError
from weatherbot.core.use_cases import WeatherBotService
from weatherbot.transport.adapters import TelegramAdapter
from weatherbot.transport.chat_locks import ChatLocks
from weatherbot.transport.telegram_sender import (
    get_updates,
    delete_webhook,
    TelegramSendError,
)
from weatherbot.infra.logging_config import get_logger, LogContext, mask_chat_id
from weatherbot.infra.metrics import AppMetrics, inc_counter

logger = get_logger(__name__)

_MAX_BACKOFF_SECONDS = 30


class TelegramPoller:
    """
    Long-polling loop for receiving Telegram updates.

    Calls getUpdates with a 30-second timeout (long-poll) and hands each
    update to its own task, which feeds it through the weather bot service.
    In-flight tasks are tracked so `stop()` can wait for them.

    Error handling:
    - On API errors: exponential backoff (1s → 2s → 4s → ... → 30s max)
    - On processing errors: log and continue (don't lose the offset)
    - On cancellation: graceful shutdown
    """

    def __init__(
        self,
        service: WeatherBotService,
        poll_timeout: int = 30,
        *,
        token: str | None = None,
    ):
        self.service = service
        self.poll_timeout = poll_timeout
        self._adapter = TelegramAdapter()
        self._token = token
        self._task: asyncio.Task | None = None
        self._offset: int | None = None
        self._running = False
        self._backoff = 1  # seconds, doubles on error
        self._locks = ChatLocks()
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the polling loop as a background task."""
        if self._running:
            logger.warning("Telegram poller already running")
            return

        # Remove any existing webhook so polling can work
        try:
            await delete_webhook(token=self._token)
            logger.info("Telegram webhook removed (switching to polling mode)")
        except TelegramSendError as e:
            logger.warning(f"Could not delete Telegram webhook: {e}")

        self._running = True
        self._task = asyncio.create_task(self._poll_loop(), name="tg_poller")
        logger.info(f"Telegram poller started (timeout={self.poll_timeout}s)")

    async def stop(self) -> None:
        """Stop the polling loop gracefully."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        await self.drain()
        logger.info("Telegram poller stopped")

    async def _poll_loop(self) -> None:
        """Main polling loop."""
        while self._running:
            try:
                await self.poll_once()
            except TelegramSendError as e:
                if not self._running:
                    break
                logger.error(f"Telegram polling error: {e}, backing off {self._backoff}s")
                await asyncio.sleep(self._backoff)
                self._backoff = min(self._backoff * 2, _MAX_BACKOFF_SECONDS)

            except asyncio.CancelledError:
                break

            except Exception as e:
                if not self._running:
                    break
                logger.error(f"Telegram polling unexpected error: {e}", exc_info=True)
                await asyncio.sleep(self._backoff)
                self._backoff = min(self._backoff * 2, _MAX_BACKOFF_SECONDS)

    async def poll_once(self) -> int:
        """Fetch one batch of updates and process it. Returns the batch size."""
        updates = await get_updates(
            offset=self._offset,
            timeout=self.poll_timeout,
            token=self._token,
        )

        # Reset backoff on successful poll
        self._backoff = 1

        for update in updates:
            # Advance offset to acknowledge this update
            update_id = update.get("update_id", 0)
            self._offset = update_id + 1

            # Process update in the background (errors here don't stop the loop)
            task = asyncio.create_task(self._process_update(update))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

        return len(updates)

    async def drain(self) -> None:
        """Wait until every update handed out so far has been processed."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _process_update(self, update: dict) -> None:
        """Process a single Telegram Update through the weather bot service."""
        for message in self._adapter.adapt_update(update):
            log_ctx = LogContext(logger, chat_id=message.chat_id)
            try:
                log_ctx.info(
                    f"Telegram poll received: chat_id={mask_chat_id(message.chat_id)}, "
                    f"has_text={message.has_text()}, has_location={message.has_location()}"
                )

                async with self._locks.hold(message.chat_id):
                    with AppMetrics.track_processing_time("telegram_poll"):
                        result = await self.service.process_inbound_message(message)

                inc_counter("inbound_messages_total", provider="telegram")
                log_ctx.info(
                    f"Telegram poll processed: state={result['state']}, "
                    f"replies={len(result['replies'])}"
                )

            except TransportError as exc:
                log_ctx.error(f"Telegram poll delivery failed: {exc}")
                inc_counter("outbound_messages_total", provider="telegram", status="failed")

            except Exception as exc:
                log_ctx.error(
                    f"Telegram poll processing failed: {exc.__class__.__name__}",
                    exc_info=True,
                )
