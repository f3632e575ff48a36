# weatherbot/transport/adapters.py
"""
Adapters to convert provider-specific payloads into domain models.
These are pure converters - they don't contain dialogue logic.
"""
from __future__ import annotations

from weatherbot.core.domain import InboundMessage, LocationData
from weatherbot.infra.logging_config import get_logger, mask_chat_id

logger = get_logger(__name__)


class TelegramAdapter:
    """
    Adapter for Telegram Bot API messages.

    Telegram sends JSON Updates with structure:
    {
      "update_id": 123456,
      "message": {
        "message_id": 42,
        "from": {"id": 123, "first_name": "User", ...},
        "chat": {"id": 123, "type": "private", ...},
        "date": 1234567890,
        "text": "Hello",
        "location": {"latitude": 40.4, "longitude": -3.7},
        ...
      }
    }

    Messages without text or location (stickers, photos, voice) are still
    delivered to the engine: the dialogue answers them with a re-prompt.
    """

    def adapt_update(self, update: dict) -> list[InboundMessage]:
        """
        Convert a Telegram Update dict to list of InboundMessages.
        Returns empty list for non-message updates.
        """
        # Only handle regular messages (not edited, channel posts, etc.)
        message = update.get("message")
        if not message:
            logger.debug(f"Telegram update: no 'message' field, ignoring (keys={list(update.keys())})")
            return []

        chat = message.get("chat", {})
        chat_id = str(chat.get("id", ""))
        message_id = str(message.get("message_id", ""))

        if not chat_id:
            logger.warning("Telegram message: missing chat.id, ignoring")
            return []

        text = message.get("text")

        # Handle bot commands: strip bot mention suffix (e.g. "/start@MyBot" → "/start")
        if text and text.startswith("/"):
            parts = text.split()
            cmd = parts[0].split("@")[0]
            parts[0] = cmd
            text = " ".join(parts)

        location: LocationData | None = None
        if "location" in message:
            loc = message["location"] or {}
            lat = loc.get("latitude")
            lon = loc.get("longitude")
            if lat is not None and lon is not None:
                try:
                    location = LocationData(latitude=float(lat), longitude=float(lon))
                except (TypeError, ValueError):
                    logger.warning("Telegram message: unparseable location, treating as non-location")

        logger.info(
            f"Telegram message: from={mask_chat_id(chat_id)}, msg_id={message_id}, "
            f"has_text={bool(text)}, has_location={location is not None}"
        )

        return [InboundMessage(
            provider="telegram",
            chat_id=chat_id,
            message_id=f"tg_{chat_id}_{message_id}",  # Ensure uniqueness across chats
            text=text,
            location=location,
        )]

