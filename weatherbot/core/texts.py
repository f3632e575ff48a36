"""
User-facing texts for the weather bot.

``get_text(key, **params)`` resolves a template from ``TEXTS`` and fills in
``str.format`` placeholders.  The command menu shown by ``/help`` and
published to Telegram via ``setMyCommands`` lives in
``COMMAND_DESCRIPTIONS``.
"""
from __future__ import annotations

from weatherbot.core.domain import Command

TEXTS: dict[str, str] = {
    "welcome": "Welcome to the Weather Bot!",
    "cancelled": "Cancelling the dialogue.",
    "q_location": "What is your location?",
    "q_attach_location": "Attach your location 📍\n📎 >> location 🌐",
    "q_province": "In which province or state is {location} located?",
    "q_country": "In which country is {location} ({province})?",
    "err_invalid_name": "Please send me a valid name",
    "err_invalid_location": "❌ Please attach a valid location",
    "err_no_results": "❌ Please check the location, province, and country you provided.",
    "err_service_unavailable": "❌ The weather service is not available right now. Please try again later.",
    "progress_by_name": "Obtaining the climate for {location}, {province} in {country}...",
    "progress_by_coordinates": "Obtaining the climate for your location...",
    "help_header": "Enable commands in the bot",
}

# Order matters: this is the order of the Telegram menu and of /help.
COMMAND_DESCRIPTIONS: list[tuple[Command, str]] = [
    (Command.START, "Start bot 🚀"),
    (Command.GET_WEATHER, "Get weather forecast 🌤️"),
    (Command.GET_WEATHER_LOCATION, "Get weather for my location📍"),
    (Command.CANCEL, "Cancel operation ❌"),
    (Command.HELP, "Help menu 📜"),
]


def get_text(key: str, **params: str) -> str:
    """
    Get a text by key, formatted with *params*.

    Returns *key* itself if no text exists.
    """
    template = TEXTS.get(key)
    if template is None:
        return key
    return template.format(**params) if params else template


def help_text() -> str:
    lines = [f"/{command.value} - {description}" for command, description in COMMAND_DESCRIPTIONS]
    return get_text("help_header") + "\n\n" + "\n".join(lines)


def bot_commands_payload() -> list[dict]:
    """Command list in the shape expected by Telegram ``setMyCommands``."""
    return [
        {"command": command.value, "description": description}
        for command, description in COMMAND_DESCRIPTIONS
    ]
