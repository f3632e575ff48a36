"""Telegram weather bot: place name or GPS location in, current weather report out."""

__version__ = "1.0.0"
