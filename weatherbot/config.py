# weatherbot/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal


GOOGLE_GEOCODING_URL = "https://maps.googleapis.com/maps/api/geocode/json"
GOOGLE_WEATHER_URL = "https://weather.googleapis.com/v1/currentConditions:lookup"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Credentials (required at process start)
    telegram_bot_token: str | None = None  # Bot token from @BotFather
    google_api_key: str | None = None  # Shared key for Geocoding + Weather APIs

    # Telegram channel
    telegram_mode: Literal["polling", "webhook"] = "polling"
    telegram_webhook_url: str | None = None  # Public HTTPS URL, e.g. https://bot.example.com/webhooks/telegram
    telegram_webhook_secret: str | None = None  # Secret token for X-Telegram-Bot-Api-Secret-Token
    telegram_poll_timeout: int = 30  # getUpdates long-poll seconds

    # External services
    external_timeout_seconds: float = 5.0  # Per-call timeout for geocoding / weather
    geocoding_url: str = GOOGLE_GEOCODING_URL
    weather_url: str = GOOGLE_WEATHER_URL

    # Monitoring
    enable_metrics: bool = True
    enable_request_logging: bool = True

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    @property
    def is_webhook_mode(self) -> bool:
        return self.telegram_mode == "webhook"

    def validate_required(self) -> list[str]:
        """Return names of required settings that are missing"""
        required_fields = [
            ("telegram_bot_token", self.telegram_bot_token),
            ("google_api_key", self.google_api_key),
        ]
        if self.is_webhook_mode:
            required_fields.append(("telegram_webhook_url", self.telegram_webhook_url))

        return [name for name, value in required_fields if not value]


def warn_on_risky_config(s: "Settings") -> list[str]:
    warnings: list[str] = []

    if s.is_webhook_mode and not s.telegram_webhook_secret:
        warnings.append(
            "telegram_mode=webhook but telegram_webhook_secret is not set "
            "(anyone who knows the URL can post updates)."
        )

    if s.is_production and s.enable_metrics:
        warnings.append("prod: /metrics is enabled and not authenticated.")

    if s.external_timeout_seconds > 10:
        warnings.append(
            f"external_timeout_seconds={s.external_timeout_seconds} "
            "(users wait this long for a failed lookup)."
        )

    return warnings


def validate_or_raise(s: "Settings") -> None:
    """
    Missing credentials are a fatal startup error in every environment.
    """
    missing = s.validate_required()
    if missing:
        raise RuntimeError(f"Missing required settings: {', '.join(missing)}")


settings = Settings()
