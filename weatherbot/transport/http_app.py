# weatherbot/transport/http_app.py
"""
HTTP application hosting the weather bot.

Endpoints:
1. Public: /health, /webhooks/telegram (secret-token validated)
2. Internal: /metrics (when enabled)

The lifespan wires the bot together, publishes the command menu and
starts either the Telegram long-polling loop or registers the webhook,
depending on ``settings.telegram_mode``.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from weatherbot.config import settings, validate_or_raise, warn_on_risky_config
from weatherbot.core.engine import ConversationEngine
from weatherbot.core.texts import bot_commands_payload
from weatherbot.core.use_cases import WeatherBotService
from weatherbot.infra.conversation_store import InMemoryConversationStore
from weatherbot.infra.geocoding import GoogleGeoResolver
from weatherbot.infra.http_client import close_all_sessions
from weatherbot.infra.logging_config import setup_logging, get_logger
from weatherbot.infra.metrics import get_metrics_collector
from weatherbot.infra.weather import GoogleWeatherFetcher
from weatherbot.transport.middleware import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    sanitize_error_message,
)
from weatherbot.transport.telegram_polling import TelegramPoller
from weatherbot.transport.telegram_sender import (
    TelegramMessageSender,
    TelegramSendError,
    set_my_commands,
    set_webhook,
)
from weatherbot.transport.telegram_webhook import telegram_webhook_handler

# Initialize logging first
setup_logging(
    level=settings.log_level,
    use_json=settings.is_production
)

logger = get_logger(__name__)


# ============================================================================
# WIRING
# ============================================================================

def build_service() -> WeatherBotService:
    """Assemble engine, store and Telegram sender from settings."""
    sender = TelegramMessageSender(token=settings.telegram_bot_token)
    engine = ConversationEngine(
        geo=GoogleGeoResolver(
            settings.google_api_key,
            base_url=settings.geocoding_url,
            timeout_seconds=settings.external_timeout_seconds,
        ),
        weather=GoogleWeatherFetcher(
            settings.google_api_key,
            base_url=settings.weather_url,
            timeout_seconds=settings.external_timeout_seconds,
        ),
        sender=sender,
    )
    return WeatherBotService(
        engine=engine,
        store=InMemoryConversationStore(),
        sender=sender,
    )


# ============================================================================
# LIFESPAN
# ============================================================================

@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifecycle: startup and shutdown"""

    # STARTUP
    logger.info(
        f"Starting application: env={settings.app_env}, telegram_mode={settings.telegram_mode}"
    )

    missing = settings.validate_required()
    if missing:
        logger.critical(f"Missing required settings: {missing}")
    validate_or_raise(settings)

    for warning in warn_on_risky_config(settings):
        logger.warning(f"[config] {warning}")

    fastapi_app.state.service = build_service()

    try:
        await set_my_commands(bot_commands_payload())
    except TelegramSendError as exc:
        logger.critical(f"The command menu could not be set: {exc}")
        await close_all_sessions()
        raise RuntimeError("The command menu could not be set") from exc

    poller: TelegramPoller | None = None
    if settings.is_webhook_mode:
        try:
            await set_webhook(
                settings.telegram_webhook_url,
                secret_token=settings.telegram_webhook_secret,
            )
        except TelegramSendError as exc:
            logger.critical(f"The Telegram webhook could not be registered: {exc}")
            await close_all_sessions()
            raise RuntimeError("The Telegram webhook could not be registered") from exc
        logger.info("Telegram webhook registered")
    else:
        poller = TelegramPoller(
            service=fastapi_app.state.service,
            poll_timeout=settings.telegram_poll_timeout,
        )
        await poller.start()
    fastapi_app.state.telegram_poller = poller

    logger.info("Application startup complete")

    yield

    # SHUTDOWN
    logger.info("Shutting down application")

    if poller is not None:
        await poller.stop()

    await close_all_sessions()
    logger.info("Application shutdown complete")


# ============================================================================
# CREATE APP
# ============================================================================

app = FastAPI(
    title="Weather Bot",
    description="Telegram bot that reports the current weather for a place or a shared location",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
)

app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(RequestLoggingMiddleware, enabled=settings.enable_request_logging)
app.add_middleware(RequestIDMiddleware)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with appropriate logging"""
    if exc.status_code >= 500:
        logger.error(f"Server error: {exc.detail}", extra={"status_code": exc.status_code})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.error(f"Unhandled exception: {exc.__class__.__name__}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={"error": sanitize_error_message(exc, settings.is_production)},
    )


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/health")
def health():
    """
    Basic health check - PUBLIC endpoint.
    Returns minimal information.
    """
    return {"status": "healthy"}


@app.post("/webhooks/telegram")
async def webhook_telegram(request: Request):
    """
    Telegram Bot API webhook endpoint - PUBLIC but VALIDATED.

    - X-Telegram-Bot-Api-Secret-Token validation (if configured)
    - Per-chat serialization of events
    """
    if not settings.is_webhook_mode:
        raise HTTPException(status_code=404, detail="Not found")
    return await telegram_webhook_handler(request)


@app.get("/metrics")
def metrics():
    """
    Metrics endpoint.
    Exposes operational counters and histograms as JSON.
    """
    if not settings.enable_metrics:
        raise HTTPException(status_code=404, detail="Not found")
    return get_metrics_collector().get_metrics()
