# weatherbot/main.py
"""Process entry point: ``weatherbot`` console script / ``python -m weatherbot.main``."""
from __future__ import annotations

import uvicorn

from weatherbot.config import settings, validate_or_raise


def run() -> None:
    # Fail before binding the port when credentials are missing
    validate_or_raise(settings)
    uvicorn.run(
        "weatherbot.transport.http_app:app",
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep our own logging setup
    )


if __name__ == "__main__":
    run()
