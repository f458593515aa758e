"""
logging_config.py — Centralized Logging Configuration for Sales Associate

Sets up Loguru as the single logging backend. Intercepts Python's stdlib
logging module so uvicorn, httpx and any getLogger() calls route through
Loguru with the same format and request context.

Business Rules:
- All logs go through Loguru (no print() or bare stdlib handlers)
- JSON lines in production, human-readable with colors in development
- Request ID from middleware is included when available
- LOG_LEVEL env var wins over the configured default

Called by: main.py (lifespan)
Depends on: config.py (log_level, app_url)
"""

import logging
import os
import sys

from loguru import logger

from .config import settings


def setup_logging() -> None:
    """Configure Loguru and intercept stdlib logging. Call once at startup."""
    logger.remove()

    log_level = os.getenv("LOG_LEVEL", settings.log_level).upper()
    app_url = os.getenv("APP_URL", settings.app_url)
    is_production = app_url.startswith("https://") and "localhost" not in app_url

    if is_production:
        # JSON lines to stdout; the platform collects them
        logger.add(
            sys.stdout,
            level=log_level,
            format="{message}",
            serialize=True,
        )
    else:
        logger.add(
            sys.stdout,
            level=log_level,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{extra[request_id]} | {message}"
            ),
            colorize=True,
        )

    logger.configure(extra={"request_id": "-"})

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info("Logging configured", level=log_level, production=is_production)


class _InterceptHandler(logging.Handler):
    """Route stdlib logging records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Skip frames from stdlib logging internals
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )
