"""Centralized logging service using loguru."""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger

from answer_engine.config import settings

LOG_DIR = Path("logs")
LOG_DIR.mkdir(exist_ok=True)

# Remove default handler
logger.remove()

logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=settings.app_log_level.upper(),
    colorize=True,
)

logger.add(
    LOG_DIR / "answer_engine_{time:YYYY-MM-DD}.log",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    level="DEBUG",
    rotation="00:00",
    retention="7 days",
    compression="zip",
)

# Reduce noise from network/browser libraries
for logger_name in (
    "httpx",
    "httpcore",
    "asyncio",
    "playwright",
    "redis",
    "openai._base_client",
):
    logging.getLogger(logger_name).setLevel(settings.noisy_log_level.upper())


def log_scrape(
    url: str,
    method: str | None,
    success: bool,
    total_ms: float = 0.0,
    error: Optional[str] = None,
) -> None:
    """Log the outcome of one scrape attempt."""
    scrape_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "url": url,
        "method": method,
        "success": success,
        "total_ms": round(total_ms, 1),
        "error": error,
    }
    if success:
        logger.info(f"SCRAPE: {json.dumps(scrape_data)}")
    else:
        logger.warning(f"SCRAPE: {json.dumps(scrape_data)}")


def log_cache_error(context: str, error: BaseException) -> None:
    """Log a swallowed cache failure with its traceback."""
    details = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    logger.error(f"[Cache Error - {context}]: {error}\n{details}")


def log_event(
    event_type: str,
    message: str,
    **kwargs,
) -> None:
    """Log a generic event."""
    event_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "message": message,
        **kwargs,
    }
    logger.info(f"EVENT: {json.dumps(event_data, default=str)}")
