from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

import httpx
from loguru import logger
from openai import RateLimitError

T = TypeVar("T")

MAX_RETRIES = 3
RETRY_DELAY = 1.0  # seconds


def is_rate_limit_error(exc: BaseException) -> bool:
    if isinstance(exc, RateLimitError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 429
    return "429" in str(exc)


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = MAX_RETRIES,
    delay: float = RETRY_DELAY,
) -> T:
    """Retry ``operation`` on rate limits with linear backoff; re-raise anything else."""
    attempts = max(max_retries, 1)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as exc:
            if not is_rate_limit_error(exc) or attempt == attempts:
                raise
            logger.warning(f"Rate limit hit. Retrying in {delay * attempt:.1f}s...")
            await asyncio.sleep(delay * attempt)
    raise RuntimeError("unreachable")
