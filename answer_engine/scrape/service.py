from __future__ import annotations

import hashlib
import time
from typing import Any

import httpx
from pydantic import ValidationError

from answer_engine.config import settings
from answer_engine.models.schemas import ScrapeMethod, ScrapeMetrics, ScrapeResult, utc_now
from answer_engine.services.cache import CacheService
from answer_engine.services.logger import log_scrape, logger
from answer_engine.tools import content_extractor, quality, web_utils
from answer_engine.tools.browser_pool import BrowserPool

SCRAPE_KEY_PREFIX = "scrape:"


def scrape_cache_key(url: str) -> str:
    return f"{SCRAPE_KEY_PREFIX}{hashlib.sha256(url.encode('utf-8')).hexdigest()}"


def _ms_since(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


class _Timer:
    def __init__(self) -> None:
        self.started_at = utc_now()
        self._start = time.perf_counter()

    def elapsed_ms(self) -> float:
        return _ms_since(self._start)


class ScrapeService:
    """Cache, then static extraction, then a rendered fallback, for one URL.

    :meth:`scrape` never raises; every outcome is a :class:`ScrapeResult`.
    """

    def __init__(
        self,
        *,
        cache: CacheService,
        pool: BrowserPool,
        http_client: httpx.AsyncClient | None = None,
        fetch_timeout: float | None = None,
    ):
        self.cache = cache
        self.pool = pool
        self._http_client = http_client
        self.fetch_timeout = float(
            fetch_timeout if fetch_timeout is not None else settings.scrape_fetch_timeout_s
        )

    async def scrape(self, url: str) -> ScrapeResult:
        logger.info(f"=== Starting Web Scraping for {url} ===")
        timer = _Timer()
        static_ms: float | None = None
        rendered_ms: float | None = None

        def metrics(method: ScrapeMethod, success: bool) -> ScrapeMetrics:
            return ScrapeMetrics(
                started_at=timer.started_at,
                static_attempt_ms=static_ms,
                rendered_attempt_ms=rendered_ms,
                total_ms=timer.elapsed_ms(),
                success=success,
                method=method,
            )

        if not web_utils.is_valid_url(url):
            return self._failure(
                url if isinstance(url, str) else "",
                title="Invalid URL",
                error="Invalid URL provided",
                metrics=metrics("cheerio", False),
            )

        cache_key = scrape_cache_key(url)
        phase: ScrapeMethod = "cheerio"
        attempt_start = time.perf_counter()
        try:
            cached = await self._load_cached(cache_key)
            if cached is not None:
                logger.info(f"Cache hit for URL: {url}")
                return cached.model_copy(
                    update={
                        "scrape_method": "cache",
                        "metrics": metrics("cache", cached.success),
                    }
                )

            logger.debug("Attempting static extraction...")
            attempt_start = time.perf_counter()
            html = await self._fetch_html(url)
            content = content_extractor.extract_static(html)
            static_ms = _ms_since(attempt_start)
            if quality.is_meaningful(content):
                result = self._success(url, content, "cheerio", metrics("cheerio", True))
                await self.cache.set(cache_key, result)
                return result

            logger.debug("Static extraction insufficient, rendering page...")
            phase = "puppeteer"
            attempt_start = time.perf_counter()
            content = await content_extractor.extract_dynamic(url, self.pool)
            rendered_ms = _ms_since(attempt_start)
            if quality.is_meaningful(content):
                result = self._success(url, content, "puppeteer", metrics("puppeteer", True))
                await self.cache.set(cache_key, result)
                return result

            return self._failure(
                url,
                title="Failed to extract meaningful content",
                error="Content validation failed",
                metrics=metrics("puppeteer", False),
            )
        except Exception as exc:
            if phase == "puppeteer":
                rendered_ms = _ms_since(attempt_start)
            elif static_ms is None:
                static_ms = _ms_since(attempt_start)
            return self._failure(
                url,
                title="Scraping Failed",
                error=str(exc) or type(exc).__name__,
                metrics=metrics(phase, False),
            )

    async def _load_cached(self, cache_key: str) -> ScrapeResult | None:
        cached: Any = await self.cache.get(cache_key)
        if cached is None:
            return None
        try:
            return ScrapeResult.model_validate(cached)
        except ValidationError as exc:
            logger.warning(f"Ignoring malformed cached scrape result {cache_key}: {exc}")
            return None

    async def _fetch_html(self, url: str) -> str:
        headers = {
            "User-Agent": content_extractor.USER_AGENT,
            "Accept-Language": content_extractor.ACCEPT_LANGUAGE,
        }
        if self._http_client is not None:
            response = await self._http_client.get(url, headers=headers)
            return response.text

        async with httpx.AsyncClient(
            timeout=self.fetch_timeout,
            follow_redirects=True,
        ) as client:
            response = await client.get(url, headers=headers)
            return response.text

    @staticmethod
    def _success(
        url: str,
        content: str,
        method: ScrapeMethod,
        metrics: ScrapeMetrics,
    ) -> ScrapeResult:
        log_scrape(url, method, True, metrics.total_ms)
        return ScrapeResult(
            url=url,
            content=content,
            title=quality.derive_title(content),
            success=True,
            scrape_method=method,
            metrics=metrics,
            content_stats=quality.content_stats(content),
        )

    @staticmethod
    def _failure(
        url: str,
        *,
        title: str,
        error: str,
        metrics: ScrapeMetrics,
    ) -> ScrapeResult:
        log_scrape(url, None, False, metrics.total_ms, error=error)
        return ScrapeResult(
            url=url,
            content="",
            title=title,
            success=False,
            error=error,
            metrics=metrics,
        )
