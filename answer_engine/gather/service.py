from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from answer_engine.config import settings
from answer_engine.models.schemas import ContextSource, GatherFailure, GatherReport, ScrapeResult
from answer_engine.scrape.service import ScrapeService
from answer_engine.services.cache import SCRAPE_CACHE_PREFIX, CacheService, create_cache_key
from answer_engine.services.logger import log_event, logger


def gather_cache_key(url: str) -> str:
    return create_cache_key(url, SCRAPE_CACHE_PREFIX)


class InformationGatherer:
    """Scrape a URL list in batches no larger than the renderer pool."""

    def __init__(
        self,
        *,
        cache: CacheService,
        scraper: ScrapeService,
        batch_size: int | None = None,
        batch_timeout: float | None = None,
    ):
        self.cache = cache
        self.scraper = scraper
        self.batch_size = max(
            int(batch_size if batch_size is not None else scraper.pool.max_browsers), 1
        )
        self.batch_timeout = float(
            batch_timeout if batch_timeout is not None else settings.gather_batch_timeout_s
        )

    async def gather(
        self,
        query: str,
        conversation_id: str,
        urls: list[str],
    ) -> GatherReport:
        logger.info("=== Starting Information Gathering ===")
        if not urls:
            logger.warning("No URLs provided for scraping. Exiting information gathering.")
            return GatherReport()

        report = GatherReport()
        for start in range(0, len(urls), self.batch_size):
            batch = urls[start : start + self.batch_size]
            try:
                outcomes = await asyncio.wait_for(
                    asyncio.gather(*(self._gather_one(url) for url in batch), return_exceptions=True),
                    timeout=self.batch_timeout,
                )
            except asyncio.TimeoutError:
                logger.error(f"Scraping batch timed out after {self.batch_timeout}s: {batch}")
                report.skipped.extend(
                    GatherFailure(url=url, error="Batch timed out") for url in batch
                )
                continue

            for url, outcome in zip(batch, outcomes):
                if isinstance(outcome, ScrapeResult):
                    report.scraping_results.append(outcome)
                    continue
                logger.error(f"Error scraping URL: {url}: {outcome}")
                report.skipped.append(GatherFailure(url=url, error=str(outcome)))

        log_event(
            "gather_complete",
            "Information gathering complete.",
            query=query,
            conversation_id=conversation_id,
            results=len(report.scraping_results),
            skipped=len(report.skipped),
        )
        return report

    async def _gather_one(self, url: str) -> ScrapeResult:
        cache_key = gather_cache_key(url)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            try:
                result = ScrapeResult.model_validate(cached)
                logger.info(f"Cache hit for URL: {url}")
                return result
            except ValidationError as exc:
                logger.warning(f"Ignoring malformed gathered result for {url}: {exc}")

        logger.info(f"Cache miss for URL: {url}. Scraping...")
        result = await self.scraper.scrape(url)
        if result.success:
            await self.cache.set(cache_key, result)
        return result


def validate_scraping_results(results: Any) -> list[ContextSource]:
    """Keep only results carrying non-empty text content, as ``ContextSource``."""
    if not isinstance(results, (list, tuple)):
        logger.error("Invalid scraping results: Expected an array.")
        return []

    valid: list[ContextSource] = []
    for result in results:
        if isinstance(result, BaseModel):
            candidate: Any = result.model_dump()
        else:
            candidate = result

        if (
            not isinstance(candidate, Mapping)
            or not isinstance(candidate.get("content"), str)
            or not candidate["content"].strip()
        ):
            logger.warning(f"Filtered out invalid scraping result: {result!r}")
            continue

        try:
            valid.append(ContextSource.model_validate(dict(candidate)))
        except ValidationError as exc:
            logger.warning(f"Filtered out invalid scraping result: {exc}")
    return valid
