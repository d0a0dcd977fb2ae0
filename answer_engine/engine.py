from __future__ import annotations

import time
from typing import Awaitable, Callable

from loguru import logger

from answer_engine.config import settings
from answer_engine.errors import InvalidInputError
from answer_engine.gather.service import InformationGatherer, validate_scraping_results
from answer_engine.llm_client import AnswerGenerator, create_enhanced_prompt, fallback_analysis
from answer_engine.models.schemas import (
    AnswerContext,
    AnswerResult,
    ContextSource,
    GatherReport,
    PipelineMetrics,
    ProcessedContent,
    QueryAnalysis,
    ScrapeResult,
    SourceSummary,
)
from answer_engine.processing.content_processor import process_content_for_ai
from answer_engine.scrape.service import ScrapeService
from answer_engine.services.cache import CacheService
from answer_engine.tools import search_provider
from answer_engine.tools.browser_pool import BrowserPool

SearchFn = Callable[[str, int], Awaitable[list[search_provider.SearchResult]]]

PREVIEW_CHARS = 100


def _ms_since(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


class AnswerEngine:
    """Request pipeline: analyze, gather web context, answer, remember the turn."""

    def __init__(
        self,
        *,
        cache: CacheService,
        scraper: ScrapeService,
        gatherer: InformationGatherer,
        generator: AnswerGenerator,
        search: SearchFn = search_provider.search,
        max_search_results: int | None = None,
        max_scraping_results: int | None = None,
    ):
        self.cache = cache
        self.scraper = scraper
        self.gatherer = gatherer
        self.generator = generator
        self.search = search
        self.max_search_results = int(max_search_results or settings.max_search_results)
        self.max_scraping_results = int(max_scraping_results or settings.max_scraping_results)

    @classmethod
    def create(cls, pool: BrowserPool, cache: CacheService | None = None) -> "AnswerEngine":
        """Wire the default collaborators around an externally owned pool."""
        cache = cache or CacheService.from_url(settings.redis_url)
        scraper = ScrapeService(cache=cache, pool=pool)
        return cls(
            cache=cache,
            scraper=scraper,
            gatherer=InformationGatherer(cache=cache, scraper=scraper),
            generator=AnswerGenerator(),
        )

    async def scrape_one(self, url: str) -> ScrapeResult:
        return await self.scraper.scrape(url)

    async def gather(self, query: str, conversation_id: str, urls: list[str]) -> GatherReport:
        return await self.gatherer.gather(query, conversation_id, urls)

    def process_for_context(self, results: list) -> ProcessedContent:
        return process_content_for_ai(validate_scraping_results(results))

    async def answer(self, message: str, conversation_id: str) -> AnswerResult:
        if not conversation_id:
            raise InvalidInputError("Conversation ID is required")
        if not isinstance(message, str) or not message.strip():
            raise InvalidInputError("Message is required")

        metrics = PipelineMetrics()
        started = time.perf_counter()

        history = await self.cache.get_chat_history(conversation_id)

        analysis_started = time.perf_counter()
        analysis = await self._analyze(message, history)
        metrics.analysis_ms = _ms_since(analysis_started)

        scrape_started = time.perf_counter()
        sources = await self._collect_sources(message, conversation_id, analysis)
        sources = sources[: self.max_scraping_results]
        metrics.scraping_ms = _ms_since(scrape_started)

        processing_started = time.perf_counter()
        context = ""
        if sources:
            processed = process_content_for_ai(sources)
            context = processed.content
            logger.info(
                f"Content processing complete: {len(sources)} sources, {len(context)} chars"
            )
        else:
            logger.info("No valid content gathered. Creating a fallback prompt.")
        prompt = create_enhanced_prompt(
            query=message,
            context=context,
            reasoning=analysis.reasoning,
            is_casual=analysis.is_casual,
        )
        metrics.processing_ms = _ms_since(processing_started)

        response_started = time.perf_counter()
        ai_response = await self.generator.generate_answer(prompt)
        metrics.response_ms = _ms_since(response_started)
        metrics.total_ms = _ms_since(started)

        await self.cache.store_chat(conversation_id, message, ai_response)

        answer_context = None
        if sources:
            answer_context = AnswerContext(
                scraping_results=[_summarize(source) for source in sources],
                analysis=analysis,
            )
        return AnswerResult(
            success=True,
            ai_response=ai_response,
            metrics=metrics,
            context=answer_context,
        )

    async def _analyze(self, message: str, history) -> QueryAnalysis:
        try:
            return await self.generator.analyze_intent(message, history)
        except Exception as exc:
            logger.error(f"Query analysis raised, using fallback analysis: {exc}")
            return fallback_analysis()

    async def _collect_sources(
        self,
        message: str,
        conversation_id: str,
        analysis: QueryAnalysis,
    ) -> list[ContextSource]:
        try:
            urls = list(analysis.extracted_urls)
            if urls:
                logger.info(f"Processing user-provided URLs: {urls}")
            elif analysis.needs_search:
                query = analysis.search_query or message
                logger.info(f"Performing search for: {query}")
                results = await self.search(query, self.max_search_results)
                if not results:
                    logger.warning("No search results found. Falling back to direct response.")
                urls = [result.url for result in results]

            if not urls:
                return []
            report = await self.gather(message, conversation_id, urls)
            return validate_scraping_results(report.scraping_results)
        except Exception as exc:
            logger.error(f"Content gathering failed, answering without context: {exc}")
            return []


def _summarize(source: ContextSource) -> SourceSummary:
    preview = source.content[:PREVIEW_CHARS]
    if len(source.content) > PREVIEW_CHARS:
        preview += "..."
    return SourceSummary(
        url=source.url,
        title=source.title,
        content_preview=preview,
        scrape_method=source.scrape_method,
    )
