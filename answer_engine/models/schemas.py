from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ScrapeMethod = Literal["cheerio", "puppeteer", "cache"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Scraping ---


class ContentStats(BaseModel):
    word_count: int
    character_count: int
    paragraph_count: int
    average_word_length: float


class ScrapeMetrics(BaseModel):
    """Timing breakdown of one scrape attempt, offsets in milliseconds."""

    started_at: datetime = Field(default_factory=utc_now)
    static_attempt_ms: float | None = None
    rendered_attempt_ms: float | None = None
    total_ms: float = 0.0
    success: bool = False
    method: ScrapeMethod = "cheerio"


class ScrapeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    content: str = ""
    title: str
    success: bool
    error: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)
    scrape_method: ScrapeMethod | None = None
    metrics: ScrapeMetrics | None = None
    content_stats: ContentStats | None = None

    @model_validator(mode="after")
    def _error_iff_failed(self) -> "ScrapeResult":
        if self.success and self.error is not None:
            raise ValueError("successful scrape result cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("failed scrape result must carry an error")
        if self.success and not self.content.strip():
            raise ValueError("successful scrape result must carry content")
        return self


class ContextSource(BaseModel):
    """The shape a scrape result must have before it reaches the content processor."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    url: str = ""
    title: str = ""
    content: str
    scrape_method: ScrapeMethod | None = None


class ProcessedContent(BaseModel):
    content: str
    was_filtered: bool = False
    filter_reason: str | None = None


class GatherFailure(BaseModel):
    url: str
    error: str


class GatherReport(BaseModel):
    """Outcome of gathering a URL list: results in input order plus skipped URLs."""

    scraping_results: list[ScrapeResult] = Field(default_factory=list)
    skipped: list[GatherFailure] = Field(default_factory=list)


# --- Conversation ---


class ChatEntry(BaseModel):
    user_message: str
    ai_response: str
    timestamp: datetime = Field(default_factory=utc_now)


class QueryAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_casual: bool
    needs_search: bool
    reasoning: str
    suggested_approach: str
    search_query: str | None = None
    confidence_score: float = Field(ge=0.0, le=1.0)
    extracted_urls: list[str] = Field(default_factory=list)
    is_follow_up: bool = False


# --- Pipeline ---


class PipelineMetrics(BaseModel):
    analysis_ms: float = 0.0
    scraping_ms: float = 0.0
    processing_ms: float = 0.0
    response_ms: float = 0.0
    total_ms: float = 0.0


class SourceSummary(BaseModel):
    url: str
    title: str
    content_preview: str
    scrape_method: ScrapeMethod | None = None


class AnswerContext(BaseModel):
    scraping_results: list[SourceSummary]
    analysis: QueryAnalysis


class AnswerResult(BaseModel):
    success: bool
    ai_response: str
    metrics: PipelineMetrics
    context: AnswerContext | None = None
