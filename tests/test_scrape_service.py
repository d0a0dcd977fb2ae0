from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

from answer_engine.models.schemas import ScrapeResult
from answer_engine.scrape.service import ScrapeService, scrape_cache_key
from answer_engine.services.cache import CACHE_DURATION
from answer_engine.tools import content_extractor
from tests.conftest import FakePool

NOT_FOUND_HTML = (
    "<html><body><main><h1>404</h1>"
    "<p>The page you were looking for could not be found on this server, sorry about that.</p>"
    "</main></body></html>"
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _service(cache, handler, pool=None) -> ScrapeService:
    return ScrapeService(cache=cache, pool=pool or FakePool(), http_client=_client(handler))


def _no_render(monkeypatch):
    async def fail_render(*_args, **_kwargs):
        raise AssertionError("rendered extraction should not run")

    monkeypatch.setattr(content_extractor, "extract_dynamic", fail_render)


@pytest.mark.asyncio
async def test_static_article_succeeds_and_is_cached(cache, fake_redis, article_html, monkeypatch):
    _no_render(monkeypatch)
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, text=article_html)

    service = _service(cache, handler)
    result = await service.scrape("https://example.com/wetlands")

    assert result.success is True
    assert result.error is None
    assert result.scrape_method == "cheerio"
    assert "coastal wetlands" in result.content
    assert result.content_stats is not None and result.content_stats.word_count >= 100
    assert result.metrics.method == "cheerio"
    assert result.metrics.static_attempt_ms is not None
    assert result.metrics.rendered_attempt_ms is None
    assert "Mozilla" in requests[0].headers["User-Agent"]

    key = scrape_cache_key("https://example.com/wetlands")
    assert key in fake_redis.values
    assert fake_redis.expiry[key] == CACHE_DURATION


@pytest.mark.asyncio
async def test_cache_hit_skips_network_and_rendering(cache, article_html, monkeypatch):
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, text=article_html)

    service = _service(cache, handler)
    first = await service.scrape("https://example.com/wetlands")

    _no_render(monkeypatch)
    second = await service.scrape("https://example.com/wetlands")

    assert calls == 1
    assert second.scrape_method == "cache"
    assert second.metrics.method == "cache"
    assert second.content == first.content
    assert second.success == first.success
    assert second.url == first.url


@pytest.mark.asyncio
async def test_falls_back_to_rendered_extraction(cache, fake_redis, monkeypatch):
    rendered_text = "Rendered paragraphs describe the dashboard in plenty of detail today. " * 12

    async def fake_render(url, pool, **_kwargs):
        assert url == "https://example.com/spa"
        return rendered_text

    monkeypatch.setattr(content_extractor, "extract_dynamic", fake_render)
    service = _service(cache, lambda _request: httpx.Response(200, text="<div id='app'></div>"))

    result = await service.scrape("https://example.com/spa")

    assert result.success is True
    assert result.scrape_method == "puppeteer"
    assert result.content == rendered_text
    assert result.metrics.rendered_attempt_ms is not None
    assert scrape_cache_key("https://example.com/spa") in fake_redis.values


@pytest.mark.asyncio
async def test_not_found_page_fails_after_both_strategies(cache, fake_redis, monkeypatch):
    rendered_calls: list[str] = []

    async def fake_render(url, pool, **_kwargs):
        rendered_calls.append(url)
        return content_extractor.extract_rendered(NOT_FOUND_HTML)

    monkeypatch.setattr(content_extractor, "extract_dynamic", fake_render)
    service = _service(cache, lambda _request: httpx.Response(404, text=NOT_FOUND_HTML))

    result = await service.scrape("https://example.com/missing")

    assert rendered_calls == ["https://example.com/missing"]
    assert result.success is False
    assert result.error == "Content validation failed"
    assert result.content == ""
    assert result.content_stats is None
    assert fake_redis.values == {}


@pytest.mark.parametrize("url", ["", "ftp://example.com/file", "example.com", None])
@pytest.mark.asyncio
async def test_invalid_url_fails_fast(cache, url, monkeypatch):
    _no_render(monkeypatch)

    def handler(_request):
        raise AssertionError("no fetch expected")

    result = await _service(cache, handler).scrape(url)

    assert result.success is False
    assert result.error == "Invalid URL provided"
    assert result.title == "Invalid URL"


@pytest.mark.asyncio
async def test_exceptions_become_failure_results(cache, monkeypatch):
    _no_render(monkeypatch)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await _service(cache, handler).scrape("https://unreachable.example")

    assert result.success is False
    assert "connection refused" in result.error
    assert result.title == "Scraping Failed"


@pytest.mark.asyncio
async def test_navigation_timeout_becomes_failure_result(cache, monkeypatch):
    async def slow_render(*_args, **_kwargs):
        raise TimeoutError("Timeout 15000ms exceeded")

    monkeypatch.setattr(content_extractor, "extract_dynamic", slow_render)
    service = _service(cache, lambda _request: httpx.Response(200, text="<p>tiny</p>"))

    result = await service.scrape("https://example.com/slow")

    assert result.success is False
    assert "15000ms" in result.error
    assert result.metrics.method == "puppeteer"


@pytest.mark.asyncio
async def test_malformed_cache_entry_is_ignored(cache, fake_redis, article_html):
    url = "https://example.com/wetlands"
    fake_redis.values[scrape_cache_key(url)] = '{"unexpected": true}'

    result = await _service(cache, lambda _request: httpx.Response(200, text=article_html)).scrape(url)

    assert result.success is True
    assert result.scrape_method == "cheerio"


@pytest.mark.parametrize("method", ["static", "rendered", "playwright"])
def test_scrape_method_only_accepts_contract_values(method):
    with pytest.raises(ValidationError):
        ScrapeResult(url="https://example.com", content="text", title="t", success=True, scrape_method=method)
