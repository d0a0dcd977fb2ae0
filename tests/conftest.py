from __future__ import annotations

from typing import Any

import pytest

from answer_engine.services.cache import CacheService


class FakeRedis:
    """In-memory stand-in for the redis.asyncio string and list commands we use."""

    def __init__(self) -> None:
        self.values: dict[str, Any] = {}
        self.expiry: dict[str, int | None] = {}
        self.lists: dict[str, list[Any]] = {}
        self.get_calls: list[str] = []
        self.fail_with: Exception | None = None
        self.closed = False

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def get(self, key: str) -> Any:
        self._maybe_fail()
        self.get_calls.append(key)
        return self.values.get(key)

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:
        self._maybe_fail()
        self.values[key] = value
        self.expiry[key] = ex
        return True

    async def lpush(self, key: str, *values: Any) -> int:
        self._maybe_fail()
        items = self.lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        return len(items)

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        self._maybe_fail()
        items = self.lists.get(key, [])
        self.lists[key] = items[start : end + 1]
        return True

    async def lrange(self, key: str, start: int, end: int) -> list[Any]:
        self._maybe_fail()
        return list(self.lists.get(key, [])[start : end + 1])

    async def aclose(self) -> None:
        self._maybe_fail()
        self.closed = True


class FakePage:
    def __init__(self, html: str = "", *, goto_error: Exception | None = None) -> None:
        self.html = html
        self.goto_error = goto_error
        self.closed = False
        self.routes: list[tuple[str, Any]] = []
        self.unrouted: list[tuple[str, Any]] = []
        self.goto_calls: list[dict[str, Any]] = []
        self.navigation_timeout: int | None = None

    def set_default_navigation_timeout(self, timeout: int) -> None:
        self.navigation_timeout = timeout

    async def route(self, pattern: str, handler: Any) -> None:
        self.routes.append((pattern, handler))

    async def unroute(self, pattern: str, handler: Any) -> None:
        self.unrouted.append((pattern, handler))

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.goto_calls.append({"url": url, **kwargs})
        if self.goto_error is not None:
            raise self.goto_error

    async def content(self) -> str:
        return self.html

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, page: FakePage | None = None) -> None:
        self.connected = True
        self.closed = False
        self.page = page or FakePage()
        self.new_page_kwargs: list[dict[str, Any]] = []

    def is_connected(self) -> bool:
        return self.connected

    async def new_page(self, **kwargs: Any) -> FakePage:
        self.new_page_kwargs.append(kwargs)
        return self.page

    async def close(self) -> None:
        self.closed = True
        self.connected = False


class FakePool:
    """Pool double that always lends the same browser."""

    max_browsers = 3

    def __init__(self, browser: FakeBrowser | None = None) -> None:
        self.browser = browser or FakeBrowser()
        self.acquired = 0

    async def acquire(self) -> FakeBrowser:
        self.acquired += 1
        return self.browser


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def cache(fake_redis: FakeRedis) -> CacheService:
    return CacheService(fake_redis)


@pytest.fixture
def article_html() -> str:
    sentence = (
        "Researchers measured how coastal wetlands store carbon across many seasons and sites. "
    )
    body = sentence * 20
    return (
        "<html><head><title>Wetlands</title><script>var tracking = true;</script></head>"
        "<body><nav>Home About Contact and a long list of navigation links for the site</nav>"
        f"<article><p>{body}</p></article>"
        "<footer>Copyright footer text that should never be part of the extracted article</footer>"
        "</body></html>"
    )
