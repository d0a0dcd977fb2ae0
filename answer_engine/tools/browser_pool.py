"""Bounded pool of headless Chromium sessions shared across requests."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from answer_engine.config import settings
from answer_engine.errors import ScrapingError

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

Launcher = Callable[[], Awaitable[Any]]


@dataclass
class PooledBrowser:
    browser: Any
    last_used: float


class BrowserPool:
    """At most ``max_browsers`` live sessions; at the cap, sessions are shared LRU.

    Callers borrow a browser with :meth:`acquire`, open their own page on it
    and close that page when done. The pool owns browser lifetimes.
    """

    def __init__(
        self,
        *,
        max_browsers: int | None = None,
        health_check_interval: float | None = None,
        headless: bool | None = None,
        launcher: Launcher | None = None,
    ):
        self.max_browsers = max(
            int(max_browsers if max_browsers is not None else settings.browser_pool_size), 1
        )
        self.health_check_interval = float(
            health_check_interval
            if health_check_interval is not None
            else settings.browser_health_check_interval_s
        )
        self.headless = settings.browser_headless if headless is None else bool(headless)
        self._launcher = launcher
        self._browsers: list[PooledBrowser] = []
        self._lock = asyncio.Lock()
        self._playwright: Any | None = None
        self._health_task: asyncio.Task | None = None
        self._closed = False

    async def __aenter__(self) -> "BrowserPool":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    @property
    def size(self) -> int:
        return len(self._browsers)

    def start(self) -> None:
        """Schedule the periodic health check on the running loop."""
        if self._health_task is None or self._health_task.done():
            self._closed = False
            self._health_task = asyncio.create_task(self._health_loop())

    async def acquire(self) -> Any:
        async with self._lock:
            if self._closed:
                raise ScrapingError("Browser pool is shut down", "browser-pool", "rendered")

            await self._check_health()

            if len(self._browsers) < self.max_browsers:
                try:
                    browser = await self._launch()
                except Exception as exc:
                    logger.error(f"Browser launch failed: {exc}")
                    raise ScrapingError(
                        f"Failed to launch browser: {exc}",
                        "browser-pool",
                        "rendered",
                    ) from exc
                if self._closed:
                    await self._close_quietly(browser)
                    raise ScrapingError("Browser pool is shut down", "browser-pool", "rendered")
                self._browsers.append(PooledBrowser(browser=browser, last_used=time.monotonic()))
                logger.debug(f"Launched browser {len(self._browsers)}/{self.max_browsers}")
                return browser

            least_recent = min(self._browsers, key=lambda entry: entry.last_used)
            least_recent.last_used = time.monotonic()
            return least_recent.browser

    async def release_unhealthy(self, browser: Any) -> None:
        """Close ``browser`` and drop it from the pool."""
        self._browsers = [entry for entry in self._browsers if entry.browser is not browser]
        await self._close_quietly(browser)

    async def check_health(self) -> None:
        async with self._lock:
            await self._check_health()

    async def shutdown(self) -> None:
        """Stop the health check and close every session. Safe to call twice."""
        self._closed = True
        task, self._health_task = self._health_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        # An acquire() still mid-launch sees _closed and closes its own browser.
        browsers, self._browsers = self._browsers, []
        results = await asyncio.gather(
            *(entry.browser.close() for entry in browsers),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Error closing browser during shutdown: {result}")

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as exc:
                logger.warning(f"Error stopping Playwright during shutdown: {exc}")
            finally:
                self._playwright = None

    async def _check_health(self) -> None:
        unhealthy = []
        for entry in self._browsers:
            try:
                await self._probe(entry.browser)
            except Exception as exc:
                logger.warning(f"Evicting unhealthy browser: {exc}")
                unhealthy.append(entry.browser)

        for browser in unhealthy:
            await self.release_unhealthy(browser)

    async def _health_loop(self) -> None:
        while True:
            await asyncio.sleep(self.health_check_interval)
            try:
                await self.check_health()
            except Exception as exc:
                logger.error(f"Browser health check failed: {exc}")

    @staticmethod
    async def _probe(browser: Any) -> None:
        if not browser.is_connected():
            raise RuntimeError("browser disconnected")

    @staticmethod
    async def _close_quietly(browser: Any) -> None:
        try:
            await browser.close()
        except Exception as exc:
            logger.warning(f"Error closing browser: {exc}")

    async def _launch(self) -> Any:
        if self._launcher is not None:
            return await self._launcher()

        if self._playwright is None:
            from playwright.async_api import async_playwright

            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(
            headless=self.headless,
            args=LAUNCH_ARGS,
        )
