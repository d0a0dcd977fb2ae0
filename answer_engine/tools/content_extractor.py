from __future__ import annotations

from typing import TYPE_CHECKING

from bs4 import BeautifulSoup
from loguru import logger

from answer_engine.config import settings

if TYPE_CHECKING:
    from answer_engine.tools.browser_pool import BrowserPool

BOILERPLATE_SELECTOR = (
    "script, style, nav, footer, header, .ads, #cookie-notice, "
    ".cookie-banner, .social-share, .comments, .related-posts, .sidebar, "
    'iframe, noscript, [style*="display: none"], [hidden]'
)

CONTAINER_SELECTORS = (
    "article",
    "main",
    ".content",
    "#content",
    ".post-content",
    '[role="main"]',
    ".article-body",
    ".entry-content",
)
CONTENT_SELECTORS = CONTAINER_SELECTORS + ("p",)

MIN_FRAGMENT_CHARS = 50
BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
ACCEPT_LANGUAGE = "en-US,en;q=0.9"


def _clean_soup(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html or "", "html.parser")
    for element in soup.select(BOILERPLATE_SELECTOR):
        element.extract()
    return soup


def _paragraph_fallback(soup: BeautifulSoup) -> str:
    paragraphs = [p.get_text().strip() for p in soup.select("p")]
    return "\n\n".join(text for text in paragraphs if len(text) > MIN_FRAGMENT_CHARS)


def extract_static(html: str) -> str:
    """Collect unique content fragments from raw markup, most specific selectors first."""
    soup = _clean_soup(html)

    unique: dict[str, None] = {}
    for selector in CONTENT_SELECTORS:
        for element in soup.select(selector):
            text = element.get_text().strip()
            if len(text) > MIN_FRAGMENT_CHARS:
                unique.setdefault(text, None)

    return "\n\n".join(unique)


def extract_rendered(html: str) -> str:
    """Text of the first non-empty content container, else the long paragraphs."""
    soup = _clean_soup(html)

    for selector in CONTAINER_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = element.get_text().strip()
        if text:
            return text

    return _paragraph_fallback(soup)


async def extract_dynamic(
    url: str,
    pool: "BrowserPool",
    *,
    timeout_ms: int | None = None,
) -> str:
    """Render ``url`` on a pooled browser and extract its readable text.

    The page is private to this call and is always closed, so a failure here
    leaves nothing behind on the shared browser.
    """
    timeout = int(timeout_ms if timeout_ms is not None else settings.scrape_navigation_timeout_ms)
    browser = await pool.acquire()
    page = await browser.new_page(
        user_agent=USER_AGENT,
        extra_http_headers={
            "Accept-Language": ACCEPT_LANGUAGE,
            "Referer": url,
        },
    )

    async def _block_heavy_resources(route) -> None:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    try:
        page.set_default_navigation_timeout(timeout)
        await page.route("**/*", _block_heavy_resources)
        await page.goto(url, wait_until="networkidle", timeout=timeout)
        html = await page.content()
        return extract_rendered(html)
    finally:
        try:
            await page.unroute("**/*", _block_heavy_resources)
        except Exception as exc:
            logger.debug(f"Failed to detach route handler for {url}: {exc}")
        await page.close()
