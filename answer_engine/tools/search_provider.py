from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger

from answer_engine.config import settings
from answer_engine.tools import web_utils

GOOGLE_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"


@dataclass
class SearchResult:
    url: str
    title: str
    snippet: str
    domain: str
    authority_score: float


def _to_result(item: Any) -> SearchResult | None:
    if not isinstance(item, dict):
        return None
    link = item.get("link")
    if not web_utils.is_valid_url(link):
        return None
    domain = web_utils.extract_domain(link)
    return SearchResult(
        url=link,
        title=str(item.get("title") or ""),
        snippet=str(item.get("snippet") or ""),
        domain=domain,
        authority_score=web_utils.authority_score(domain),
    )


async def search(
    query: str,
    max_results: int = 5,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> list[SearchResult]:
    """Google Custom Search. Returns an empty list on any failure."""
    if not settings.google_api_key or not settings.search_engine_id:
        logger.error("Missing GOOGLE_API_KEY or SEARCH_ENGINE_ID; skipping web search.")
        return []

    params = {
        "key": settings.google_api_key,
        "cx": settings.search_engine_id,
        "q": query,
        "num": max(1, min(int(max_results), 10)),
    }

    logger.info(f"=== Starting Google Search === query={query!r}")
    try:
        if http_client is None:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.get(GOOGLE_SEARCH_URL, params=params)
        else:
            response = await http_client.get(GOOGLE_SEARCH_URL, params=params)
        response.raise_for_status()
        payload = response.json()
    except Exception as exc:
        logger.error(f"Error during Google Search: {exc}")
        return []

    items = payload.get("items") if isinstance(payload, dict) else None
    if not items:
        logger.info("No search results returned.")
        return []

    results = [r for r in (_to_result(item) for item in items) if r is not None]
    return results[:max_results]
