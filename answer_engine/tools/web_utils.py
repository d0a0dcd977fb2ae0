from __future__ import annotations

import re
from urllib.parse import urlparse

URL_PATTERN = re.compile(r"https?://\S+")

AUTHORITY_BY_SUFFIX = (
    (".gov", 1.0),
    (".edu", 0.9),
    (".org", 0.8),
)
DEFAULT_AUTHORITY = 0.5


def is_valid_url(url: object) -> bool:
    """Basic URL validation."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except Exception:
        return False


def extract_urls(text: str) -> list[str]:
    """Return every http(s) URL in free text, in order of appearance."""
    return URL_PATTERN.findall(text or "")


def extract_domain(url: str) -> str:
    """Extract domain from URL for display."""
    try:
        return urlparse(url).hostname or url
    except Exception:
        return url


def authority_score(domain: str) -> float:
    """Fixed authority heuristic by top-level domain."""
    lowered = domain.lower()
    for suffix, score in AUTHORITY_BY_SUFFIX:
        if lowered.endswith(suffix):
            return score
    return DEFAULT_AUTHORITY
