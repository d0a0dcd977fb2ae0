"""Merge validated scrape results into one context blob for the answer generator."""
from __future__ import annotations

import re

from answer_engine.models.schemas import ContextSource, ProcessedContent

MAX_CONTEXT_CHARS = 30000
TRUNCATION_SUFFIX = "... (content truncated for length)"
SOURCE_SEPARATOR = "\n\n---\n\n"

_CODE_FENCE = re.compile(r"```json|```")
_HTML_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")
_REPEATED_PUNCTUATION = re.compile(r"([!?,.]){2,}")
_DOUBLE_QUOTES = re.compile(r"[“”„‟]")
_SINGLE_QUOTES = re.compile(r"[‘’‚‛]")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def sanitize_content(content: str) -> str:
    content = _CODE_FENCE.sub("", content)
    content = _HTML_TAG.sub("", content)
    content = _WHITESPACE.sub(" ", content)
    content = _REPEATED_PUNCTUATION.sub(r"\1", content)
    content = _DOUBLE_QUOTES.sub('"', content)
    content = _SINGLE_QUOTES.sub("'", content)
    content = _CONTROL_CHARS.sub("", content)
    return content.strip()


def process_content_for_ai(sources: list[ContextSource]) -> ProcessedContent:
    combined = SOURCE_SEPARATOR.join(
        (f"Source: {source.url}\n" if source.url else "") + source.content
        for source in sources
    )
    combined = sanitize_content(combined)

    if len(combined) > MAX_CONTEXT_CHARS:
        combined = combined[:MAX_CONTEXT_CHARS] + TRUNCATION_SUFFIX

    # Content-policy filtering is not implemented; the fields are kept for callers.
    return ProcessedContent(content=combined, was_filtered=False)
