"""Quality gate for extracted page text.

Extracted text is only used when it reads like prose: enough words, more
than a couple of sentences, plausible word lengths, and none of the phrases
that mark error pages, bot walls or script-only shells.
"""
from __future__ import annotations

import re

from answer_engine.models.schemas import ContentStats

MIN_WORD_COUNT = 100
MIN_SENTENCES = 3
MIN_AVERAGE_WORD_LENGTH = 3

BLOCKED_PHRASES = (
    "404",
    "Access Denied",
    "Please enable JavaScript",
    "Robot Check",
    "Captcha",
)

_SENTENCE_BREAK = re.compile(r"[.!?]+")


def is_meaningful(content: str) -> bool:
    if not isinstance(content, str) or not content.strip():
        return False

    word_count = len(content.split())
    if word_count < MIN_WORD_COUNT:
        return False

    sentence_count = len(_SENTENCE_BREAK.split(content))
    if sentence_count < MIN_SENTENCES:
        return False

    # Characters per word, whitespace included.
    if len(content) / word_count < MIN_AVERAGE_WORD_LENGTH:
        return False

    return not any(phrase in content for phrase in BLOCKED_PHRASES)


def content_stats(content: str) -> ContentStats:
    word_count = max(len(content.split()), 1)
    return ContentStats(
        word_count=word_count,
        character_count=len(content),
        paragraph_count=len(content.split("\n\n")),
        average_word_length=round(len(content) / word_count, 2),
    )


def derive_title(content: str) -> str:
    first_line = content.split("\n", 1)[0].strip()
    return first_line or "Untitled Content"
