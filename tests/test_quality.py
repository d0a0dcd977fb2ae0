from __future__ import annotations

import pytest

from answer_engine.tools import quality

PROSE = "The river delta shifts its channels every few decades as sediment builds up. " * 12


def test_meaningful_prose_passes():
    assert quality.is_meaningful(PROSE) is True


@pytest.mark.parametrize("text", ["", "   \n\t ", None])
def test_empty_or_non_text_is_rejected(text):
    assert quality.is_meaningful(text) is False


def test_fewer_than_min_words_is_rejected_even_for_good_prose():
    words = ("Careful sentences. " * 60).split()[:99]
    text = " ".join(words)
    assert len(text.split()) == 99
    assert quality.is_meaningful(text) is False


def test_too_few_sentences_is_rejected():
    text = " ".join(["wordy"] * 150) + "."
    assert quality.is_meaningful(text) is False


def test_short_average_word_length_is_rejected():
    text = "a b. " * 120
    assert quality.is_meaningful(text) is False


@pytest.mark.parametrize("phrase", quality.BLOCKED_PHRASES)
def test_blocked_phrase_rejects_otherwise_good_text(phrase):
    assert quality.is_meaningful(PROSE + f" {phrase}.") is False


def test_content_stats_counts_words_and_paragraphs():
    stats = quality.content_stats("one two three\n\nfour five")
    assert stats.word_count == 5
    assert stats.paragraph_count == 2
    assert stats.character_count == len("one two three\n\nfour five")


def test_derive_title_uses_first_line_or_placeholder():
    assert quality.derive_title("Headline here\nBody text") == "Headline here"
    assert quality.derive_title("\nBody text") == "Untitled Content"
