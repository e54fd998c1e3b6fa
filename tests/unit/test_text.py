"""Tests for text segmentation helpers."""

from __future__ import annotations

import pytest

from reverie.analysis.text import (
    count_phrase,
    round_half_up,
    split_sentences,
    word_count,
    words,
)


def test_split_sentences_drops_short_fragments() -> None:
    text = "Rest now. Let the breath slow down! Is it quiet yet? Yes."

    assert split_sentences(text) == ["Let the breath slow down", "Is it quiet yet"]


def test_split_sentences_collapses_repeated_punctuation() -> None:
    assert split_sentences("Slowly settling down... Softly resting here!!!") == [
        "Slowly settling down",
        "Softly resting here",
    ]


def test_split_sentences_min_chars() -> None:
    assert split_sentences("Rest now. Breathe.", min_chars=3) == ["Rest now", "Breathe"]


def test_words_and_word_count() -> None:
    text = "  Rest\tnow,\n  softly  "

    assert words(text) == ["Rest", "now,", "softly"]
    assert word_count(text) == 3
    assert word_count("") == 0


def test_count_phrase_matches_whole_words_only() -> None:
    assert count_phrase("As you rest, as\nyou settle, ask yourself", "as you") == 2
    assert count_phrase("theory and other things", "the") == 0


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0.5, 1), (1.49, 1), (2.5, 3), (333.3, 333), (166.5, 167)],
)
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected
