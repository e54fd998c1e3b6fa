"""Text segmentation helpers shared by the analyzers and the quality guard."""

from __future__ import annotations

import math
import re

_SENTENCE_END = re.compile(r"[.!?]+")
_WHITESPACE = re.compile(r"\s+")


def split_sentences(text: str, min_chars: int = 10) -> list[str]:
    """Split text on terminal punctuation.

    Fragments are trimmed, and fragments of ``min_chars`` characters or
    fewer are dropped.
    """
    return [
        fragment
        for fragment in (part.strip() for part in _SENTENCE_END.split(text))
        if len(fragment) > min_chars
    ]


def words(text: str) -> list[str]:
    """Whitespace-delimited tokens."""
    return [w for w in _WHITESPACE.split(text) if w]


def word_count(text: str) -> int:
    return len(words(text))


def phrase_pattern(phrase: str) -> re.Pattern[str]:
    """Case-insensitive whole-word pattern for a phrase.

    Internal whitespace matches any run of whitespace, so "you  might" and
    "you\\nmight" count as "you might".
    """
    parts = [re.escape(part) for part in phrase.split()]
    return re.compile(r"\b" + r"\s+".join(parts) + r"\b", re.IGNORECASE)


def count_phrase(text: str, phrase: str) -> int:
    return len(phrase_pattern(phrase).findall(text))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's ``round`` uses banker's rounding (``round(2.5) == 2``); word
    budgets and scores round halves up.
    """
    return math.floor(value + 0.5)
