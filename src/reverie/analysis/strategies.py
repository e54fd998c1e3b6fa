"""Swappable heuristic strategies.

Emergence detection and metaphor classification are approximate by nature.
The quality guard depends only on the protocols below, so a rule set or a
whole detector can be replaced (or A/B tested) without touching the guard.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from reverie.rules.schema import EmergenceRules, MetaphorRules


@dataclass(frozen=True)
class EmergenceSignals:
    """Which kinds of closing language a text contains."""

    has_awaken: bool
    has_sleep: bool


@runtime_checkable
class EmergenceDetector(Protocol):
    def detect(self, text: str) -> EmergenceSignals: ...


@dataclass(frozen=True)
class MetaphorUsage:
    """Metaphor vocabulary counts for one text.

    Attributes:
        family_counts: Mentions per family, only families seen at least once.
        word_counts: Mentions per vocabulary word, keyed by family.
    """

    family_counts: dict[str, int] = field(default_factory=dict)
    word_counts: dict[str, dict[str, int]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.family_counts.values())

    @property
    def dominant(self) -> tuple[str, int] | None:
        """Most mentioned family; ties go to the family listed first."""
        if not self.family_counts:
            return None
        family = max(self.family_counts, key=lambda name: self.family_counts[name])
        return family, self.family_counts[family]

    def most_used_word(self, family: str) -> tuple[str, int] | None:
        counts = self.word_counts.get(family)
        if not counts:
            return None
        word = max(counts, key=lambda w: counts[w])
        return word, counts[word]


@runtime_checkable
class MetaphorClassifier(Protocol):
    def classify(self, text: str) -> MetaphorUsage: ...


class RegexEmergenceDetector:
    """Detect awakening and sleep language with case-insensitive regexes."""

    def __init__(self, rules: EmergenceRules) -> None:
        self._awaken = [re.compile(p, re.IGNORECASE) for p in rules.awaken_patterns]
        self._sleep = [re.compile(p, re.IGNORECASE) for p in rules.sleep_patterns]

    def detect(self, text: str) -> EmergenceSignals:
        return EmergenceSignals(
            has_awaken=any(p.search(text) for p in self._awaken),
            has_sleep=any(p.search(text) for p in self._sleep),
        )


class VocabularyMetaphorClassifier:
    """Count metaphor family vocabulary by word prefix.

    A vocabulary word matches any word starting with it, so "flow" also
    counts "flowing" and "flows". A word listed in two families (e.g.
    "river") counts toward both.
    """

    def __init__(self, rules: MetaphorRules) -> None:
        self._families = {
            family: [
                (word, re.compile(rf"\b{re.escape(word)}\w*\b", re.IGNORECASE))
                for word in vocabulary
            ]
            for family, vocabulary in rules.families.items()
        }

    def classify(self, text: str) -> MetaphorUsage:
        family_counts: dict[str, int] = {}
        word_counts: dict[str, dict[str, int]] = {}

        for family, patterns in self._families.items():
            counts = {word: len(pattern.findall(text)) for word, pattern in patterns}
            counts = {word: n for word, n in counts.items() if n > 0}
            if counts:
                family_counts[family] = sum(counts.values())
                word_counts[family] = counts

        return MetaphorUsage(family_counts=family_counts, word_counts=word_counts)
