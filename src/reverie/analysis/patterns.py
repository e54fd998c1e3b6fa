"""Phrase repetition analysis.

Counts configured phrases across the whole text (not only at sentence
starts) and turns overuse into a 0-100 diversity score. Pure and
deterministic: the same text always yields an equal ``PatternAnalysis``.
"""

from __future__ import annotations

import re

from reverie.analysis.text import phrase_pattern, split_sentences
from reverie.models.quality import PatternAnalysis, PatternMatch
from reverie.rules.schema import PatternRules


class PatternAnalyzer:
    """Score how much a text leans on repeated phrases.

    Args:
        rules: Phrase table and penalty settings.
    """

    def __init__(self, rules: PatternRules) -> None:
        self._rules = rules
        self._compiled: list[tuple[str, int, re.Pattern[str]]] = [
            (rule.phrase.strip(), rule.threshold, phrase_pattern(rule.phrase))
            for rule in rules.phrases
        ]

    def analyze(self, text: str) -> PatternAnalysis:
        """Count every configured phrase and compute the diversity score.

        Args:
            text: Raw script text.

        Returns:
            Matches for phrases seen at least once, the number of sentences,
            and the diversity score. Empty text scores 100.
        """
        if not text or not text.strip():
            return PatternAnalysis()

        sentences = split_sentences(text, self._rules.min_sentence_chars)
        if not sentences:
            return PatternAnalysis()

        matches = []
        for phrase, threshold, pattern in self._compiled:
            count = len(pattern.findall(text))
            if count > 0:
                matches.append(
                    PatternMatch(
                        pattern=phrase,
                        count=count,
                        threshold=threshold,
                        needs_rewrite=count >= threshold,
                    )
                )

        return PatternAnalysis(
            overused_patterns=matches,
            total_sentences=len(sentences),
            diversity_score=self._score(matches),
        )

    def _score(self, matches: list[PatternMatch]) -> int:
        rules = self._rules
        flagged = [m for m in matches if m.needs_rewrite]
        if not flagged:
            return 100

        max_count = max(m.count for m in matches)
        extreme_penalty = 0
        if max_count > rules.extreme_count:
            extreme_penalty = min(rules.extreme_penalty_cap, max_count // 2)

        flagged_total = sum(m.count for m in flagged)
        volume_penalty = 0
        if flagged_total > rules.volume_free_count:
            volume_penalty = min(
                rules.volume_penalty_cap,
                (flagged_total - rules.volume_free_count) * rules.volume_penalty_per_repeat,
            )

        score = 100 - len(flagged) * rules.penalty_per_pattern - extreme_penalty - volume_penalty
        return max(0, score)
