"""Naturalness heuristics.

Three independent sub-checks look for phrasing that reads as robotic when
spoken aloud: bare nouns missing an article, hedging filler, and abstract
plurals with no owner. Each flagged sub-check deducts a fixed amount from
100; a text scoring below the natural threshold is treated as unnatural.
"""

from __future__ import annotations

import re

from reverie.analysis.text import count_phrase
from reverie.models.quality import GrammarIssue, GrammarReport
from reverie.rules.schema import GrammarRules

_SENTENCE_END = re.compile(r"[.!?]+")
_TOKEN = re.compile(r"[a-z']+")
_DETERMINER_WINDOW = 2


def _tokenize(text: str) -> list[list[str]]:
    """Lowercase word tokens, one list per sentence."""
    return [
        tokens
        for tokens in (_TOKEN.findall(part.lower()) for part in _SENTENCE_END.split(text))
        if tokens
    ]


class NaturalnessAnalyzer:
    """Score how natural a script sounds.

    Args:
        rules: Vocabularies, limits and deductions for the sub-checks.
    """

    def __init__(self, rules: GrammarRules) -> None:
        self._rules = rules
        self._nouns = frozenset(rules.article_nouns)
        self._perception = frozenset(rules.perception_verbs)
        self._verbs = frozenset(rules.noun_verbs)
        self._determiners = frozenset(rules.determiners)
        self._plurals = frozenset(rules.generic_plurals)

    def analyze(self, text: str) -> GrammarReport:
        """Run all sub-checks and aggregate the score.

        Args:
            text: Raw script text.

        Returns:
            GrammarReport; empty text scores 100 and is natural.
        """
        if not text or not text.strip():
            return GrammarReport(score=100, issues=[], is_natural=True)

        sentences = _tokenize(text)
        issues: list[GrammarIssue] = []
        deductions = 0

        for check in (self._missing_articles, self._awkward_constructions, self._generic_plurals):
            result = check(text, sentences)
            if result is not None:
                issue, deduction = result
                issues.append(issue)
                deductions += deduction

        score = max(0, 100 - deductions)
        return GrammarReport(
            score=score,
            issues=issues,
            is_natural=score >= self._rules.natural_threshold,
        )

    def _has_determiner(self, tokens: list[str], index: int) -> bool:
        window = tokens[max(0, index - _DETERMINER_WINDOW) : index]
        return any(token in self._determiners for token in window)

    def count_missing_articles(self, sentences: list[list[str]]) -> int:
        """Count bare vocabulary nouns, at most once per noun position.

        A noun is bare when it directly follows a perception verb
        ("notice breath"), or directly precedes a verb with no determiner
        in the two words before it ("breath settles").
        """
        count = 0
        for tokens in sentences:
            for i, token in enumerate(tokens):
                if token not in self._nouns:
                    continue
                after_perception = i > 0 and tokens[i - 1] in self._perception
                before_verb = (
                    i + 1 < len(tokens)
                    and tokens[i + 1] in self._verbs
                    and not self._has_determiner(tokens, i)
                )
                if after_perception or before_verb:
                    count += 1
        return count

    def _missing_articles(
        self, text: str, sentences: list[list[str]]
    ) -> tuple[GrammarIssue, int] | None:
        count = self.count_missing_articles(sentences)
        if count <= self._rules.missing_article_limit:
            return None
        issue = GrammarIssue(
            type="Missing Articles",
            severity="major",
            description=f"Found {count} instances of likely missing articles (the, a, your)",
            count=count,
        )
        return issue, self._rules.missing_article_deduction

    def _awkward_constructions(
        self, text: str, sentences: list[list[str]]
    ) -> tuple[GrammarIssue, int] | None:
        count = sum(count_phrase(text, phrase) for phrase in self._rules.awkward_phrases)
        if count <= self._rules.awkward_limit:
            return None
        issue = GrammarIssue(
            type="Awkward Constructions",
            severity="major",
            description=f"Found {count} awkward hedging or filler constructions",
            count=count,
        )
        return issue, self._rules.awkward_deduction

    def _generic_plurals(
        self, text: str, sentences: list[list[str]]
    ) -> tuple[GrammarIssue, int] | None:
        count = sum(
            1
            for tokens in sentences
            for i, token in enumerate(tokens)
            if token in self._plurals and not self._has_determiner(tokens, i)
        )
        if count <= self._rules.generic_plural_limit:
            return None
        issue = GrammarIssue(
            type="Generic Plurals",
            severity="high",
            description=(
                f"Found {count} generic plurals with no owner "
                '(e.g. "sensations arise") - prefer "the sensations in your hands"'
            ),
            count=count,
        )
        return issue, self._rules.generic_plural_deduction
