"""Trance-depth linter.

Flags language that pulls a listener out of trance: cognitive instructions
("think about", "recall"), stock hypnosis cliches, visual-only commands,
"you... you... you" stacking, em dashes and AI-flavoured filler. Advisory
only; the quality guard does not score with it.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, Field

from reverie.rules.schema import LanguageMasteryRules

ViolationType = Literal["critical", "major", "minor"]

PENALTIES: dict[str, int] = {"critical": 25, "major": 10, "minor": 5}

_SENTENCE_END = re.compile(r"[.!?]+")
EM_DASH = "\u2014"


class Violation(BaseModel):
    type: ViolationType
    category: str
    issue: str
    location: str
    forbidden_phrase: str | None = None
    suggested_fix: str | None = None


class TranceValidation(BaseModel):
    """Result of a trance-depth lint.

    Attributes:
        is_valid: True when there are no critical violations.
        score: 100 minus the penalty of every violation, floored at 0.
    """

    is_valid: bool
    score: int = Field(ge=0, le=100)
    violations: list[Violation] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    @property
    def critical(self) -> list[Violation]:
        return [v for v in self.violations if v.type == "critical"]


def _excerpt(text: str, limit: int) -> str:
    text = text.strip()
    return text if len(text) <= limit else text[:limit] + "..."


class TranceDepthValidator:
    def __init__(self, rules: LanguageMasteryRules) -> None:
        self._rules = rules

    def validate(self, text: str) -> TranceValidation:
        violations: list[Violation] = []
        warnings: list[str] = []
        suggestions: list[str] = []

        cognitive = self._cognitive_instructions(text)
        repetition = self._you_repetition(text)
        visual = self._visual_commands(text)
        violations.extend(cognitive)
        violations.extend(self._cliches(text))
        violations.extend(visual)
        violations.extend(repetition)
        violations.extend(self._craft(text))

        if cognitive:
            warnings.append(
                "Script contains cognitive or reflective instructions that pull the listener out of trance"
            )
            suggestions.append(
                'Replace "think about/remember/recall" with direct experience: '
                '"Your body remembers...", "[State] arrives..."'
            )
        if repetition:
            suggestions.append(
                'Use body-as-subject to break up "you...you...you": "Your breath deepens. Shoulders soften."'
            )
        if visual:
            suggestions.append('Replace visual commands with inclusive language: "Notice..." instead of "See..."')

        score = max(0, 100 - sum(PENALTIES[v.type] for v in violations))
        return TranceValidation(
            is_valid=not any(v.type == "critical" for v in violations),
            score=score,
            violations=violations,
            warnings=warnings,
            suggestions=suggestions,
        )

    def _cognitive_instructions(self, text: str) -> list[Violation]:
        lowered = text.lower()
        sentences = _SENTENCE_END.split(text)
        fix = self._rules.replacement_patterns[0] if self._rules.replacement_patterns else None
        violations = []
        for phrase in self._rules.forbidden_phrases:
            needle = phrase.lower()
            if needle not in lowered:
                continue
            sentence = next((s for s in sentences if needle in s.lower()), "")
            violations.append(
                Violation(
                    type="critical",
                    category="cognitive_load",
                    issue="Cognitive/reflective instruction that pulls the listener out of trance",
                    location=_excerpt(sentence, 100),
                    forbidden_phrase=phrase,
                    suggested_fix=fix,
                )
            )
        return violations

    def _cliches(self, text: str) -> list[Violation]:
        lowered = text.lower()
        return [
            Violation(
                type="major",
                category="cliches",
                issue=f'Hypnosis cliche detected: "{cliche}"',
                location="In script",
                forbidden_phrase=cliche,
                suggested_fix="Use fresh, natural language instead of cliches",
            )
            for cliche in self._rules.forbidden_cliches
            if cliche.lower() in lowered
        ]

    def _visual_commands(self, text: str) -> list[Violation]:
        violations = []
        for command in self._rules.forbidden_visual_commands:
            matches = re.findall(rf"\b{re.escape(command)}", text, re.IGNORECASE)
            if matches:
                violations.append(
                    Violation(
                        type="major",
                        category="sensory_language",
                        issue=f'Visual-only command: "{command}"',
                        location=f"{len(matches)} occurrence(s)",
                        forbidden_phrase=command,
                        suggested_fix='Use inclusive language: "Notice...", "Sense...", "Imagine..."',
                    )
                )
        return violations

    def _you_repetition(self, text: str) -> list[Violation]:
        sentences = _SENTENCE_END.split(text)
        starts = [s.strip().lower().startswith("you ") for s in sentences]
        violations = []
        for i in range(len(sentences) - 2):
            if starts[i] and starts[i + 1] and starts[i + 2]:
                violations.append(
                    Violation(
                        type="major",
                        category="repetition",
                        issue='Three consecutive sentences starting with "you"',
                        location=_excerpt(". ".join(sentences[i : i + 3]), 150),
                        suggested_fix='Use body-as-subject: "Your breath deepens. Shoulders soften. Peace settles."',
                    )
                )
        return violations

    def _craft(self, text: str) -> list[Violation]:
        violations = []
        if EM_DASH in text:
            violations.append(
                Violation(
                    type="minor",
                    category="language_craft",
                    issue="Em dashes detected - use commas or periods instead",
                    location="Throughout script",
                    suggested_fix="Replace em dashes with commas or break into separate sentences",
                )
            )
        lowered = text.lower()
        for pattern in self._rules.ai_patterns:
            if pattern.lower() in lowered:
                violations.append(
                    Violation(
                        type="minor",
                        category="language_craft",
                        issue=f'AI pattern detected: "{pattern}"',
                        location="In script",
                        forbidden_phrase=pattern,
                        suggested_fix="Rewrite with more natural, poetic language",
                    )
                )
        return violations
