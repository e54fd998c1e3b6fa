"""Rule set schema.

Every heuristic table the analyzers, the Directive Builder and the Quality
Guard rely on lives here as frozen configuration, loaded from YAML and passed
to constructors. Tuning a threshold means editing ``default.yaml`` (and bumping
its ``version``), not code.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class PatternRule(_Frozen):
    """A phrase whose repetition is tracked, and the count that flags it."""

    phrase: str = Field(min_length=1)
    threshold: int = Field(ge=1)


class PatternRules(_Frozen):
    phrases: tuple[PatternRule, ...]
    min_sentence_chars: int = 10
    penalty_per_pattern: int = 16
    extreme_count: int = 50
    extreme_penalty_cap: int = 50
    volume_free_count: int = 3
    volume_penalty_per_repeat: int = 2
    volume_penalty_cap: int = 20


class GrammarRules(_Frozen):
    article_nouns: tuple[str, ...]
    perception_verbs: tuple[str, ...]
    noun_verbs: tuple[str, ...]
    determiners: tuple[str, ...]
    awkward_phrases: tuple[str, ...]
    generic_plurals: tuple[str, ...]
    missing_article_limit: int = 2
    awkward_limit: int = 1
    generic_plural_limit: int = 3
    missing_article_deduction: int = 35
    awkward_deduction: int = 35
    generic_plural_deduction: int = 25
    natural_threshold: int = 70


class EmergenceRules(_Frozen):
    """Regular expressions recognising closing language (case-insensitive)."""

    awaken_patterns: tuple[str, ...]
    sleep_patterns: tuple[str, ...]


class MetaphorRules(_Frozen):
    families: dict[str, tuple[str, ...]]
    long_script_words: int = 2500
    cap_long: int = 10
    cap_short: int = 8
    dominant_share: float = 0.60
    max_families: int = 2


class QualityRules(_Frozen):
    functional_phrases: tuple[str, ...]
    functional_minimum: int = 15
    word_count_tolerance: float = 0.15
    dense_functional_override: int = 1000
    opener_words: int = 3
    opener_max_share: float = 0.12
    min_sentence_chars: int = 10


class Principle(_Frozen):
    """One of the six core principles."""

    id: str
    name: str
    description: str
    why: str
    rule: str
    prompt_directives: tuple[str, ...] = ()
    quality_gates: tuple[str, ...] = ()
    examples: tuple[str, ...] = ()


class SafetyRatio(_Frozen):
    permissive: str
    gentle_directive: str = "0%"
    commands: str = "0%"


class PrincipleRules(_Frozen):
    preamble: str
    closing: str
    principles: tuple[Principle, ...]
    metaphor_threshold: int = 40
    minimal_metaphor_instruction: str
    depth_guidance: dict[str, str]
    safety_ratios: dict[str, SafetyRatio]
    safety_phrases: tuple[str, ...] = ()
    sleep_emergence: tuple[str, ...]
    language_checks: tuple[str, ...] = ()
    trance_depth_test: tuple[str, ...] = ()


class LanguageMasteryRules(_Frozen):
    tonal_ratio: str
    forbidden_phrases: tuple[str, ...]
    forbidden_cliches: tuple[str, ...]
    forbidden_visual_commands: tuple[str, ...]
    ai_patterns: tuple[str, ...]
    replacement_patterns: tuple[str, ...] = ()


class MetaphorFamily(_Frozen):
    primary_images: tuple[str, ...] = ()


class MetaphorLibrary(_Frozen):
    """Issue keywords and the metaphor family recommended for each issue."""

    selection_threshold: int = 40
    default_family: str
    families: dict[str, MetaphorFamily]
    issue_keywords: dict[str, tuple[str, ...]]
    issue_metaphors: dict[str, str]


class RuleSet(_Frozen):
    """All heuristic tables for one deployment, versioned together."""

    version: str
    patterns: PatternRules
    grammar: GrammarRules
    emergence: EmergenceRules
    metaphors: MetaphorRules
    quality: QualityRules
    principles: PrincipleRules
    language_mastery: LanguageMasteryRules
    metaphor_library: MetaphorLibrary
