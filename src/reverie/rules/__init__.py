"""Versioned heuristic tables, loaded as immutable configuration."""

from reverie.rules.loader import (
    DEFAULT_ARCS_PATH,
    DEFAULT_RULES_PATH,
    RuleSetError,
    load_arc_library,
    load_rule_set,
)
from reverie.rules.schema import (
    EmergenceRules,
    GrammarRules,
    LanguageMasteryRules,
    MetaphorLibrary,
    MetaphorRules,
    PatternRule,
    PatternRules,
    Principle,
    PrincipleRules,
    QualityRules,
    RuleSet,
)

__all__ = [
    "DEFAULT_ARCS_PATH",
    "DEFAULT_RULES_PATH",
    "EmergenceRules",
    "GrammarRules",
    "LanguageMasteryRules",
    "MetaphorLibrary",
    "MetaphorRules",
    "PatternRule",
    "PatternRules",
    "Principle",
    "PrincipleRules",
    "QualityRules",
    "RuleSet",
    "RuleSetError",
    "load_arc_library",
    "load_rule_set",
]
