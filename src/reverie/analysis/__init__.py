"""Deterministic, side-effect-free text analyzers."""

from reverie.analysis.grammar import NaturalnessAnalyzer
from reverie.analysis.patterns import PatternAnalyzer
from reverie.analysis.strategies import (
    EmergenceDetector,
    EmergenceSignals,
    MetaphorClassifier,
    MetaphorUsage,
    RegexEmergenceDetector,
    VocabularyMetaphorClassifier,
)
from reverie.analysis.text import round_half_up, split_sentences, word_count
from reverie.analysis.trance import TranceDepthValidator, TranceValidation, Violation

__all__ = [
    "EmergenceDetector",
    "EmergenceSignals",
    "MetaphorClassifier",
    "MetaphorUsage",
    "NaturalnessAnalyzer",
    "PatternAnalyzer",
    "RegexEmergenceDetector",
    "TranceDepthValidator",
    "TranceValidation",
    "Violation",
    "VocabularyMetaphorClassifier",
    "round_half_up",
    "split_sentences",
    "word_count",
]
