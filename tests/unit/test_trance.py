"""Tests for the trance-depth linter."""

from __future__ import annotations

import pytest

from reverie.analysis import TranceDepthValidator
from reverie.rules import RuleSet


@pytest.fixture
def validator(rules: RuleSet) -> TranceDepthValidator:
    return TranceDepthValidator(rules.language_mastery)


def test_clean_script_is_valid(validator: TranceDepthValidator) -> None:
    result = validator.validate("Your breath deepens. Shoulders soften. Peace settles.")

    assert result.is_valid is True
    assert result.score == 100
    assert result.violations == []
    assert result.warnings == []


def test_cognitive_instruction_is_critical(validator: TranceDepthValidator) -> None:
    result = validator.validate("Rest here. Think about a calm place you once knew.")

    assert result.is_valid is False
    assert result.score == 75
    [violation] = result.critical
    assert violation.forbidden_phrase == "think about"
    assert violation.location == "Think about a calm place you once knew"
    assert len(result.warnings) == 1


def test_cliche_is_major(validator: TranceDepthValidator) -> None:
    result = validator.validate("Going deeper and deeper now.")

    assert result.is_valid is True
    assert result.score == 90
    assert result.violations[0].category == "cliches"


def test_visual_command_counts_occurrences(validator: TranceDepthValidator) -> None:
    result = validator.validate("Visualize a lake. Then visualize the shore.")

    [violation] = result.violations
    assert violation.category == "sensory_language"
    assert violation.location == "2 occurrence(s)"
    assert result.suggestions


def test_three_you_sentences_in_a_row(validator: TranceDepthValidator) -> None:
    result = validator.validate("You relax. You rest. You drift.")

    [violation] = result.violations
    assert violation.category == "repetition"
    assert result.score == 90


def test_em_dash_and_ai_pattern_are_minor(validator: TranceDepthValidator) -> None:
    result = validator.validate("Rest now \u2014 softly. It's important to breathe.")

    assert [v.type for v in result.violations] == ["minor", "minor"]
    assert result.score == 90
    assert result.is_valid is True


def test_score_floors_at_zero(validator: TranceDepthValidator) -> None:
    text = "Think about it. Recall it. Consider it. Select a memory. Remember a time when."

    result = validator.validate(text)

    assert len(result.critical) == 5
    assert result.score == 0
