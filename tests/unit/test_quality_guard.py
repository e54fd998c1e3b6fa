"""Tests for the quality guard."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from reverie.analysis import EmergenceSignals, VocabularyMetaphorClassifier
from reverie.analysis.text import word_count
from reverie.pipeline.quality_guard import CHECK_ORDER, QualityGuard
from reverie.prompts import PromptLoader, TemplateNotFoundError
from reverie.providers import ProviderError
from reverie.rules import RuleSet


@pytest.fixture
def guard(rules: RuleSet, mock_provider: AsyncMock) -> QualityGuard:
    return QualityGuard(mock_provider, rules)


def _repair_reply(script: str) -> str:
    return "```json\n" + json.dumps({"polishedScript": script}) + "\n```"


# --- Scoring ---


def test_evaluate_passing_script(guard: QualityGuard, passing_script: str) -> None:
    report = guard.evaluate(passing_script, "regular", word_count(passing_script))

    assert [check.name for check in report.checks] == list(CHECK_ORDER)
    assert report.passed is True
    assert report.score == 100


def test_evaluate_failing_script(guard: QualityGuard) -> None:
    report = guard.evaluate("Rest now.", "regular", 123)

    failed = {check.name for check in report.failed_checks}
    assert failed == {"Emergence Type", "Functional Suggestions", "Word Count", "Sentence Variety"}
    assert report.score == 43
    assert report.passed is False


@pytest.mark.parametrize(
    "ending",
    ["Then you are wide awake.", "Then you feel energized."],
)
def test_sleep_script_with_awakening_fails(guard: QualityGuard, ending: str) -> None:
    text = f"You drift gently toward sleep. {ending}"

    check = guard.check_emergence(text, "sleep")

    assert check.passed is False
    assert check.details == "Script has awakening language when sleep expected"


def test_sleep_script_without_sleep_language_fails(guard: QualityGuard) -> None:
    check = guard.check_emergence("Rest quietly now.", "sleep")

    assert check.details == "Script lacks sleep transition language for sleep emergence"


def test_sleep_script_passes(guard: QualityGuard) -> None:
    check = guard.check_emergence("And you drift into a peaceful sleep.", "sleep")

    assert check.passed is True
    assert check.details == "Correct sleep emergence language found"


def test_regular_script_with_only_sleep_language(guard: QualityGuard) -> None:
    check = guard.check_emergence("And you drift into a peaceful sleep.", "regular")

    assert check.passed is False
    assert check.details == "Script has sleep emergence when regular expected"


def test_functional_suggestion_minimum(guard: QualityGuard) -> None:
    assert guard.check_functional_suggestions(14).details == "Only 14 functional suggestions (minimum: 15)"
    assert guard.check_functional_suggestions(15).passed is True


def test_word_count_range(guard: QualityGuard) -> None:
    text = " ".join(["rest"] * 84)

    check = guard.check_word_count(text, 100, functional_count=0)

    assert check.passed is False
    assert check.details == "84 words - outside target range 85-115"
    assert guard.check_word_count(text + " now", 100, functional_count=0).passed is True


def test_word_count_waived_for_dense_functional_content(guard: QualityGuard) -> None:
    check = guard.check_word_count("rest", 1000, functional_count=1001)

    assert check.passed is True
    assert check.details.endswith("waived for dense functional content")


def test_repetitive_openers_fail(guard: QualityGuard) -> None:
    check = guard.check_sentence_variety("You can rest now. " * 10)

    assert check.passed is False
    assert '"you can rest" used 10x (100% of sentences, limit: 12%)' in check.details


def test_metaphor_overload(guard: QualityGuard) -> None:
    check = guard.check_metaphor_frequency("The ocean waves roll in. " * 5)

    assert check.passed is False
    assert check.details.startswith("Metaphor overload - water used 10x (max: 8)")


def test_scattered_metaphors(guard: QualityGuard) -> None:
    check = guard.check_metaphor_consistency("A tree by the path in the light near a stream.")

    assert check.passed is False
    assert check.details == "Scattered metaphors: nature, journey, water, light - lacks consistency"


def test_abstract_script_is_consistent(guard: QualityGuard) -> None:
    assert guard.check_metaphor_consistency("Rest quietly now.").passed is True
    assert guard.check_metaphor_frequency("Rest quietly now.").passed is True


def test_custom_emergence_detector(rules: RuleSet) -> None:
    class AlwaysAwake:
        def detect(self, text: str) -> EmergenceSignals:
            return EmergenceSignals(has_awaken=True, has_sleep=False)

    guard = QualityGuard(None, rules, emergence_detector=AlwaysAwake())

    assert guard.check_emergence("", "regular").passed is True


# --- Repair ---


@pytest.mark.asyncio
async def test_passing_script_makes_no_call(
    guard: QualityGuard, mock_provider: AsyncMock, passing_script: str
) -> None:
    report = await guard.guard(passing_script, "regular", word_count(passing_script))

    assert report.passed is True
    assert report.score == 100
    assert report.repair_attempted is False
    mock_provider.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_disallowed_makes_no_call(guard: QualityGuard, mock_provider: AsyncMock) -> None:
    report = await guard.guard("Rest now.", "regular", 123, allow_retry=False)

    assert report.passed is False
    assert report.score == 43
    assert report.repair_attempted is False
    mock_provider.generate.assert_not_awaited()


@pytest.mark.asyncio
async def test_guard_without_provider_only_scores(rules: RuleSet) -> None:
    report = await QualityGuard(None, rules).guard("Rest now.", "regular", 123)

    assert report.passed is False
    assert report.repair_attempted is False


@pytest.mark.asyncio
async def test_single_repair_call(
    guard: QualityGuard, mock_provider: AsyncMock, passing_script: str
) -> None:
    mock_provider.generate.return_value = _repair_reply(passing_script)

    report = await guard.guard("Rest now.", "regular", word_count(passing_script))

    mock_provider.generate.assert_awaited_once()
    system_prompt, user_prompt = mock_provider.generate.call_args.args
    assert "surgical edits" in system_prompt
    assert "- Word Count:" in user_prompt
    assert mock_provider.generate.call_args.kwargs["max_output_tokens"] == 8000
    assert report.passed is True
    assert report.final_script == passing_script
    assert report.polish_message == "Quality improved: 43% -> 100%"
    assert report.repair_attempted is True


@pytest.mark.asyncio
async def test_repair_that_still_fails_is_not_retried(
    guard: QualityGuard, mock_provider: AsyncMock
) -> None:
    mock_provider.generate.return_value = _repair_reply("Still short.")

    report = await guard.guard("Rest now.", "regular", 123)

    mock_provider.generate.assert_awaited_once()
    assert report.passed is False
    assert report.final_script == "Still short."
    assert report.repair_attempted is True


@pytest.mark.asyncio
async def test_repair_failure_falls_back(guard: QualityGuard, mock_provider: AsyncMock) -> None:
    mock_provider.generate.side_effect = ProviderError("mock", "timeout")

    report = await guard.guard("Rest now.", "regular", 123)

    assert report.final_script == "Rest now."
    assert report.score == 43
    assert report.passed is False
    assert report.repair_attempted is True
    assert report.polish_message is None


@pytest.mark.asyncio
async def test_malformed_repair_reply_falls_back(
    guard: QualityGuard, mock_provider: AsyncMock
) -> None:
    mock_provider.generate.return_value = "I improved the script for you!"

    report = await guard.guard("Rest now.", "regular", 123)

    assert report.final_script == "Rest now."
    assert report.repair_attempted is True


@pytest.mark.asyncio
async def test_repair_token_override(rules: RuleSet, mock_provider: AsyncMock, passing_script: str) -> None:
    mock_provider.generate.return_value = _repair_reply(passing_script)
    guard = QualityGuard(mock_provider, rules, repair_max_tokens=2000)

    await guard.guard("Rest now.", "regular", word_count(passing_script))

    assert mock_provider.generate.call_args.kwargs["max_output_tokens"] == 2000


@pytest.mark.asyncio
async def test_missing_repair_template_propagates(
    rules: RuleSet, mock_provider: AsyncMock, tmp_path: Path
) -> None:
    guard = QualityGuard(mock_provider, rules, templates=PromptLoader(tmp_path))

    with pytest.raises(TemplateNotFoundError):
        await guard.guard("Rest now.", "regular", 123)

    mock_provider.generate.assert_not_awaited()


def test_evaluate_classifies_metaphors_once(rules: RuleSet) -> None:
    classifier = MagicMock(wraps=VocabularyMetaphorClassifier(rules.metaphors))
    guard = QualityGuard(None, rules, metaphor_classifier=classifier)

    report = guard.evaluate("The ocean waves roll in. " * 5, "regular", 30)

    classifier.classify.assert_called_once()
    names = [check.name for check in report.checks]
    assert "Metaphor Frequency" in names
    assert "Metaphor Consistency" in names
