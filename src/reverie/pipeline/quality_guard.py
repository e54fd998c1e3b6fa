"""Quality guard: deterministic checks plus one bounded repair.

States::

    Scoring -> Passed
    Scoring -> Repairing -> Rescoring -> (Passed | Failed)
    Scoring -> Failed                      (retry disallowed or no provider)

A failing check is data, never an exception. The repair call is the one
place in the pipeline where a collaborator failure is absorbed: the guard
logs it and returns the original scoring result. A missing or broken repair
template is a configuration error and propagates. There is never a second
repair attempt.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

from reverie.analysis.grammar import NaturalnessAnalyzer
from reverie.analysis.strategies import (
    EmergenceDetector,
    MetaphorClassifier,
    MetaphorUsage,
    RegexEmergenceDetector,
    VocabularyMetaphorClassifier,
)
from reverie.analysis.text import count_phrase, round_half_up, split_sentences, word_count
from reverie.models.quality import QualityCheck, QualityReport, RepairResponse
from reverie.observability.logging import get_logger, run_context
from reverie.prompts.loader import PromptLoader, PromptTemplate
from reverie.providers.logging_wrapper import LoggingProvider
from reverie.providers.response import unwrap_structured

if TYPE_CHECKING:
    from reverie.models.context import EmergenceType
    from reverie.providers.base import GenerationProvider
    from reverie.rules.schema import RuleSet

log = get_logger(__name__)

EMERGENCE = "Emergence Type"
NATURAL_GRAMMAR = "Natural Grammar"
FUNCTIONAL_SUGGESTIONS = "Functional Suggestions"
WORD_COUNT = "Word Count"
SENTENCE_VARIETY = "Sentence Variety"
METAPHOR_FREQUENCY = "Metaphor Frequency"
METAPHOR_CONSISTENCY = "Metaphor Consistency"

CHECK_ORDER = (
    EMERGENCE,
    NATURAL_GRAMMAR,
    FUNCTIONAL_SUGGESTIONS,
    WORD_COUNT,
    SENTENCE_VARIETY,
    METAPHOR_FREQUENCY,
    METAPHOR_CONSISTENCY,
)


@dataclass(frozen=True)
class _Evaluation:
    checks: list[QualityCheck]
    score: int

    @property
    def passed(self) -> bool:
        return all(check.passed for check in self.checks)

    @property
    def failed(self) -> list[QualityCheck]:
        return [check for check in self.checks if not check.passed]


class QualityGuard:
    """Score candidate scripts and spend at most one repair call on failures.

    Args:
        provider: Generation collaborator used for the repair call. Without
            one the guard only scores.
        rules: Rule set with quality, grammar, emergence and metaphor tables.
        templates: Prompt loader for the repair template.
        emergence_detector: Replaces the regex emergence strategy.
        metaphor_classifier: Replaces the vocabulary metaphor strategy.
        repair_max_tokens: Overrides the repair template's token limit.
    """

    def __init__(
        self,
        provider: GenerationProvider | None,
        rules: RuleSet,
        *,
        templates: PromptLoader | None = None,
        emergence_detector: EmergenceDetector | None = None,
        metaphor_classifier: MetaphorClassifier | None = None,
        repair_max_tokens: int | None = None,
    ) -> None:
        self._provider = provider
        self._quality = rules.quality
        self._metaphor_rules = rules.metaphors
        self._grammar = NaturalnessAnalyzer(rules.grammar)
        self._emergence = emergence_detector or RegexEmergenceDetector(rules.emergence)
        self._metaphors = metaphor_classifier or VocabularyMetaphorClassifier(rules.metaphors)
        self._templates = templates or PromptLoader()
        self._repair_max_tokens = repair_max_tokens

    # -- scoring -----------------------------------------------------------

    def evaluate(
        self,
        text: str,
        emergence_type: EmergenceType,
        target_word_count: int,
    ) -> QualityReport:
        """Score a script without any collaborator call.

        Returns:
            QualityReport whose score is the rounded share of passing checks.
        """
        evaluation = self._evaluate(text, emergence_type, target_word_count)
        return QualityReport(
            passed=evaluation.passed,
            score=evaluation.score,
            checks=evaluation.checks,
            final_script=text,
        )

    def _evaluate(self, text: str, emergence_type: EmergenceType, target_word_count: int) -> _Evaluation:
        functional = self.count_functional_suggestions(text)
        usage = self._metaphors.classify(text)
        checks = [
            self.check_emergence(text, emergence_type),
            self.check_natural_grammar(text),
            self.check_functional_suggestions(functional),
            self.check_word_count(text, target_word_count, functional),
            self.check_sentence_variety(text),
            self.check_metaphor_frequency(text, usage),
            self.check_metaphor_consistency(text, usage),
        ]
        passed = sum(1 for check in checks if check.passed)
        score = round_half_up(100 * passed / len(checks))

        for check in checks:
            log.debug("quality_check", check=check.name, passed=check.passed, details=check.details)
        return _Evaluation(checks=checks, score=score)

    def check_emergence(self, text: str, emergence_type: EmergenceType) -> QualityCheck:
        signals = self._emergence.detect(text)

        if emergence_type == "sleep":
            if signals.has_awaken:
                return QualityCheck(
                    name=EMERGENCE,
                    passed=False,
                    details="Script has awakening language when sleep expected",
                )
            if not signals.has_sleep:
                return QualityCheck(
                    name=EMERGENCE,
                    passed=False,
                    details="Script lacks sleep transition language for sleep emergence",
                )
        elif not signals.has_awaken:
            details = (
                "Script has sleep emergence when regular expected"
                if signals.has_sleep
                else "Script lacks awakening for regular emergence"
            )
            return QualityCheck(name=EMERGENCE, passed=False, details=details)

        return QualityCheck(
            name=EMERGENCE,
            passed=True,
            details=f"Correct {emergence_type} emergence language found",
        )

    def check_natural_grammar(self, text: str) -> QualityCheck:
        report = self._grammar.analyze(text)
        if report.is_natural:
            details = f"Natural hypnotic language (score: {report.score}%)"
        else:
            issue_types = ", ".join(issue.type for issue in report.issues)
            details = f"Unnatural/robotic language (score: {report.score}%) - {issue_types}"
        return QualityCheck(name=NATURAL_GRAMMAR, passed=report.is_natural, details=details)

    def count_functional_suggestions(self, text: str) -> int:
        return sum(count_phrase(text, phrase) for phrase in self._quality.functional_phrases)

    def check_functional_suggestions(self, count: int) -> QualityCheck:
        minimum = self._quality.functional_minimum
        passed = count >= minimum
        details = (
            f"Found {count} functional/therapeutic suggestions"
            if passed
            else f"Only {count} functional suggestions (minimum: {minimum})"
        )
        return QualityCheck(name=FUNCTIONAL_SUGGESTIONS, passed=passed, details=details)

    def check_word_count(self, text: str, target_word_count: int, functional_count: int) -> QualityCheck:
        actual = word_count(text)
        tolerance = target_word_count * self._quality.word_count_tolerance
        low, high = target_word_count - tolerance, target_word_count + tolerance
        waived = functional_count > self._quality.dense_functional_override
        passed = waived or low <= actual <= high
        percent = round_half_up(self._quality.word_count_tolerance * 100)

        if passed:
            details = f"{actual} words (target: {target_word_count} ±{percent}%)"
            if waived and not low <= actual <= high:
                details += " - waived for dense functional content"
        else:
            details = f"{actual} words - outside target range {round_half_up(low)}-{round_half_up(high)}"
        return QualityCheck(name=WORD_COUNT, passed=passed, details=details)

    def check_sentence_variety(self, text: str) -> QualityCheck:
        sentences = split_sentences(text, self._quality.min_sentence_chars)
        if not sentences:
            return QualityCheck(name=SENTENCE_VARIETY, passed=False, details="No sentences found to analyze")

        n = self._quality.opener_words
        openers = Counter(" ".join(sentence.lower().split()[:n]) for sentence in sentences)
        opener, count = openers.most_common(1)[0]
        share = count / len(sentences)
        percent = round_half_up(share * 100)
        limit = round_half_up(self._quality.opener_max_share * 100)
        passed = share <= self._quality.opener_max_share

        if passed:
            details = f'Good variety - most common opener "{opener}" used {count}x ({percent}%)'
        else:
            details = f'Too repetitive - "{opener}" used {count}x ({percent}% of sentences, limit: {limit}%)'
        return QualityCheck(name=SENTENCE_VARIETY, passed=passed, details=details)

    def check_metaphor_frequency(self, text: str, usage: MetaphorUsage | None = None) -> QualityCheck:
        if usage is None:
            usage = self._metaphors.classify(text)
        dominant = usage.dominant
        if dominant is None:
            return QualityCheck(name=METAPHOR_FREQUENCY, passed=True, details="No heavy metaphor use detected")

        family, count = dominant
        rules = self._metaphor_rules
        cap = rules.cap_long if word_count(text) >= rules.long_script_words else rules.cap_short
        passed = count <= cap

        if passed:
            details = f"Good balance - {family} metaphor used {count}x (max: {cap})"
        else:
            details = f"Metaphor overload - {family} used {count}x (max: {cap})"
            top = usage.most_used_word(family)
            if top is not None:
                details += f'. "{top[0]}" appears {top[1]}x'
        return QualityCheck(name=METAPHOR_FREQUENCY, passed=passed, details=details)

    def check_metaphor_consistency(self, text: str, usage: MetaphorUsage | None = None) -> QualityCheck:
        if usage is None:
            usage = self._metaphors.classify(text)
        dominant = usage.dominant
        if dominant is None:
            return QualityCheck(
                name=METAPHOR_CONSISTENCY,
                passed=True,
                details="No strong metaphor families detected (abstract script)",
            )

        family, count = dominant
        share = count / usage.total
        families = list(usage.family_counts)
        passed = (
            share >= self._metaphor_rules.dominant_share
            or len(families) <= self._metaphor_rules.max_families
        )
        details = (
            f"Primary metaphor: {family} ({round_half_up(share * 100)}%)"
            if passed
            else f"Scattered metaphors: {', '.join(families)} - lacks consistency"
        )
        return QualityCheck(name=METAPHOR_CONSISTENCY, passed=passed, details=details)

    # -- repair ------------------------------------------------------------

    async def guard(
        self,
        text: str,
        emergence_type: EmergenceType,
        target_word_count: int,
        allow_retry: bool = True,
    ) -> QualityReport:
        """Score a script and, if it fails, spend the single repair call.

        Args:
            text: Candidate script.
            emergence_type: Expected closing mode.
            target_word_count: Requested length.
            allow_retry: Permit the repair call.

        Returns:
            The rescored report for the repaired script, or the original
            scoring result when no repair happened or the repair failed.

        Raises:
            TemplateNotFoundError: If the repair template is missing.
            TemplateParseError: If the repair template is invalid.
        """
        original = self._evaluate(text, emergence_type, target_word_count)
        log.info(
            "quality_scored",
            score=original.score,
            passed=sum(1 for c in original.checks if c.passed),
            total=len(original.checks),
        )

        if original.passed:
            log.info("quality_passed")
            return QualityReport(passed=True, score=100, checks=original.checks, final_script=text)

        failed_report = QualityReport(
            passed=False,
            score=original.score,
            checks=original.checks,
            final_script=text,
        )
        if not allow_retry or self._provider is None:
            log.info("repair_skipped", reason="retry disallowed" if not allow_retry else "no provider")
            return failed_report

        template = self._templates.load("repair")
        log.info("repair_start", failed_checks=[c.name for c in original.failed])
        try:
            repaired = await self._repair(self._provider, template, text, original.failed)
        except Exception as e:
            log.warning("repair_failed", error=str(e), error_type=type(e).__name__)
            return failed_report.model_copy(update={"repair_attempted": True})

        rescored = self._evaluate(repaired, emergence_type, target_word_count)
        new_score = rescored.score
        log.info("repair_complete", score_before=original.score, score_after=new_score)
        return QualityReport(
            passed=rescored.passed,
            score=new_score,
            checks=rescored.checks,
            final_script=repaired,
            polish_message=f"Quality improved: {original.score}% -> {new_score}%",
            repair_attempted=True,
        )

    async def _repair(
        self,
        provider: GenerationProvider,
        template: PromptTemplate,
        text: str,
        failed: list[QualityCheck],
    ) -> str:
        issues = "\n".join(f"- {check.name}: {check.details}" for check in failed)
        system_prompt, user_prompt = template.render(script=text, issues=issues)

        if isinstance(provider, LoggingProvider):
            provider.set_phase("repair")

        with run_context(phase="repair"):
            response = await provider.generate(
                system_prompt,
                user_prompt,
                max_output_tokens=self._repair_max_tokens or template.max_output_tokens,
            )
        provider_name = str(getattr(provider, "model_name", "unknown"))
        return unwrap_structured(response, RepairResponse, provider_name).polished_script
