"""Analysis and quality report models.

All of these are produced fresh per call and never mutated afterwards;
a failing check is data (``passed=False``), never an exception.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["high", "major", "medium", "low"]


class PatternMatch(BaseModel):
    """Occurrence count of one configured phrase."""

    pattern: str
    count: int
    threshold: int
    needs_rewrite: bool


class PatternAnalysis(BaseModel):
    """Phrase repetition analysis of a text."""

    overused_patterns: list[PatternMatch] = Field(default_factory=list)
    total_sentences: int = 0
    diversity_score: int = Field(default=100, ge=0, le=100)

    @property
    def patterns_needing_rewrite(self) -> list[PatternMatch]:
        return [p for p in self.overused_patterns if p.needs_rewrite]


class GrammarIssue(BaseModel):
    """A naturalness problem found by one sub-check."""

    type: str
    severity: Severity
    description: str
    count: int


class GrammarReport(BaseModel):
    """Naturalness analysis of a text."""

    score: int = Field(ge=0, le=100)
    issues: list[GrammarIssue] = Field(default_factory=list)
    is_natural: bool


class QualityCheck(BaseModel):
    """Outcome of one quality rule."""

    name: str
    passed: bool
    details: str


class QualityReport(BaseModel):
    """Aggregated quality outcome for a candidate script."""

    passed: bool
    score: int = Field(ge=0, le=100)
    checks: list[QualityCheck] = Field(default_factory=list)
    final_script: str
    polish_message: str | None = None
    repair_attempted: bool = False

    @property
    def failed_checks(self) -> list[QualityCheck]:
        return [c for c in self.checks if not c.passed]


class RepairResponse(BaseModel):
    """Structured reply expected from the repair call."""

    model_config = ConfigDict(populate_by_name=True)

    polished_script: str = Field(alias="polishedScript", min_length=1)
