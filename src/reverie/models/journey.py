"""Journey and generation contract models.

A journey is the caller's ordered list of thematic stages; the generation
contract is what the Budget Planner derives from it: a word budget and a
running word target per stage, plus the arc metadata the prompts need.

Journeys are expected to hold 1-12 stages whose weights sum to 100. That is a
precondition checked upstream, not here; ``Journey.precondition_violations``
reports it for callers that want to validate.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

MIN_STAGES = 1
MAX_STAGES = 12
WEIGHT_TOTAL = 100


class Stage(BaseModel):
    """One thematic stage of a journey."""

    arc_id: str = Field(min_length=1, description="Arc identifier in the arc library")
    weight: float = Field(ge=0, le=100, description="Share of total length, in percent")
    transition_goal: str | None = Field(
        default=None,
        description="What the listener should carry into the next stage",
    )
    dimension_overrides: dict[str, int] | None = Field(
        default=None,
        description="Per-stage dimension emphasis (e.g. somatic: 80)",
    )


class Journey(BaseModel):
    """Ordered sequence of stages."""

    stages: list[Stage] = Field(default_factory=list)

    @property
    def weight_total(self) -> float:
        """Sum of stage weights."""
        return sum(stage.weight for stage in self.stages)

    @property
    def weights_complete(self) -> bool:
        """True if the weights sum to 100."""
        return math.isclose(self.weight_total, WEIGHT_TOTAL)

    def precondition_violations(self) -> list[str]:
        """Describe every way this journey breaks the input contract.

        Returns:
            Human-readable violations; empty when the journey is well-formed.
        """
        violations: list[str] = []
        count = len(self.stages)
        if not MIN_STAGES <= count <= MAX_STAGES:
            violations.append(
                f"Journey has {count} stages (expected {MIN_STAGES}-{MAX_STAGES})"
            )
        if not self.weights_complete:
            violations.append(
                f"Stage weights sum to {self.weight_total:g} (expected {WEIGHT_TOTAL})"
            )
        return violations


class ArcDefinition(BaseModel):
    """A narrative arc from the arc library."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    category: str = "other"
    description: str = ""
    key_language: tuple[str, ...] = ()
    prompt_integration: str = ""


class MetaphorSelection(BaseModel):
    """Primary metaphor family chosen for a script."""

    family: str
    primary_images: list[str] = Field(default_factory=list)
    reason: str = ""


class StageBudget(BaseModel):
    """A journey stage with its resolved arc metadata and word budget."""

    arc_id: str
    arc_name: str
    weight: float
    word_budget: int
    cumulative_word_target: int
    key_language: list[str] = Field(default_factory=list)
    prompt_integration: str = ""
    transition_goal: str | None = None
    dimension_overrides: dict[str, int] | None = None


class GenerationContract(BaseModel):
    """Budgeted plan handed to the prompt layer."""

    target_word_count: int
    stages: list[StageBudget] = Field(default_factory=list)
    primary_metaphor: MetaphorSelection | None = None
    reasoning_log: list[str] = Field(default_factory=list)

    @property
    def arc_names(self) -> list[str]:
        return [stage.arc_name for stage in self.stages]

    @property
    def budget_total(self) -> int:
        return sum(stage.word_budget for stage in self.stages)
