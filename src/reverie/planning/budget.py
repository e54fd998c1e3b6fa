"""Word budget planning.

Turns a journey (ordered, weighted stages) and a total word count into a
generation contract: a word budget and a running word target per stage, plus
the arc metadata and primary metaphor the prompts need.

When the stage weights sum to 100 the last stage absorbs the rounding
remainder, so the budgets always add up to the requested total. Weights that
do not sum to 100 break the journey's precondition; the formula is then
applied literally and the violation is logged and recorded in the reasoning
log rather than silently corrected.
"""

from __future__ import annotations

from reverie.analysis.text import round_half_up
from reverie.models.context import ClientContext
from reverie.models.journey import (
    GenerationContract,
    Journey,
    MetaphorSelection,
    StageBudget,
)
from reverie.observability.logging import get_logger
from reverie.planning.arcs import ArcLibrary
from reverie.rules.schema import MetaphorLibrary

log = get_logger(__name__)


class BudgetPlanner:
    """Plan word budgets for a journey.

    Args:
        arcs: Arc library used to resolve stage metadata.
        metaphors: Metaphor library used for primary metaphor selection.
    """

    def __init__(self, arcs: ArcLibrary, metaphors: MetaphorLibrary) -> None:
        self._arcs = arcs
        self._metaphors = metaphors

    def plan(
        self,
        journey: Journey,
        target_word_count: int,
        context: ClientContext | None = None,
    ) -> GenerationContract:
        """Derive the generation contract for a journey.

        Args:
            journey: Stages in delivery order.
            target_word_count: Total words for the whole script.
            context: Client context; enables primary metaphor selection.

        Returns:
            GenerationContract with one StageBudget per stage.

        Raises:
            ValueError: If target_word_count is not a positive integer.
        """
        if isinstance(target_word_count, bool) or not isinstance(target_word_count, int):
            raise ValueError(f"target_word_count must be an integer, got {target_word_count!r}")
        if target_word_count <= 0:
            raise ValueError(f"target_word_count must be positive, got {target_word_count}")

        reasoning: list[str] = [f"ARC JOURNEY MODE: {len(journey.stages)} stages"]

        violations = journey.precondition_violations()
        if violations:
            log.warning(
                "journey_weights_invalid",
                stages=len(journey.stages),
                weight_total=journey.weight_total,
                violations=violations,
            )
            reasoning.extend(f"PRECONDITION: {v}" for v in violations)

        budgets = [round_half_up(stage.weight / 100 * target_word_count) for stage in journey.stages]
        if budgets and journey.weights_complete:
            budgets[-1] = target_word_count - sum(budgets[:-1])

        stages: list[StageBudget] = []
        cumulative = 0
        for index, (stage, budget) in enumerate(zip(journey.stages, budgets, strict=True), start=1):
            arc = self._arcs.resolve(stage.arc_id)
            cumulative += budget
            stages.append(
                StageBudget(
                    arc_id=stage.arc_id,
                    arc_name=arc.name,
                    weight=stage.weight,
                    word_budget=budget,
                    cumulative_word_target=cumulative,
                    key_language=list(arc.key_language),
                    prompt_integration=arc.prompt_integration,
                    transition_goal=stage.transition_goal,
                    dimension_overrides=stage.dimension_overrides,
                )
            )
            line = f"Stage {index}: {arc.name} ({stage.weight:g}%, {budget} words, cumulative {cumulative})"
            if stage.arc_id not in self._arcs:
                line += " - arc not in library, using id as name"
            if stage.transition_goal:
                line += f" - goal: {stage.transition_goal}"
            reasoning.append(line)

        metaphor = None
        if context is not None:
            metaphor = self.select_metaphor(context)
            if metaphor is not None:
                reasoning.append(f"Primary metaphor: {metaphor.family} ({metaphor.reason})")

        log.debug(
            "budget_planned",
            stages=len(stages),
            target_word_count=target_word_count,
            budget_total=cumulative,
        )
        return GenerationContract(
            target_word_count=target_word_count,
            stages=stages,
            primary_metaphor=metaphor,
            reasoning_log=reasoning,
        )

    def detect_issues(self, context: ClientContext) -> list[str]:
        """Presenting issues whose keywords appear in the context text."""
        text = f"{context.presenting_issue} {context.client_notes or ''}".lower()
        return [
            issue
            for issue, keywords in self._metaphors.issue_keywords.items()
            if any(keyword.lower() in text for keyword in keywords)
        ]

    def select_metaphor(self, context: ClientContext) -> MetaphorSelection | None:
        """Pick a primary metaphor family, or None below the symbolic threshold."""
        level = context.symbolic_level
        if level < self._metaphors.selection_threshold:
            return None

        families = self._metaphors.families
        for issue in self.detect_issues(context):
            family = self._metaphors.issue_metaphors.get(issue)
            if family and family in families:
                return MetaphorSelection(
                    family=family,
                    primary_images=list(families[family].primary_images),
                    reason=f"Best match for {issue} (symbolic level: {level}%)",
                )

        default = self._metaphors.default_family
        images = families[default].primary_images if default in families else ()
        return MetaphorSelection(
            family=default,
            primary_images=list(images),
            reason=f"Default gentle metaphor (symbolic level: {level}%)",
        )
