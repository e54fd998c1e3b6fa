"""Outline -> draft -> polish generation.

Each phase is a single request to the generation collaborator. Nothing here
retries or validates the output: provider errors and malformed responses
propagate to the caller, and judging the text is the quality guard's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from reverie.observability.logging import get_logger, run_context
from reverie.prompts.loader import PromptLoader, PromptTemplate
from reverie.providers.logging_wrapper import LoggingProvider
from reverie.providers.response import unwrap_text

if TYPE_CHECKING:
    from reverie.models.context import ClientContext, Directives
    from reverie.models.journey import GenerationContract
    from reverie.pipeline.config import MaxTokensConfig
    from reverie.providers.base import GenerationProvider

log = get_logger(__name__)


@dataclass
class OrchestrationInput:
    """Everything the generation phases need.

    Attributes:
        context: Client context (issue, outcome, emergence type).
        contract: Budgeted journey from the planner.
        directives: Instructions and checklist from the directive builder.
        system_prompt: Enhanced system prompt (directives plus journey).
    """

    context: ClientContext
    contract: GenerationContract
    directives: Directives
    system_prompt: str


@dataclass
class OrchestrationResult:
    """Texts produced by each phase.

    For the single-stage path ``outline`` and ``draft`` are empty and
    ``final`` holds the one generated script.
    """

    outline: str
    draft: str
    final: str
    stage_logs: dict[str, list[str]] = field(default_factory=dict)
    llm_calls: int = 0


def _format_stages(contract: GenerationContract) -> str:
    if not contract.stages:
        return "- (no journey stages)"
    lines = []
    for index, stage in enumerate(contract.stages, start=1):
        line = (
            f"{index}. {stage.arc_name}: {stage.word_budget} words "
            f"(cumulative {stage.cumulative_word_target})"
        )
        if stage.prompt_integration:
            line += f" - {stage.prompt_integration}"
        if stage.transition_goal:
            line += f" Transition goal: {stage.transition_goal}"
        lines.append(line)
    return "\n".join(lines)


def _format_metaphor(contract: GenerationContract) -> str:
    metaphor = contract.primary_metaphor
    if metaphor is None:
        return ""
    return f"PRIMARY METAPHOR: {metaphor.family}\nImages to use: {', '.join(metaphor.primary_images)}"


class ScriptOrchestrator:
    """Drive the generation collaborator through the script phases.

    Args:
        provider: Generation collaborator.
        templates: Prompt loader; packaged templates by default.
        max_tokens: Per-phase token overrides; template limits otherwise.
    """

    def __init__(
        self,
        provider: GenerationProvider,
        templates: PromptLoader | None = None,
        max_tokens: MaxTokensConfig | None = None,
    ) -> None:
        self._provider = provider
        self._templates = templates or PromptLoader()
        self._max_tokens = max_tokens

    @property
    def provider_name(self) -> str:
        return str(getattr(self._provider, "model_name", "unknown"))

    async def outline(self, request: OrchestrationInput) -> str:
        """Phase 1: four-phase structural outline."""
        template = self._templates.load("outline")
        emergence = template.fragments.get(request.context.emergence_type, "")
        return await self._call(
            "outline",
            template,
            system_prompt=request.system_prompt,
            presenting_issue=request.context.presenting_issue,
            desired_outcome=request.context.desired_outcome,
            stages=_format_stages(request.contract),
            metaphor=_format_metaphor(request.contract),
            emergence=emergence,
        )

    async def draft(self, request: OrchestrationInput, outline: str) -> str:
        """Phase 2: full script at the target word count."""
        contract = request.contract
        return await self._call(
            "draft",
            self._templates.load("draft"),
            system_prompt=request.system_prompt,
            presenting_issue=request.context.presenting_issue,
            desired_outcome=request.context.desired_outcome,
            outline=outline,
            instructions="\n".join(request.directives.instructions),
            instruction_count=len(request.directives.instructions),
            stages=_format_stages(contract),
            target_word_count=contract.target_word_count,
            metaphor_family=contract.primary_metaphor.family if contract.primary_metaphor else "consistent",
            arc_names=", ".join(contract.arc_names) or "none",
        )

    async def polish(self, request: OrchestrationInput, draft: str) -> str:
        """Phase 3: revise the draft against the principle checklist."""
        return await self._call(
            "polish",
            self._templates.load("polish"),
            system_prompt=request.system_prompt,
            draft=draft,
            quality_reminders="\n".join(request.directives.quality_reminders),
        )

    async def orchestrate(self, request: OrchestrationInput) -> OrchestrationResult:
        """Run outline, draft and polish in sequence."""
        words = request.contract.target_word_count
        stage_logs: dict[str, list[str]] = {
            "outline": ["=== STAGE 1: OUTLINE ==="],
            "draft": ["=== STAGE 2: DRAFT ==="],
            "polish": ["=== STAGE 3: POLISH ==="],
        }

        outline = await self.outline(request)
        stage_logs["outline"].append(
            "Outline generated with 4 phases: Induction, Deepening, Work, Emergence"
        )
        log.info("stage_complete", stage="outline", chars=len(outline))

        draft = await self.draft(request, outline)
        stage_logs["draft"].append(f"Draft generated (~{words} words)")
        log.info("stage_complete", stage="draft", chars=len(draft))

        final = await self.polish(request, draft)
        stage_logs["polish"].append("Final script polished for principles and flow")
        log.info("stage_complete", stage="polish", chars=len(final))

        return OrchestrationResult(
            outline=outline,
            draft=draft,
            final=final,
            stage_logs=stage_logs,
            llm_calls=3,
        )

    async def generate_single_stage(self, request: OrchestrationInput) -> OrchestrationResult:
        """Produce the complete script with one call."""
        contract = request.contract
        final = await self._call(
            "single_stage",
            self._templates.load("single_stage"),
            system_prompt=request.system_prompt,
            presenting_issue=request.context.presenting_issue,
            desired_outcome=request.context.desired_outcome,
            instructions="\n".join(request.directives.instructions),
            stages=_format_stages(contract),
            target_word_count=contract.target_word_count,
            metaphor_family=contract.primary_metaphor.family if contract.primary_metaphor else "consistent",
            arc_names=", ".join(contract.arc_names) or "none",
        )
        log.info("stage_complete", stage="single_stage", chars=len(final))
        return OrchestrationResult(
            outline="",
            draft="",
            final=final,
            stage_logs={"single_stage": ["=== SINGLE STAGE ===", "Complete script generated in one call"]},
            llm_calls=1,
        )

    async def _call(self, phase: str, template: PromptTemplate, **values: object) -> str:
        system_prompt, user_prompt = template.render(**values)
        max_tokens = template.max_output_tokens
        if self._max_tokens is not None:
            max_tokens = self._max_tokens.for_phase(phase) or max_tokens

        if isinstance(self._provider, LoggingProvider):
            self._provider.set_phase(phase)

        with run_context(phase=phase):
            log.debug("stage_start", max_output_tokens=max_tokens)
            response = await self._provider.generate(
                system_prompt, user_prompt, max_output_tokens=max_tokens
            )
        return unwrap_text(response, self.provider_name)
