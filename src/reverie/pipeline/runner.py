"""End-to-end script pipeline.

plan budget -> build directives -> orchestrate -> guard. A run makes at most
four sequential collaborator calls (outline, draft, polish, repair) and owns
all of its data, so independent runs can be gathered concurrently. There is
no internal timeout; wrap ``run`` in ``asyncio.wait_for`` where one is needed.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from reverie.models.context import ClientContext
from reverie.models.journey import GenerationContract, Journey
from reverie.observability.logging import get_logger, run_context
from reverie.pipeline.config import MaxTokensConfig
from reverie.pipeline.orchestrator import (
    OrchestrationInput,
    OrchestrationResult,
    ScriptOrchestrator,
)
from reverie.pipeline.quality_guard import QualityGuard
from reverie.planning.arcs import ArcLibrary
from reverie.planning.budget import BudgetPlanner
from reverie.prompts.directives import DirectiveBuilder
from reverie.prompts.loader import PromptLoader
from reverie.rules.loader import load_rule_set

if TYPE_CHECKING:
    from reverie.models.quality import QualityReport
    from reverie.providers.base import GenerationProvider
    from reverie.rules.schema import RuleSet

log = get_logger(__name__)


@dataclass
class PipelineRequest:
    """One script generation request.

    Attributes:
        context: Client context.
        journey: Ordered, weighted stages.
        target_word_count: Requested script length.
        single_stage: Generate in one call instead of outline/draft/polish.
        allow_retry: Permit the quality guard's repair call.
    """

    context: ClientContext
    journey: Journey
    target_word_count: int
    single_stage: bool = False
    allow_retry: bool = True


@dataclass
class PipelineResult:
    contract: GenerationContract
    orchestration: OrchestrationResult
    report: QualityReport
    llm_calls: int = 0
    run_id: str = ""

    @property
    def script(self) -> str:
        return self.report.final_script

    @property
    def reasoning_log(self) -> list[str]:
        return self.contract.reasoning_log


class ScriptPipeline:
    """Wire planner, directive builder, orchestrator and guard together.

    Args:
        provider: Generation collaborator shared by every phase.
        rules: Rule set; packaged defaults when None.
        arcs: Arc library; packaged library when None.
        templates: Prompt loader; packaged templates when None.
        max_tokens: Per-phase token overrides.
    """

    def __init__(
        self,
        provider: GenerationProvider,
        rules: RuleSet | None = None,
        arcs: ArcLibrary | None = None,
        templates: PromptLoader | None = None,
        max_tokens: MaxTokensConfig | None = None,
    ) -> None:
        rules = rules or load_rule_set()
        templates = templates or PromptLoader()
        max_tokens = max_tokens or MaxTokensConfig()

        self.planner = BudgetPlanner(arcs or ArcLibrary.load(), rules.metaphor_library)
        self.directives = DirectiveBuilder(rules)
        self.orchestrator = ScriptOrchestrator(provider, templates, max_tokens)
        self.guard = QualityGuard(
            provider,
            rules,
            templates=templates,
            repair_max_tokens=max_tokens.repair,
        )

    async def run(self, request: PipelineRequest) -> PipelineResult:
        """Generate, score and (at most once) repair a script.

        Every log event and call-log entry of the run carries its run id.

        Raises:
            ValueError: If the target word count is not positive.
            ProviderError: If the outline, draft, polish or single-stage call
                fails. A failed repair call is absorbed by the guard.
        """
        run_id = uuid.uuid4().hex[:12]
        with run_context(run_id=run_id):
            return await self._run(request, run_id)

    async def _run(self, request: PipelineRequest, run_id: str) -> PipelineResult:
        context = request.context
        contract = self.planner.plan(request.journey, request.target_word_count, context)
        directives = self.directives.build(context)
        system_prompt = self.directives.build_enhanced_system_prompt(directives, contract)

        log.info(
            "pipeline_start",
            stages=len(contract.stages),
            target_word_count=contract.target_word_count,
            emergence=context.emergence_type,
            single_stage=request.single_stage,
        )

        orchestration_input = OrchestrationInput(
            context=context,
            contract=contract,
            directives=directives,
            system_prompt=system_prompt,
        )
        if request.single_stage:
            orchestration = await self.orchestrator.generate_single_stage(orchestration_input)
        else:
            orchestration = await self.orchestrator.orchestrate(orchestration_input)

        report = await self.guard.guard(
            orchestration.final,
            context.emergence_type,
            contract.target_word_count,
            allow_retry=request.allow_retry,
        )

        llm_calls = orchestration.llm_calls + (1 if report.repair_attempted else 0)
        log.info("pipeline_complete", score=report.score, passed=report.passed, llm_calls=llm_calls)

        return PipelineResult(
            contract=contract,
            orchestration=orchestration,
            report=report,
            llm_calls=llm_calls,
            run_id=run_id,
        )
