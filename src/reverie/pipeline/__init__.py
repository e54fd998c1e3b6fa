"""Generation pipeline: orchestration, quality guard and configuration."""

from reverie.pipeline.config import (
    MaxTokensConfig,
    ProjectConfig,
    ProjectConfigError,
    find_project_config,
    load_project_config,
)
from reverie.pipeline.orchestrator import (
    OrchestrationInput,
    OrchestrationResult,
    ScriptOrchestrator,
)
from reverie.pipeline.quality_guard import QualityGuard
from reverie.pipeline.runner import PipelineRequest, PipelineResult, ScriptPipeline

__all__ = [
    "MaxTokensConfig",
    "OrchestrationInput",
    "OrchestrationResult",
    "PipelineRequest",
    "PipelineResult",
    "ProjectConfig",
    "ProjectConfigError",
    "QualityGuard",
    "ScriptOrchestrator",
    "ScriptPipeline",
    "find_project_config",
    "load_project_config",
]
